import os

import click

from litgate.cli.options import (
    group_options,
    option_chain,
    option_config_file,
    option_network,
    option_node_client,
)
from litgate.config.constants import DEFAULT_LOG_LEVEL, LITGATE_ENVVAR_LOG_LEVEL
from litgate.config.settings import LitConfiguration
from litgate.exceptions import ConfigurationError
from litgate.network.session import LitSession
from litgate.utilities.emitters import StdoutEmitter
from litgate.utilities.logging import GlobalLoggerSettings, Logger


def get_env_bool(var_name: str, default: bool) -> bool:
    if var_name in os.environ:
        return os.environ[var_name].strip().lower() in ("1", "y", "yes", "t", "true", "on")
    return default


class GroupGeneralConfig:
    __option_name__ = 'general_config'

    verbosity = 0

    # Environment Variables
    log_to_file = get_env_bool("LITGATE_FILE_LOGS", True)
    log_to_json_file = get_env_bool("LITGATE_JSON_LOGS", False)

    def __init__(
        self,
        verbose: bool,
        quiet: bool,
        no_logs: bool,
        console_logs: bool,
        file_logs: bool,
        json_logs: bool,
        log_level: str,
        debug: bool,
    ):
        self.log = Logger(self.__class__.__name__)

        if verbose and quiet:
            raise click.BadOptionUsage(
                option_name="quiet",
                message="--verbose and --quiet are mutually exclusive "
                        "and cannot be used at the same time.")

        if verbose:
            GroupGeneralConfig.verbosity = 2
        elif quiet:
            GroupGeneralConfig.verbosity = 0
        else:
            GroupGeneralConfig.verbosity = 1

        self.emitter = StdoutEmitter(verbosity=GroupGeneralConfig.verbosity)
        if verbose:
            self.emitter.message("Verbose mode is enabled", color='blue')

        # Logging
        if debug and no_logs:
            message = "--debug and --no-logs cannot be used at the same time."
            raise click.BadOptionUsage(option_name="no-logs", message=message)

        # Defaults
        if file_logs is None:
            file_logs = self.log_to_file
        if json_logs is None:
            json_logs = self.log_to_json_file

        if debug:
            console_logs = True
            file_logs = True
            log_level = 'debug'

        if no_logs:
            console_logs = False
            file_logs = False
            json_logs = False

        GlobalLoggerSettings.configure(
            log_level=log_level, console=console_logs, text=file_logs, json=json_logs
        )

        self.debug = debug


group_general_config = group_options(
    GroupGeneralConfig,

    verbose=click.option('-v', '--verbose', help="Verbose console messages", is_flag=True),
    quiet=click.option('-Q', '--quiet', help="Disable console messages", is_flag=True),
    no_logs=click.option('-L', '--no-logs', help="Disable all logging output", is_flag=True),

    console_logs=click.option(
        '--console-logs/--no-console-logs',
        help="Enable/disable logging to console. Defaults to `--no-console-logs`.",
        default=False),

    file_logs=click.option(
        '--file-logs/--no-file-logs',
        help="Enable/disable logging to text file. Defaults to LITGATE_FILE_LOGS, or to `--file-logs` if it is not set.",
        default=None,
    ),
    json_logs=click.option(
        "--json-logs/--no-json-logs",
        help="Enable/disable logging to a json file. Defaults to LITGATE_JSON_LOGS, or to `--no-json-logs` if it is not set.",
        default=None),

    log_level=click.option(
        '--log-level', help="The log level for this process.  Is overridden by --debug.",
        type=click.Choice(['critical', 'error', 'warn', 'info', 'debug']),
        envvar=LITGATE_ENVVAR_LOG_LEVEL,
        default=DEFAULT_LOG_LEVEL),

    debug=click.option(
        '-D', '--debug',
        help="Enable debugging mode, re-raising errors with their traceback. "
             "Also sets log level to \"debug\" and turns on console and file logging.",
        is_flag=True),
)


class LitOptions:
    __option_name__ = 'lit_options'

    def __init__(self, chain, network, config_file, node_client):
        self.chain = chain
        self.network = network
        self.config_file = config_file
        self.node_client = node_client

    def setup(self, general_config) -> tuple:
        emitter = general_config.emitter
        try:
            config = LitConfiguration.from_environment(
                config_file=self.config_file,
                chain=self.chain,
                network=self.network,
                node_client=self.node_client,
            )
            session = LitSession.from_configuration(config)
        except ConfigurationError as e:
            emitter.error(e)
            raise click.Abort()
        emitter.message(f"Using {config.network} on {config.chain} as {session.signer.address}", verbosity=2)
        return emitter, config, session


group_lit_options = group_options(
    LitOptions,
    chain=option_chain,
    network=option_network,
    config_file=option_config_file,
    node_client=option_node_client,
)
