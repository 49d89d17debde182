import functools
from collections import namedtuple
from pathlib import Path

import click

from litgate.cli.types import CHAIN_NAME, CHECKSUM_ADDRESS, NETWORK_NAME
from litgate.config.constants import (
    DEFAULT_DAYS_UNTIL_UTC_MIDNIGHT_EXPIRATION,
    DEFAULT_DELEGATION_USES,
    DEFAULT_REQUESTS_PER_KILOSECOND,
    DEMO_NFT_CONTRACT_ADDRESS,
)

# Lit options
option_chain = click.option('--chain', help="Chain the access control conditions are evaluated on", type=CHAIN_NAME)
option_network = click.option('--network', help="Lit network", type=NETWORK_NAME)
option_config_file = click.option(
    '--config-file',
    help="Path to a litgate JSON configuration file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
option_node_client = click.option(
    '--node-client',
    help="Lit node client implementation, as 'package.module:ClassName'",
    type=click.STRING,
)

# Capacity
option_requests_per_kilosecond = click.option(
    '--requests-per-kilosecond',
    help="Capacity to mint, in requests per kilosecond",
    type=click.IntRange(min=1),
    default=DEFAULT_REQUESTS_PER_KILOSECOND,
    show_default=True,
)
option_days = click.option(
    '--days',
    help="Days until the capacity expires (at UTC midnight)",
    type=click.IntRange(min=1),
    default=DEFAULT_DAYS_UNTIL_UTC_MIDNIGHT_EXPIRATION,
    show_default=True,
)
option_delegatees = click.option(
    '--delegatee',
    'delegatee_addresses',
    help="Address allowed to consume the capacity; repeatable",
    type=CHECKSUM_ADDRESS,
    multiple=True,
)
option_uses = click.option(
    '--uses',
    help="Number of requests the delegatees may make",
    type=click.IntRange(min=1),
    default=DEFAULT_DELEGATION_USES,
    show_default=True,
)

# Cipher
option_conditions_file = click.option(
    '--conditions-file',
    help="JSON file with the access control conditions; defaults to NFT ownership of --nft-contract",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
option_nft_contract = click.option(
    '--nft-contract',
    help="ERC721 contract whose holders may decrypt",
    type=CHECKSUM_ADDRESS,
    default=DEMO_NFT_CONTRACT_ADDRESS,
    show_default=True,
)
option_delegation_file = click.option(
    '--delegation-file',
    help="JSON file with a capacity delegation AuthSig",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
option_output_file = click.option(
    '--output-file',
    help="Write the result to this file instead of stdout",
    type=click.Path(dir_okay=False, path_type=Path),
)


def group_options(option_class, **options):
    argnames = sorted(list(options.keys()))
    decorators = list(options.values())

    if isinstance(option_class, str):
        option_name = option_class
        option_class = namedtuple(option_class, argnames)
    else:
        option_name = option_class.__option_name__

    def _decorator(func):

        @functools.wraps(func)
        def wrapper(**kwargs):
            to_group = {}
            for name in argnames:
                if name not in kwargs:
                    raise ValueError(
                        f"When trying to group CLI options into {option_name}, "
                        f"{name} was not found among arguments")
                to_group[name] = kwargs[name]
                del kwargs[name]

            kwargs[option_name] = option_class(**to_group)
            return func(**kwargs)

        for dec in decorators:
            wrapper = dec(wrapper)

        return wrapper

    return _decorator
