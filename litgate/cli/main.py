import json
from contextlib import contextmanager

import click
from marshmallow import ValidationError

from litgate.auth.siwe import AuthSig
from litgate.blockchain.contracts import ContractClient
from litgate.cipher import EncryptedMessage, LitCipher
from litgate.cli.config import group_general_config, group_lit_options
from litgate.cli.options import (
    option_conditions_file,
    option_days,
    option_delegatees,
    option_delegation_file,
    option_nft_contract,
    option_output_file,
    option_requests_per_kilosecond,
    option_uses,
)
from litgate.cli.painting import (
    echo_config_root_path,
    echo_logging_root_path,
    echo_version,
    paint_result,
)
from litgate.conditions.exceptions import InvalidCondition, InvalidConditionLingo
from litgate.conditions.lingo import AccessControlCondition, AccessControlConditions
from litgate.config.constants import DEMO_MESSAGE
from litgate.exceptions import InvalidInputFile, LitgateError
from litgate.network.client import LitNodeClient


@contextmanager
def reporting_errors(general_config):
    """Reports expected failures without a traceback, unless debugging."""
    try:
        yield
    except (
        LitgateError,
        InvalidCondition,
        InvalidConditionLingo,
        LitNodeClient.NodeClientError,
        ContractClient.ContractClientError,
        ConnectionError,
    ) as e:
        if general_config.debug:
            raise
        general_config.emitter.error(e)
        raise click.Abort()


def load_conditions(conditions_file, nft_contract, chain) -> AccessControlConditions:
    if conditions_file:
        return AccessControlConditions.from_json(conditions_file.read_text())
    condition = AccessControlCondition.nft_ownership(contract_address=nft_contract, chain=str(chain))
    return AccessControlConditions([condition])


def load_serialized(filepath, serializable, label: str):
    with open(filepath, "r") as file:
        payload = file.read()
    try:
        return serializable.from_json(payload)
    except (json.JSONDecodeError, ValidationError) as e:
        raise InvalidInputFile(f"{filepath} is not a valid {label}: {e}") from e


def load_delegation(delegation_file):
    if not delegation_file:
        return None
    return load_serialized(delegation_file, AuthSig, label="delegation")


@click.group()
@click.option('--version', help="Echo the CLI version",
              is_flag=True, callback=echo_version, expose_value=False, is_eager=True)
@click.option('--config-path', help="Echo the configuration root directory path",
              is_flag=True, callback=echo_config_root_path, expose_value=False, is_eager=True)
@click.option('--logging-path', help="Echo the logging root directory path",
              is_flag=True, callback=echo_logging_root_path, expose_value=False, is_eager=True)
def litgate_cli():
    """Condition-gated encryption and decryption on the Lit network."""


@litgate_cli.command()
@option_requests_per_kilosecond
@option_days
@option_delegatees
@option_uses
@option_output_file
@group_lit_options
@group_general_config
def mint(general_config, lit_options, requests_per_kilosecond, days, delegatee_addresses, uses, output_file):
    """Mint capacity credits and delegate them."""
    emitter, config, session = lit_options.setup(general_config=general_config)
    with reporting_errors(general_config), session:
        token_id, delegation = session.mint_capacity_credits(
            requests_per_kilosecond=requests_per_kilosecond,
            days_until_utc_midnight_expiration=days,
            delegatee_addresses=list(delegatee_addresses) or None,
            uses=uses,
        )
    emitter.message(f"Minted capacity token #{token_id}", color='green')
    paint_result(emitter, delegation.to_json(), output_file=output_file, label="delegation")


@litgate_cli.command()
@click.option('--capacity-token-id', help="ID of the capacity token to delegate", type=click.STRING, required=True)
@option_delegatees
@option_uses
@option_output_file
@group_lit_options
@group_general_config
def delegate(general_config, lit_options, capacity_token_id, delegatee_addresses, uses, output_file):
    """Delegate an existing capacity allocation."""
    emitter, config, session = lit_options.setup(general_config=general_config)
    if not delegatee_addresses:
        raise click.BadOptionUsage(option_name="delegatee", message="At least one --delegatee is required")
    with reporting_errors(general_config), session:
        delegation = session.issue_delegation(
            capacity_token_id=capacity_token_id,
            delegatee_addresses=list(delegatee_addresses),
            uses=uses,
        )
    paint_result(emitter, delegation.to_json(), output_file=output_file, label="delegation")


@litgate_cli.command()
@click.argument('message', type=click.STRING)
@option_conditions_file
@option_nft_contract
@option_output_file
@group_lit_options
@group_general_config
def encrypt(general_config, lit_options, message, conditions_file, nft_contract, output_file):
    """Encrypt MESSAGE under access control conditions."""
    emitter, config, session = lit_options.setup(general_config=general_config)
    with reporting_errors(general_config):
        conditions = load_conditions(conditions_file, nft_contract, config.chain)
        with session:
            encrypted_message = LitCipher(session=session, conditions=conditions).encrypt(message)
    paint_result(emitter, encrypted_message.to_json(), output_file=output_file, label="encrypted message")


@litgate_cli.command()
@click.option('--encrypted-file', help="JSON file with the encrypted message",
              type=click.Path(exists=True, dir_okay=False), required=True)
@option_conditions_file
@option_nft_contract
@option_delegation_file
@group_lit_options
@group_general_config
def decrypt(general_config, lit_options, encrypted_file, conditions_file, nft_contract, delegation_file):
    """Decrypt a message, proving the conditions hold for this wallet."""
    emitter, config, session = lit_options.setup(general_config=general_config)
    with reporting_errors(general_config):
        conditions = load_conditions(conditions_file, nft_contract, config.chain)
        encrypted_message = load_serialized(encrypted_file, EncryptedMessage, label="encrypted message")
        delegation = load_delegation(delegation_file)
        with session:
            cipher = LitCipher(session=session, conditions=conditions)
            plaintext = cipher.decrypt_string(encrypted_message, capacity_delegation_auth_sig=delegation)
    emitter.output(plaintext)


@litgate_cli.command()
@option_nft_contract
@option_delegation_file
@group_lit_options
@group_general_config
def demo(general_config, lit_options, nft_contract, delegation_file):
    """Encrypt and decrypt "Hello, world!" for holders of an NFT."""
    emitter, config, session = lit_options.setup(general_config=general_config)
    with reporting_errors(general_config), session:
        delegation = load_delegation(delegation_file)
        if not delegation and session.contract_client:
            token_id, delegation = session.mint_capacity_credits()
            emitter.message(f"Minted capacity token #{token_id}", color='green')
        elif not delegation and config.network.requires_capacity:
            emitter.message(f"{config.network} requires capacity credits but none are available", color='yellow')

        conditions = load_conditions(None, nft_contract, config.chain)
        cipher = LitCipher(session=session, conditions=conditions)
        encrypted_message = cipher.encrypt(DEMO_MESSAGE)
        emitter.message(f"Ciphertext: {encrypted_message.ciphertext}", verbosity=2)
        emitter.message(f"Data hash: {encrypted_message.data_to_encrypt_hash}", verbosity=2)

        plaintext = cipher.decrypt_string(encrypted_message, capacity_delegation_auth_sig=delegation)
    emitter.output(plaintext)
