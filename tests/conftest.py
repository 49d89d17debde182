import os

import pytest
from click.testing import CliRunner
from eth_account import Account
from eth_utils import to_checksum_address

from litgate.blockchain.chains import DATIL_DEV, DATIL_TEST
from litgate.blockchain.signers.software import InMemorySigner
from litgate.conditions.lingo import AccessControlCondition, AccessControlConditions
from litgate.network.session import LitSession
from litgate.utilities.logging import GlobalLoggerSettings
from tests.mock.lit import MockContractClient, MockLitNetwork, MockLitNodeClient

NFT_CHAIN = "arbitrum"


@pytest.fixture(scope="session", autouse=True)
def quiet_logging():
    GlobalLoggerSettings.set_log_level(log_level_name="debug")
    yield
    GlobalLoggerSettings.stop_all()


@pytest.fixture(scope="session")
def get_random_checksum_address():
    def _get_random_checksum_address():
        return to_checksum_address(os.urandom(20))

    return _get_random_checksum_address


@pytest.fixture(scope="function")
def private_key():
    return Account.create().key.hex()


@pytest.fixture(scope="function")
def signer(private_key):
    return InMemorySigner(private_key=private_key)


@pytest.fixture(scope="function")
def another_signer():
    return InMemorySigner()


@pytest.fixture(scope="function")
def lit_backend():
    return MockLitNetwork.reset_default()


@pytest.fixture(scope="function")
def node_client(lit_backend):
    return MockLitNodeClient(network=DATIL_TEST, backend=lit_backend)


@pytest.fixture(scope="function")
def dev_node_client(lit_backend):
    return MockLitNodeClient(network=DATIL_DEV, backend=lit_backend)


@pytest.fixture(scope="function")
def contract_client(lit_backend, signer):
    return MockContractClient(owner=signer.address, backend=lit_backend)


@pytest.fixture(scope="function")
def nft_contract(get_random_checksum_address):
    return get_random_checksum_address()


@pytest.fixture(scope="function")
def conditions(nft_contract):
    condition = AccessControlCondition.nft_ownership(contract_address=nft_contract, chain=NFT_CHAIN)
    return AccessControlConditions([condition])


@pytest.fixture(scope="function")
def nft_holder(lit_backend, nft_contract, signer):
    lit_backend.set_balance(NFT_CHAIN, nft_contract, signer.address, 1)
    return signer


@pytest.fixture(scope="function")
def session(node_client, contract_client, signer):
    _session = LitSession(
        node_client=node_client,
        signer=signer,
        chain=NFT_CHAIN,
        contract_client=contract_client,
    )
    with _session:
        yield _session


@pytest.fixture(scope="function")
def delegation(session, signer):
    _token_id, _delegation = session.mint_capacity_credits(
        delegatee_addresses=[signer.address], uses=10
    )
    return _delegation


@pytest.fixture(scope="function")
def click_runner():
    runner = CliRunner()
    yield runner
