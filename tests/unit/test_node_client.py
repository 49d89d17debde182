import pytest

from litgate.blockchain.chains import DATIL_DEV
from litgate.exceptions import ConfigurationError
from litgate.network.client import LitNodeClient, load_node_client_class
from tests.mock.lit import MockLitNodeClient


def test_load_node_client_class():
    assert load_node_client_class("tests.mock.lit:MockLitNodeClient") is MockLitNodeClient


@pytest.mark.parametrize(
    "import_path",
    [
        "",
        None,
        "tests.mock.lit",
        ":MockLitNodeClient",
        "tests.mock.nowhere:MockLitNodeClient",
        "tests.mock.lit:Nothing",
        "tests.mock.lit:MockContractClient",
        "tests.mock.lit:COMPARATORS",
    ],
)
def test_invalid_node_client_paths(import_path):
    with pytest.raises(ConfigurationError):
        load_node_client_class(import_path)


def test_node_client_is_abstract():
    with pytest.raises(TypeError):
        LitNodeClient()


def test_capacity_delegation_is_anchored_to_blockhash(dev_node_client, signer, lit_backend):
    dev_node_client.connect()
    assert dev_node_client.network == DATIL_DEV
    auth_sig = dev_node_client.create_capacity_delegation_auth_sig(
        dapp_owner_signer=signer,
        capacity_token_id="5",
        delegatee_addresses=[signer.address],
        uses=1,
    )
    assert auth_sig.is_valid()
    assert auth_sig.siwe_message().nonce == lit_backend.issued_blockhashes[-1]
