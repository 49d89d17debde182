import pytest
from eth_account import Account
from eth_account.messages import encode_defunct
from hexbytes import HexBytes

from litgate.blockchain.decorators import InvalidChecksumAddress
from litgate.blockchain.signers import InMemorySigner, Signer

LENGTH_ECDSA_SIGNATURE_WITH_RECOVERY = 65


@pytest.fixture(scope="function")
def account(signer):
    _account = signer.accounts[0]
    return _account


def test_memory_signer_random_key():
    assert InMemorySigner().address != InMemorySigner().address


def test_memory_signer_accounts(signer, private_key):
    assert len(signer.accounts) == 1
    assert signer.address == signer.accounts[0]
    assert signer.address == Account.from_key(private_key).address


def test_memory_signer_repr_hides_key(signer, private_key):
    assert signer.address in repr(signer)
    assert private_key not in repr(signer)


def test_memory_signer_message(signer, account):
    message = b"Sign-In with Ethereum, one statement at a time"
    signature = signer.sign_message(account=account, message=message)
    assert isinstance(signature, HexBytes)
    assert len(signature) == LENGTH_ECDSA_SIGNATURE_WITH_RECOVERY
    recovered = Account.recover_message(encode_defunct(primitive=message), signature=signature)
    assert recovered == account


def test_memory_signer_unknown_account(signer, get_random_checksum_address):
    with pytest.raises(Signer.UnknownAccount):
        signer.sign_message(account=get_random_checksum_address(), message=b"hello")


def test_memory_signer_requires_checksum_address(signer, account):
    with pytest.raises(InvalidChecksumAddress):
        signer.sign_message(account=account.lower(), message=b"hello")
    with pytest.raises(TypeError):
        signer.sign_message(account=1234, message=b"hello")


def test_memory_signer_transaction(signer, account, get_random_checksum_address):
    transaction_dict = {
        "from": account,
        "to": get_random_checksum_address(),
        "value": 1,
        "gas": 21000,
        "gasPrice": 1_000_000_000,
        "nonce": 0,
        "chainId": 175188,
    }
    signed_transaction = signer.sign_transaction(transaction_dict=transaction_dict)
    assert Account.recover_transaction(signed_transaction) == account


def test_memory_signer_transaction_from_unknown_account(signer, get_random_checksum_address):
    transaction_dict = {"from": get_random_checksum_address(), "to": None, "value": 0, "nonce": 0}
    with pytest.raises(Signer.UnknownAccount):
        signer.sign_transaction(transaction_dict=transaction_dict)
