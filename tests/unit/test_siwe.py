import maya
import pytest
from siwe import SiweMessage

from litgate.auth.recap import Recap
from litgate.auth.resources import (
    LitAbility,
    LitAccessControlConditionResource,
    ResourceAbilityRequest,
)
from litgate.auth.siwe import (
    DERIVED_VIA,
    AuthSig,
    create_siwe_message_with_recaps,
    generate_auth_sig,
)

REQUESTS = [
    ResourceAbilityRequest(
        resource=LitAccessControlConditionResource("*"),
        ability=LitAbility.AccessControlConditionDecryption,
    )
]
NONCE = "0x" + "ab" * 32


@pytest.fixture(scope="function")
def siwe_message(signer):
    return create_siwe_message_with_recaps(
        wallet_address=signer.address,
        uri="lit:session:" + "cd" * 32,
        expiration=maya.now().add(minutes=10),
        nonce=NONCE,
        resources=REQUESTS,
        statement="Some statement.",
    )


def test_siwe_message_with_recaps(siwe_message, signer):
    message = SiweMessage.from_message(message=siwe_message)
    assert message.address == signer.address
    assert message.nonce == NONCE
    assert str(message.uri) == "lit:session:" + "cd" * 32
    assert message.statement.startswith("Some statement. I further authorize the stated URI")

    recap = Recap.extract(message.resources)
    assert recap == Recap.from_requests(REQUESTS)
    assert recap.statement() in message.statement


def test_siwe_message_requires_checksum_address(signer):
    with pytest.raises(ValueError):
        create_siwe_message_with_recaps(
            wallet_address=signer.address.lower(),
            uri="lit:session:abc",
            expiration=maya.now().add(minutes=10),
            nonce=NONCE,
            resources=REQUESTS,
        )


def test_generate_auth_sig(siwe_message, signer):
    auth_sig = generate_auth_sig(signer=signer, to_sign=siwe_message)
    assert auth_sig.address == signer.address
    assert auth_sig.derived_via == DERIVED_VIA == "web3.eth.personal.sign"
    assert auth_sig.signed_message == siwe_message
    assert auth_sig.sig.startswith("0x") and len(auth_sig.sig) == 132
    assert auth_sig.recover_address() == signer.address
    assert auth_sig.is_valid()


def test_auth_sig_wire_format(siwe_message, signer):
    auth_sig = generate_auth_sig(signer=signer, to_sign=siwe_message)
    data = auth_sig.to_dict()
    assert list(data) == ["sig", "derivedVia", "signedMessage", "address"]
    assert AuthSig.from_dict(data) == auth_sig
    assert AuthSig.from_json(auth_sig.to_json()) == auth_sig
    assert AuthSig.from_bytes(bytes(auth_sig)) == auth_sig


def test_tampered_auth_sig_is_invalid(siwe_message, signer, another_signer):
    auth_sig = generate_auth_sig(signer=signer, to_sign=siwe_message)

    tampered = AuthSig(sig=auth_sig.sig, signed_message=siwe_message + " ", address=signer.address)
    assert not tampered.is_valid()

    impostor = AuthSig(sig=auth_sig.sig, signed_message=siwe_message, address=another_signer.address)
    assert not impostor.is_valid()
