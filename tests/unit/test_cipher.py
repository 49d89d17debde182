import pytest

from litgate.cipher import EncryptedMessage, LitCipher
from litgate.conditions.lingo import AccessControlCondition, AccessControlConditions
from litgate.exceptions import ConditionMismatch, PlaintextNotText, SessionNotConnected, Stage
from litgate.network.session import LitSession


@pytest.fixture(scope="function")
def cipher(session, conditions):
    return LitCipher(session=session, conditions=conditions)


def test_encrypt(cipher, conditions, lit_backend):
    encrypted_message = cipher.encrypt("Hello, world!")
    assert isinstance(encrypted_message, EncryptedMessage)
    assert encrypted_message.conditions_fingerprint == conditions.fingerprint
    assert encrypted_message.ciphertext in lit_backend.vault
    assert len(encrypted_message.data_to_encrypt_hash) == 64


def test_encrypt_bytes(cipher, nft_holder, delegation):
    plaintext = bytes(range(256))
    encrypted_message = cipher.encrypt(plaintext)
    assert cipher.decrypt(encrypted_message, capacity_delegation_auth_sig=delegation) == plaintext


def test_encrypt_sends_condition_wire_format(cipher, conditions, mocker):
    encrypt = mocker.spy(cipher.session.node_client, "encrypt")
    cipher.encrypt("Hello, world!")
    assert encrypt.call_args.kwargs == {
        "data_to_encrypt": b"Hello, world!",
        "access_control_conditions": conditions.to_list(),
    }


def test_conditions_may_be_given_as_a_list(session, conditions):
    cipher = LitCipher(session=session, conditions=conditions.to_list())
    assert cipher.conditions == conditions


def test_decrypt_sends_fresh_session_signatures(cipher, nft_holder, delegation, mocker):
    encrypted_message = cipher.encrypt("Hello, world!")
    decrypt = mocker.spy(cipher.session.node_client, "decrypt")
    assert cipher.decrypt_string(encrypted_message, capacity_delegation_auth_sig=delegation) == "Hello, world!"

    kwargs = decrypt.call_args.kwargs
    assert kwargs["chain"] == "arbitrum"
    assert kwargs["ciphertext"] == encrypted_message.ciphertext
    assert kwargs["data_to_encrypt_hash"] == encrypted_message.data_to_encrypt_hash
    assert kwargs["access_control_conditions"] == cipher.conditions.to_list()
    assert set(kwargs["session_sigs"]) == set(cipher.session.node_client.backend.NODES)


def test_condition_mismatch_is_caught_before_the_network(
    session, cipher, delegation, get_random_checksum_address, mocker
):
    encrypted_message = cipher.encrypt("Hello, world!")
    other_conditions = AccessControlConditions(
        [AccessControlCondition.nft_ownership(contract_address=get_random_checksum_address(), chain="arbitrum")]
    )
    other_cipher = LitCipher(session=session, conditions=other_conditions)

    get_latest_blockhash = mocker.spy(session.node_client, "get_latest_blockhash")
    decrypt = mocker.spy(session.node_client, "decrypt")
    with pytest.raises(ConditionMismatch):
        other_cipher.decrypt(encrypted_message, capacity_delegation_auth_sig=delegation)
    assert get_latest_blockhash.call_count == 0
    assert decrypt.call_count == 0


def test_missing_fingerprint_defers_to_the_network(cipher, nft_holder, delegation):
    encrypted_message = cipher.encrypt("Hello, world!")
    legacy = EncryptedMessage(
        ciphertext=encrypted_message.ciphertext,
        data_to_encrypt_hash=encrypted_message.data_to_encrypt_hash,
    )
    assert cipher.decrypt_string(legacy, capacity_delegation_auth_sig=delegation) == "Hello, world!"


def test_decrypt_failures_are_tagged(cipher, delegation, node_client):
    encrypted_message = cipher.encrypt("Hello, world!")
    # no tokens held
    with pytest.raises(node_client.ConditionNotSatisfied) as error:
        cipher.decrypt(encrypted_message, capacity_delegation_auth_sig=delegation)
    assert error.value.stage == Stage.DECRYPT


def test_encrypt_failures_are_tagged(cipher, mocker):
    failure = ConnectionError("network unreachable")
    mocker.patch.object(cipher.session.node_client, "encrypt", side_effect=failure)
    with pytest.raises(ConnectionError) as error:
        cipher.encrypt("Hello, world!")
    assert error.value is failure
    assert error.value.stage == Stage.ENCRYPT


def test_cipher_requires_a_connected_session(node_client, signer, conditions):
    session = LitSession(node_client=node_client, signer=signer)
    cipher = LitCipher(session=session, conditions=conditions)
    with pytest.raises(SessionNotConnected):
        cipher.encrypt("Hello, world!")
    with pytest.raises(SessionNotConnected):
        cipher.decrypt(EncryptedMessage(ciphertext="abc", data_to_encrypt_hash="def"))


def test_encrypted_message_serialization(cipher):
    encrypted_message = cipher.encrypt("Hello, world!")
    data = encrypted_message.to_dict()
    assert set(data) == {"ciphertext", "dataToEncryptHash", "conditionsFingerprint"}
    assert EncryptedMessage.from_dict(data) == encrypted_message
    assert EncryptedMessage.from_json(encrypted_message.to_json()) == encrypted_message


def test_decrypt_bare_ciphertext_and_hash(cipher, nft_holder, delegation):
    encrypted_message = cipher.encrypt("Hello, world!")
    pair = (encrypted_message.ciphertext, encrypted_message.data_to_encrypt_hash)
    assert cipher.decrypt_string(pair, capacity_delegation_auth_sig=delegation) == "Hello, world!"


def test_decrypt_string_rejects_binary_plaintext(cipher, nft_holder, delegation):
    encrypted_message = cipher.encrypt(b"\xff\xfe\x00binary")
    with pytest.raises(PlaintextNotText) as error:
        cipher.decrypt_string(encrypted_message, capacity_delegation_auth_sig=delegation)
    assert error.value.stage == Stage.DECRYPT
    assert cipher.decrypt(encrypted_message, capacity_delegation_auth_sig=delegation) == b"\xff\xfe\x00binary"
