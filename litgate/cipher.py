from typing import Optional, Tuple, Union

from marshmallow import fields, post_load

from litgate.auth.siwe import AuthSig
from litgate.conditions.base import CamelCaseSchema, _Serializable
from litgate.conditions.lingo import AccessControlConditions
from litgate.exceptions import ConditionMismatch, PlaintextNotText, Stage, stage
from litgate.utilities.logging import Logger


class EncryptedMessage(_Serializable):
    """Ciphertext and plaintext hash returned by the network, tagged with the conditions it is bound to."""

    class Schema(CamelCaseSchema):
        ciphertext = fields.Str(required=True)
        data_to_encrypt_hash = fields.Str(required=True)
        conditions_fingerprint = fields.Str(required=False, allow_none=True)

        @post_load
        def make(self, data, **kwargs):
            return EncryptedMessage(**data)

    def __init__(
        self,
        ciphertext: str,
        data_to_encrypt_hash: str,
        conditions_fingerprint: Optional[str] = None,
    ):
        self.ciphertext = ciphertext
        self.data_to_encrypt_hash = data_to_encrypt_hash
        self.conditions_fingerprint = conditions_fingerprint

    def __eq__(self, other) -> bool:
        return isinstance(other, EncryptedMessage) and other.to_dict() == self.to_dict()

    def __hash__(self) -> int:
        return hash((self.ciphertext, self.data_to_encrypt_hash, self.conditions_fingerprint))

    def __repr__(self) -> str:
        return f"EncryptedMessage(hash={self.data_to_encrypt_hash[:10]}, {len(self.ciphertext)} chars)"


class LitCipher:
    """
    Encrypts under, and decrypts subject to, one fixed set of access control conditions.

    Every decryption runs a fresh session authorization round; session signatures are
    never reused between calls.
    """

    def __init__(self, session, conditions: AccessControlConditions):
        if not isinstance(conditions, AccessControlConditions):
            conditions = AccessControlConditions(conditions)
        self.session = session
        self.conditions = conditions
        self.log = Logger(self.__class__.__name__)

    def encrypt(self, plaintext: Union[str, bytes]) -> EncryptedMessage:
        self.session._ensure_connected()
        if isinstance(plaintext, str):
            plaintext = plaintext.encode()

        with stage(Stage.ENCRYPT):
            response = self.session.node_client.encrypt(
                data_to_encrypt=plaintext,
                access_control_conditions=self.conditions.to_list(),
            )

        self.log.info(f"Encrypted {len(plaintext)} bytes under {len(self.conditions.conditions)} condition(s)")
        return EncryptedMessage(
            ciphertext=response.ciphertext,
            data_to_encrypt_hash=response.data_to_encrypt_hash,
            conditions_fingerprint=self.conditions.fingerprint,
        )

    def _check_conditions(self, encrypted_message: EncryptedMessage) -> None:
        recorded = encrypted_message.conditions_fingerprint
        if recorded is None:
            self.log.warn(
                "Encrypted message carries no conditions fingerprint; "
                "relying on the network to match the conditions"
            )
            return
        if recorded != self.conditions.fingerprint:
            raise ConditionMismatch(
                f"Message was encrypted under conditions {recorded}, "
                f"not {self.conditions.fingerprint}"
            )

    def decrypt(
        self,
        encrypted_message: Union[EncryptedMessage, Tuple[str, str]],
        capacity_delegation_auth_sig: Optional[AuthSig] = None,
    ) -> bytes:
        """Accepts an `EncryptedMessage` or a bare (ciphertext, data_to_encrypt_hash) pair."""
        self.session._ensure_connected()
        if not isinstance(encrypted_message, EncryptedMessage):
            ciphertext, data_to_encrypt_hash = encrypted_message
            encrypted_message = EncryptedMessage(ciphertext=ciphertext, data_to_encrypt_hash=data_to_encrypt_hash)
        self._check_conditions(encrypted_message)

        issuer = self.session.session_credentials()
        session_sigs = issuer.get_session_signatures(
            capacity_delegation_auth_sig=capacity_delegation_auth_sig
        )

        with stage(Stage.DECRYPT):
            plaintext = self.session.node_client.decrypt(
                access_control_conditions=self.conditions.to_list(),
                chain=str(self.session.chain),
                ciphertext=encrypted_message.ciphertext,
                data_to_encrypt_hash=encrypted_message.data_to_encrypt_hash,
                session_sigs=session_sigs.to_dict(),
            )

        self.log.info(f"Decrypted {len(plaintext)} bytes")
        return bytes(plaintext)

    def decrypt_string(
        self,
        encrypted_message: Union[EncryptedMessage, Tuple[str, str]],
        capacity_delegation_auth_sig: Optional[AuthSig] = None,
    ) -> str:
        plaintext = self.decrypt(encrypted_message, capacity_delegation_auth_sig)
        try:
            return plaintext.decode()
        except UnicodeDecodeError as e:
            raise PlaintextNotText(f"Decrypted {len(plaintext)} bytes are not UTF-8 text: {e.reason}") from e
