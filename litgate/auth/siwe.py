from typing import Any, Iterable, Optional, Union

import maya
from eth_account.account import Account
from eth_account.messages import encode_defunct
from eth_typing import ChecksumAddress
from eth_utils import encode_hex, is_checksum_address
from marshmallow import fields, post_load
from siwe import SiweMessage

from litgate.auth.recap import Recap
from litgate.auth.resources import ResourceAbilityRequest
from litgate.blockchain.signers.base import Signer
from litgate.conditions.base import CamelCaseSchema, _Serializable

DERIVED_VIA = "web3.eth.personal.sign"

DEFAULT_DOMAIN = "localhost"
DEFAULT_STATEMENT = "Authorize a Lit session to decrypt on behalf of this wallet."
DEFAULT_SIWE_CHAIN_ID = 1
SIWE_VERSION = "1"


class AuthSig(_Serializable):
    """A wallet signature over a plaintext message, as exchanged with the decryption network."""

    class Schema(CamelCaseSchema):
        sig = fields.Str(required=True)
        derived_via = fields.Str(required=True)
        signed_message = fields.Str(required=True)
        address = fields.Str(required=True)

        class Meta:
            ordered = True

        @post_load
        def make(self, data, **kwargs):
            return AuthSig(**data)

    def __init__(
        self,
        sig: str,
        signed_message: str,
        address: str,
        derived_via: str = DERIVED_VIA,
    ):
        self.sig = sig
        self.signed_message = signed_message
        self.address = address
        self.derived_via = derived_via

    @property
    def signature(self) -> str:
        return self.sig

    def recover_address(self) -> ChecksumAddress:
        return Account.recover_message(
            encode_defunct(text=self.signed_message), signature=self.sig
        )

    def is_valid(self) -> bool:
        """True when the signature was produced by the claimed address over the signed message."""
        try:
            return self.recover_address() == self.address
        except (ValueError, TypeError):
            return False

    def siwe_message(self) -> SiweMessage:
        return SiweMessage.from_message(message=self.signed_message)

    def __eq__(self, other: Any) -> bool:
        return isinstance(other, AuthSig) and other.to_dict() == self.to_dict()

    def __hash__(self) -> int:
        return hash((self.sig, self.signed_message, self.address))

    def __repr__(self) -> str:
        return f"AuthSig(address={self.address}, sig={self.sig[:10]}...)"


def _iso8601(value: Union[str, maya.MayaDT]) -> str:
    if isinstance(value, maya.MayaDT):
        return value.iso8601()
    return str(value)


def create_siwe_message_with_recaps(
    wallet_address: ChecksumAddress,
    uri: str,
    expiration: Union[str, maya.MayaDT],
    nonce: str,
    resources: Union[Recap, Iterable[ResourceAbilityRequest]],
    statement: str = DEFAULT_STATEMENT,
    domain: str = DEFAULT_DOMAIN,
    chain_id: int = DEFAULT_SIWE_CHAIN_ID,
    issued_at: Optional[Union[str, maya.MayaDT]] = None,
) -> str:
    """
    Renders an EIP-4361 message whose statement and resources carry the ReCap
    for the requested resource/ability pairs.
    """
    if not is_checksum_address(wallet_address):
        raise ValueError(f"{wallet_address} is not a checksum address")

    recap = resources if isinstance(resources, Recap) else Recap.from_requests(resources)
    full_statement = f"{statement} {recap.statement()}" if statement else recap.statement()

    message = SiweMessage(
        domain=domain,
        address=wallet_address,
        statement=full_statement,
        uri=uri,
        version=SIWE_VERSION,
        chain_id=chain_id,
        nonce=nonce,
        issued_at=_iso8601(issued_at or maya.now()),
        expiration_time=_iso8601(expiration),
        resources=[recap.encode()],
    )
    return message.prepare_message()


def generate_auth_sig(
    signer: Signer, to_sign: str, address: Optional[ChecksumAddress] = None
) -> AuthSig:
    address = address or signer.address
    signature = signer.sign_message(account=address, message=to_sign.encode())
    return AuthSig(
        sig=encode_hex(bytes(signature)),
        signed_message=to_sign,
        address=address,
    )
