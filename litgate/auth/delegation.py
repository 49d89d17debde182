from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import maya
from cytoolz.itertoolz import unique
from eth_typing import ChecksumAddress
from eth_utils import is_address, to_checksum_address
from siwe import generate_nonce

from litgate.auth.recap import InvalidRecap, Recap
from litgate.auth.resources import (
    LitAbility,
    LitRateLimitIncreaseResource,
    ResourceAbilityRequest,
)
from litgate.auth.siwe import (
    DEFAULT_DOMAIN,
    AuthSig,
    create_siwe_message_with_recaps,
    generate_auth_sig,
)
from litgate.blockchain.signers.base import Signer
from litgate.exceptions import InvalidDelegationRequest
from litgate.utilities.logging import Logger

CAPACITY_DELEGATION_URI = "lit:capability:delegation"
CAPACITY_DELEGATION_STATEMENT = "Delegate rate-limit capacity to the listed addresses."
DEFAULT_DELEGATION_LIFETIME_DAYS = 7

LOG = Logger("capacity-delegation")


def _strip_hex_prefix(address: str) -> str:
    return address[2:] if address.lower().startswith("0x") else address


def _distinct_addresses(addresses: Iterable[str]) -> List[ChecksumAddress]:
    """Checksummed, first occurrence wins."""
    return list(unique(to_checksum_address(address) for address in addresses))


def create_capacity_credits_resource_data(
    capacity_token_id: str,
    delegatee_addresses: Iterable[str],
    uses: int,
) -> Dict[str, Any]:
    """The ReCap nota bene restricting who may consume the allocation, and how often."""
    return {
        "nft_id": [capacity_token_id],
        "delegate_to": [_strip_hex_prefix(address) for address in _distinct_addresses(delegatee_addresses)],
        "uses": str(uses),
    }


def _validate_request(
    capacity_token_id: Union[str, int],
    delegatee_addresses: Iterable[str],
    uses: int,
) -> Tuple[str, List[str], int]:
    capacity_token_id = str(capacity_token_id).strip()
    if not capacity_token_id.isdigit():
        raise InvalidDelegationRequest(
            f"Capacity token ID must be a non-negative integer, not '{capacity_token_id}'"
        )

    delegatee_addresses = list(delegatee_addresses or [])
    if not delegatee_addresses:
        raise InvalidDelegationRequest("At least one delegatee address is required")
    for address in delegatee_addresses:
        if not is_address(address):
            raise InvalidDelegationRequest(f"{address} is not a valid delegatee address")
    delegatee_addresses = _distinct_addresses(delegatee_addresses)

    if isinstance(uses, bool) or not isinstance(uses, int) or uses < 1:
        raise InvalidDelegationRequest(f"Uses must be a positive integer, not {uses!r}")

    return capacity_token_id, delegatee_addresses, uses


def issue_delegation(
    owner: Signer,
    capacity_token_id: Union[str, int],
    delegatee_addresses: Iterable[str],
    uses: int,
    expiration: Optional[Union[str, maya.MayaDT]] = None,
    nonce: Optional[str] = None,
    domain: str = DEFAULT_DOMAIN,
) -> AuthSig:
    """
    Signs, as the owner of capacity allocation `capacity_token_id`, a statement permitting
    `delegatee_addresses` to consume up to `uses` requests of it.

    The returned AuthSig is a bearer credential; the network enforces the use counter.
    """
    capacity_token_id, delegatee_addresses, uses = _validate_request(
        capacity_token_id, delegatee_addresses, uses
    )
    expiration = expiration or maya.now().add(days=DEFAULT_DELEGATION_LIFETIME_DAYS)

    request = ResourceAbilityRequest(
        resource=LitRateLimitIncreaseResource(capacity_token_id),
        ability=LitAbility.RateLimitIncreaseAuth,
        data=create_capacity_credits_resource_data(
            capacity_token_id=capacity_token_id,
            delegatee_addresses=delegatee_addresses,
            uses=uses,
        ),
    )
    to_sign = create_siwe_message_with_recaps(
        wallet_address=owner.address,
        uri=CAPACITY_DELEGATION_URI,
        expiration=expiration,
        nonce=nonce or generate_nonce(),
        resources=[request],
        statement=CAPACITY_DELEGATION_STATEMENT,
        domain=domain,
    )
    auth_sig = generate_auth_sig(signer=owner, to_sign=to_sign)
    LOG.info(
        f"Issued capacity delegation for token #{capacity_token_id} "
        f"to {len(delegatee_addresses)} delegatee(s) ({uses} uses)"
    )
    return auth_sig


class CapacityDelegation:
    """Read-only view over a capacity delegation AuthSig."""

    class InvalidDelegation(ValueError):
        pass

    def __init__(
        self,
        delegator: ChecksumAddress,
        capacity_token_id: str,
        delegatee_addresses: List[ChecksumAddress],
        uses: int,
        expiration: maya.MayaDT,
    ):
        self.delegator = delegator
        self.capacity_token_id = capacity_token_id
        self.delegatee_addresses = delegatee_addresses
        self.uses = uses
        self.expiration = expiration

    @classmethod
    def from_auth_sig(cls, auth_sig: AuthSig) -> "CapacityDelegation":
        try:
            message = auth_sig.siwe_message()
            recap = Recap.extract(message.resources)
        except (InvalidRecap, ValueError) as e:
            raise cls.InvalidDelegation(f"Not a capacity delegation: {e}") from e

        namespace, ability = ("Auth", "Auth")
        grants = [
            key for key in recap.attenuations
            if key.startswith(f"{LitRateLimitIncreaseResource.PREFIX.value}://")
            and recap.has_capability(key, namespace, ability)
        ]
        if len(grants) != 1:
            raise cls.InvalidDelegation("Expected exactly one rate-limit increase grant")

        resource_key = grants[0]
        nota_bene = recap.nota_bene(resource_key, namespace, ability)
        try:
            delegatees = [to_checksum_address(f"0x{a}") for a in nota_bene["delegate_to"]]
            uses = int(nota_bene["uses"])
        except (KeyError, ValueError) as e:
            raise cls.InvalidDelegation(f"Malformed delegation restrictions: {e}") from e

        return cls(
            delegator=to_checksum_address(message.address),
            capacity_token_id=resource_key.split("://", 1)[1],
            delegatee_addresses=delegatees,
            uses=uses,
            expiration=maya.MayaDT.from_iso8601(str(message.expiration_time)),
        )

    def permits(self, address: str) -> bool:
        return to_checksum_address(address) in self.delegatee_addresses

    @property
    def is_expired(self) -> bool:
        return maya.now() > self.expiration

    def __repr__(self) -> str:
        return (
            f"CapacityDelegation(token={self.capacity_token_id}, "
            f"delegator={self.delegator}, delegatees={len(self.delegatee_addresses)}, uses={self.uses})"
        )
