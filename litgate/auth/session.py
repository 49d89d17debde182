"""
Session credential issuance.

Every decryption attempt runs a fresh authorization round:

    1. fetch a freshness anchor (the latest blockhash) from the network;
    2. hand the network an `AuthCallback` bound to the wallet and that anchor;
    3. request exactly one resource/ability pair: any access control condition x decryption;
    4. let the network run its per-node handshake, invoking the callback whenever it needs
       a wallet-signed statement, and collect the resulting session signatures.

Nothing produced here is cached; session signatures are meant for a single decrypt call.
"""

from collections.abc import Mapping
from typing import Any, Dict, Iterator, List, NamedTuple, Optional, Sequence, Union

import maya
from eth_typing import ChecksumAddress

from litgate.auth.resources import (
    LitAbility,
    LitAccessControlConditionResource,
    ResourceAbilityRequest,
)
from litgate.auth.siwe import (
    DEFAULT_DOMAIN,
    DEFAULT_STATEMENT,
    AuthSig,
    create_siwe_message_with_recaps,
    generate_auth_sig,
)
from litgate.blockchain.chains import Chain, get_chain
from litgate.blockchain.signers.base import Signer
from litgate.exceptions import MissingAuthCallbackParameter, Stage, stage
from litgate.utilities.logging import Logger

DEFAULT_SESSION_TTL_MINUTES = 10


class AuthCallbackParams(NamedTuple):
    """What the network supplies when it asks the wallet for a signed statement."""

    uri: Optional[str] = None
    expiration: Optional[str] = None
    resource_ability_requests: Optional[Sequence[ResourceAbilityRequest]] = None
    chain: Optional[str] = None
    statement: Optional[str] = None
    nonce: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AuthCallbackParams":
        requests = data.get("resourceAbilityRequests")
        if requests is not None:
            requests = [
                r if isinstance(r, ResourceAbilityRequest) else ResourceAbilityRequest.from_dict(r)
                for r in requests
            ]
        return cls(
            uri=data.get("uri"),
            expiration=data.get("expiration"),
            resource_ability_requests=requests,
            chain=data.get("chain"),
            statement=data.get("statement"),
            nonce=data.get("nonce"),
        )


class SessionStatement(NamedTuple):
    """The sign-in statement for one authorization round. Discarded once signed."""

    uri: str
    expiration: str
    resource_ability_requests: Sequence[ResourceAbilityRequest]
    wallet_address: ChecksumAddress
    nonce: str

    def prepare_message(self, domain: str = DEFAULT_DOMAIN, statement: str = DEFAULT_STATEMENT) -> str:
        return create_siwe_message_with_recaps(
            wallet_address=self.wallet_address,
            uri=self.uri,
            expiration=self.expiration,
            nonce=self.nonce,
            resources=self.resource_ability_requests,
            statement=statement,
            domain=domain,
        )


class AuthCallback:
    """
    The capability handed to the network's authorization negotiation.

    Reads only the signer, its address and the freshness anchor, all fixed at construction,
    so the network may invoke it repeatedly and concurrently (i.e. once per node).
    """

    REQUIRED_PARAMETERS = ("uri", "expiration", "resource_ability_requests")

    def __init__(
        self,
        signer: Signer,
        nonce: str,
        domain: str = DEFAULT_DOMAIN,
        statement: str = DEFAULT_STATEMENT,
    ):
        if not nonce:
            raise ValueError("A freshness anchor is required to sign session statements")
        self.__signer = signer
        self.__address = signer.address
        self.__nonce = nonce
        self.__domain = domain
        self.__statement = statement
        self.log = Logger(self.__class__.__name__)

    @property
    def nonce(self) -> str:
        return self.__nonce

    @property
    def address(self) -> ChecksumAddress:
        return self.__address

    @classmethod
    def _check_required(cls, params: AuthCallbackParams) -> None:
        for name in cls.REQUIRED_PARAMETERS:
            value = getattr(params, name)
            if not value:
                # camelCase to match the network's parameter names
                parameter = {"resource_ability_requests": "resourceAbilityRequests"}.get(name, name)
                raise MissingAuthCallbackParameter(parameter)

    def __call__(self, params: Union[AuthCallbackParams, Dict[str, Any]]) -> AuthSig:
        if isinstance(params, dict):
            params = AuthCallbackParams.from_dict(params)
        self._check_required(params)

        statement = SessionStatement(
            uri=params.uri,
            expiration=params.expiration,
            resource_ability_requests=list(params.resource_ability_requests),
            wallet_address=self.__address,
            nonce=self.__nonce,
        )
        to_sign = statement.prepare_message(domain=self.__domain, statement=self.__statement)
        auth_sig = generate_auth_sig(signer=self.__signer, to_sign=to_sign, address=self.__address)
        self.log.debug(f"Signed session statement for {params.uri} (expires {params.expiration})")
        return auth_sig


class SessionSignatures(Mapping):
    """Node identifier -> session signature, valid for one resource/ability scope until `expiration`."""

    def __init__(
        self,
        signatures: Dict[str, Any],
        nonce: str,
        expiration: str,
        resource_ability_requests: Sequence[ResourceAbilityRequest],
    ):
        self.__signatures = dict(signatures)
        self.nonce = nonce
        self.expiration = expiration
        self.resource_ability_requests = tuple(resource_ability_requests)

    def __getitem__(self, node: str) -> Any:
        return self.__signatures[node]

    def __iter__(self) -> Iterator[str]:
        return iter(self.__signatures)

    def __len__(self) -> int:
        return len(self.__signatures)

    @property
    def is_expired(self) -> bool:
        return maya.now() > maya.MayaDT.from_iso8601(self.expiration)

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.__signatures)

    def __repr__(self) -> str:
        return f"<SessionSignatures {len(self)} nodes, nonce {self.nonce[:10]}, expires {self.expiration}>"


class SessionCredentialIssuer:

    def __init__(
        self,
        node_client,
        signer: Signer,
        chain: Union[str, Chain],
        domain: str = DEFAULT_DOMAIN,
        session_ttl_minutes: int = DEFAULT_SESSION_TTL_MINUTES,
    ):
        self.node_client = node_client
        self.signer = signer
        self.chain = get_chain(chain)
        self.domain = domain
        self.session_ttl_minutes = session_ttl_minutes
        self.log = Logger(self.__class__.__name__)

    @staticmethod
    def resource_ability_requests() -> List[ResourceAbilityRequest]:
        """Decryption of anything gated by access control conditions; nothing more."""
        request = ResourceAbilityRequest(
            resource=LitAccessControlConditionResource("*"),
            ability=LitAbility.AccessControlConditionDecryption,
        )
        return [request.validate()]

    def _expiration(self) -> str:
        return maya.now().add(minutes=self.session_ttl_minutes).iso8601()

    def get_session_signatures(self, capacity_delegation_auth_sig: Optional[AuthSig] = None) -> SessionSignatures:
        with stage(Stage.AUTHORIZE):
            latest_blockhash = self.node_client.get_latest_blockhash()
            auth_callback = AuthCallback(
                signer=self.signer, nonce=latest_blockhash, domain=self.domain
            )
            requests = self.resource_ability_requests()
            expiration = self._expiration()

            self.log.debug(f"Requesting session signatures on {self.chain} with nonce {latest_blockhash}")
            signatures = self.node_client.get_session_sigs(
                chain=str(self.chain),
                resource_ability_requests=requests,
                auth_callback=auth_callback,
                capacity_delegation_auth_sig=capacity_delegation_auth_sig,
                expiration=expiration,
            )

        session_signatures = SessionSignatures(
            signatures=signatures,
            nonce=latest_blockhash,
            expiration=expiration,
            resource_ability_requests=requests,
        )
        self.log.info(f"Obtained session signatures from {len(session_signatures)} node(s)")
        return session_signatures
