import importlib
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterable, List, NamedTuple, Optional, Type, Union

import maya

from litgate.auth.delegation import issue_delegation
from litgate.auth.resources import ResourceAbilityRequest
from litgate.auth.siwe import AuthSig
from litgate.blockchain.chains import DEFAULT_NETWORK, LitNetwork
from litgate.blockchain.signers.base import Signer
from litgate.exceptions import ConfigurationError
from litgate.utilities.logging import Logger

AuthCallbackType = Callable[[Any], AuthSig]


class EncryptionResponse(NamedTuple):
    ciphertext: str
    data_to_encrypt_hash: str


class LitNodeClient(ABC):
    """
    Boundary to the threshold decryption network.

    Implementations own the network connection and the per-node handshakes; errors they
    raise (transport failures, refused conditions, exhausted capacity, expired sessions)
    are propagated to callers untouched.
    """

    class NodeClientError(Exception):
        """Base exception class for node client errors"""

    def __init__(self, network: LitNetwork = DEFAULT_NETWORK, debug: bool = False):
        self.network = network
        self.debug = debug
        self.log = Logger(self.__class__.__name__)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.network})"

    @abstractmethod
    def connect(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def disconnect(self) -> None:
        raise NotImplementedError

    @property
    @abstractmethod
    def ready(self) -> bool:
        raise NotImplementedError

    @abstractmethod
    def get_latest_blockhash(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def encrypt(
        self, data_to_encrypt: bytes, access_control_conditions: List[Dict[str, Any]]
    ) -> EncryptionResponse:
        raise NotImplementedError

    @abstractmethod
    def decrypt(
        self,
        access_control_conditions: List[Dict[str, Any]],
        chain: str,
        ciphertext: str,
        data_to_encrypt_hash: str,
        session_sigs: Dict[str, Any],
    ) -> bytes:
        raise NotImplementedError

    @abstractmethod
    def get_session_sigs(
        self,
        chain: str,
        resource_ability_requests: List[ResourceAbilityRequest],
        auth_callback: AuthCallbackType,
        capacity_delegation_auth_sig: Optional[AuthSig] = None,
        expiration: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Runs the session handshake with every node, invoking `auth_callback` with an
        `AuthCallbackParams` whenever a wallet-signed statement is needed.
        """
        raise NotImplementedError

    def create_capacity_delegation_auth_sig(
        self,
        dapp_owner_signer: Signer,
        capacity_token_id: Union[str, int],
        delegatee_addresses: Iterable[str],
        uses: int,
        expiration: Optional[Union[str, maya.MayaDT]] = None,
    ) -> AuthSig:
        """Delegation statements are signed locally, anchored to the latest network blockhash."""
        return issue_delegation(
            owner=dapp_owner_signer,
            capacity_token_id=capacity_token_id,
            delegatee_addresses=delegatee_addresses,
            uses=uses,
            expiration=expiration,
            nonce=self.get_latest_blockhash(),
        )


def load_node_client_class(import_path: str) -> Type[LitNodeClient]:
    """Resolves 'package.module:ClassName' to a LitNodeClient implementation."""
    module_name, separator, class_name = (import_path or "").partition(":")
    if not separator or not module_name or not class_name:
        raise ConfigurationError(
            f"Node client must be given as 'package.module:ClassName', not '{import_path}'"
        )
    try:
        module = importlib.import_module(module_name)
        client_class = getattr(module, class_name)
    except (ImportError, AttributeError) as e:
        raise ConfigurationError(f"Unable to load node client '{import_path}': {e}") from e
    if not (isinstance(client_class, type) and issubclass(client_class, LitNodeClient)):
        raise ConfigurationError(f"{import_path} is not a LitNodeClient implementation")
    return client_class
