from typing import Iterable, Optional, Tuple, Union

import maya

from litgate.auth.delegation import issue_delegation
from litgate.auth.session import SessionCredentialIssuer
from litgate.auth.siwe import AuthSig
from litgate.blockchain.chains import Chain, get_chain
from litgate.blockchain.contracts import ContractClient, RateLimitNFTClient
from litgate.blockchain.signers.base import Signer
from litgate.config.constants import (
    DEFAULT_CHAIN,
    DEFAULT_DAYS_UNTIL_UTC_MIDNIGHT_EXPIRATION,
    DEFAULT_DELEGATION_USES,
    DEFAULT_REQUESTS_PER_KILOSECOND,
)
from litgate.exceptions import ConfigurationError, SessionNotConnected, Stage, stage
from litgate.network.client import LitNodeClient, load_node_client_class
from litgate.utilities.logging import Logger


class LitSession:
    """
    Owns the connections to the decryption network and, optionally, to the chain hosting
    the rate-limit NFT contract. Used as a context manager, both are released on every exit path:

        with LitSession(node_client=client, signer=signer) as session:
            cipher = LitCipher(session=session, conditions=conditions)
            ...
    """

    def __init__(
        self,
        node_client: LitNodeClient,
        signer: Signer,
        chain: Union[str, Chain] = DEFAULT_CHAIN,
        contract_client: Optional[ContractClient] = None,
    ):
        self.node_client = node_client
        self.signer = signer
        self.chain = get_chain(chain)
        self.contract_client = contract_client
        self.log = Logger(self.__class__.__name__)
        self.__connected = False

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.node_client}, chain={self.chain}, connected={self.__connected})"

    @classmethod
    def from_configuration(cls, config) -> "LitSession":
        if not config.node_client:
            raise ConfigurationError("A node client import path is required to reach the network")
        node_client_class = load_node_client_class(config.node_client)
        node_client = node_client_class(network=config.network)

        signer = config.produce_signer()
        contract_client = None
        if config.rate_limit_nft_address:
            contract_client = RateLimitNFTClient(
                endpoint=config.rpc_endpoint,
                contract_address=config.rate_limit_nft_address,
                signer=signer,
            )
        return cls(
            node_client=node_client,
            signer=signer,
            chain=config.chain,
            contract_client=contract_client,
        )

    #
    # Lifecycle
    #

    def connect(self) -> None:
        with stage(Stage.CONNECT):
            self.node_client.connect()
            if self.contract_client:
                try:
                    self.contract_client.connect()
                except Exception:
                    self.node_client.disconnect()
                    raise
        self.__connected = True
        self.log.info(f"Connected to {self.node_client.network}")

    def disconnect(self) -> None:
        try:
            self.node_client.disconnect()
        finally:
            try:
                if self.contract_client:
                    self.contract_client.disconnect()
            finally:
                self.__connected = False
                self.log.debug("Disconnected")

    def __enter__(self) -> "LitSession":
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.disconnect()

    @property
    def is_connected(self) -> bool:
        return self.__connected

    def _ensure_connected(self) -> None:
        if not self.__connected:
            raise SessionNotConnected(f"{self} must be connected first")

    #
    # Capacity
    #

    def mint_capacity_credits(
        self,
        requests_per_kilosecond: int = DEFAULT_REQUESTS_PER_KILOSECOND,
        days_until_utc_midnight_expiration: int = DEFAULT_DAYS_UNTIL_UTC_MIDNIGHT_EXPIRATION,
        delegatee_addresses: Optional[Iterable[str]] = None,
        uses: int = DEFAULT_DELEGATION_USES,
    ) -> Tuple[str, AuthSig]:
        """
        Mints a capacity allocation owned by this session's signer and delegates it to
        `delegatee_addresses` (the signer itself by default).
        """
        self._ensure_connected()
        if not self.contract_client:
            raise ConfigurationError("Minting capacity credits requires a rate-limit NFT contract address")

        with stage(Stage.MINT):
            capacity_token_id = self.contract_client.mint_capacity_credits(
                requests_per_kilosecond=requests_per_kilosecond,
                days_until_utc_midnight_expiration=days_until_utc_midnight_expiration,
            )

        delegation = self.issue_delegation(
            capacity_token_id=capacity_token_id,
            delegatee_addresses=delegatee_addresses or [self.signer.address],
            uses=uses,
        )
        return capacity_token_id, delegation

    def issue_delegation(
        self,
        capacity_token_id: Union[str, int],
        delegatee_addresses: Iterable[str],
        uses: int = DEFAULT_DELEGATION_USES,
        expiration: Optional[Union[str, maya.MayaDT]] = None,
    ) -> AuthSig:
        with stage(Stage.DELEGATE):
            if self.__connected:
                return self.node_client.create_capacity_delegation_auth_sig(
                    dapp_owner_signer=self.signer,
                    capacity_token_id=capacity_token_id,
                    delegatee_addresses=delegatee_addresses,
                    uses=uses,
                    expiration=expiration,
                )
            # Offline: no blockhash to anchor to, a random nonce is used instead.
            return issue_delegation(
                owner=self.signer,
                capacity_token_id=capacity_token_id,
                delegatee_addresses=delegatee_addresses,
                uses=uses,
                expiration=expiration,
            )

    #
    # Authorization
    #

    def session_credentials(self) -> SessionCredentialIssuer:
        self._ensure_connected()
        return SessionCredentialIssuer(
            node_client=self.node_client, signer=self.signer, chain=self.chain
        )
