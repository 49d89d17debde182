import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

from eth_utils import is_address

from litgate.blockchain.chains import (
    UnrecognizedChain,
    UnrecognizedLitNetwork,
    get_chain,
    get_network,
)
from litgate.blockchain.signers.software import InMemorySigner
from litgate.config.constants import (
    DEFAULT_CHAIN,
    DEFAULT_CONFIG_FILENAME,
    DEFAULT_CONFIG_ROOT,
    DEFAULT_NETWORK,
    LEGACY_ENVVAR_PRIVATE_KEY,
    LITGATE_ENVVAR_CHAIN,
    LITGATE_ENVVAR_NETWORK,
    LITGATE_ENVVAR_NODE_CLIENT,
    LITGATE_ENVVAR_PRIVATE_KEY,
    LITGATE_ENVVAR_RATE_LIMIT_NFT_ADDRESS,
    LITGATE_ENVVAR_RPC_ENDPOINT,
)
from litgate.exceptions import ConfigurationError
from litgate.utilities.logging import Logger


class LitConfiguration:
    """
    Runtime settings, resolved from (lowest to highest precedence) defaults,
    a JSON configuration file, environment variables and explicit overrides.

    The private key is only ever read from the environment or passed explicitly;
    it is never written to, nor read from, the configuration file.
    """

    DEFAULT_CONFIG_FILEPATH = DEFAULT_CONFIG_ROOT / DEFAULT_CONFIG_FILENAME

    _ENVIRONMENT = {
        "chain": LITGATE_ENVVAR_CHAIN,
        "network": LITGATE_ENVVAR_NETWORK,
        "rpc_endpoint": LITGATE_ENVVAR_RPC_ENDPOINT,
        "rate_limit_nft_address": LITGATE_ENVVAR_RATE_LIMIT_NFT_ADDRESS,
        "node_client": LITGATE_ENVVAR_NODE_CLIENT,
    }
    _FILE_FIELDS = tuple(_ENVIRONMENT)

    log = Logger("config")

    def __init__(
        self,
        private_key: Optional[str],
        chain: str = DEFAULT_CHAIN,
        network: str = DEFAULT_NETWORK,
        rpc_endpoint: Optional[str] = None,
        rate_limit_nft_address: Optional[str] = None,
        node_client: Optional[str] = None,
    ):
        if not private_key:
            raise ConfigurationError(
                f"{LITGATE_ENVVAR_PRIVATE_KEY} environment variable is required"
            )
        try:
            self.chain = get_chain(chain)
            self.network = get_network(network)
        except (UnrecognizedChain, UnrecognizedLitNetwork, TypeError) as e:
            raise ConfigurationError(str(e)) from e
        if rate_limit_nft_address and not is_address(rate_limit_nft_address):
            raise ConfigurationError(
                f"{rate_limit_nft_address} is not a valid rate-limit NFT contract address"
            )

        self.__private_key = private_key
        self.rpc_endpoint = rpc_endpoint or self.network.rpc_endpoint
        self.rate_limit_nft_address = rate_limit_nft_address
        self.node_client = node_client

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(chain={self.chain}, network={self.network})"

    @classmethod
    def _read_configuration_file(cls, filepath: Path) -> Dict[str, Any]:
        try:
            with open(filepath, "r") as file:
                payload = json.load(file)
        except FileNotFoundError:
            raise ConfigurationError(f"No configuration file found at {filepath}")
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid configuration file {filepath}: {e}") from e
        if not isinstance(payload, dict):
            raise ConfigurationError(f"Invalid configuration file {filepath}: expected an object")
        unknown = set(payload) - set(cls._FILE_FIELDS)
        if unknown:
            raise ConfigurationError(
                f"Unknown configuration field(s) in {filepath}: {', '.join(sorted(unknown))}"
            )
        return payload

    @classmethod
    def from_environment(
        cls, config_file: Optional[Path] = None, environ: Optional[Dict[str, str]] = None, **overrides
    ) -> "LitConfiguration":
        environ = os.environ if environ is None else environ
        payload: Dict[str, Any] = dict()

        if config_file:
            payload.update(cls._read_configuration_file(Path(config_file)))
        elif cls.DEFAULT_CONFIG_FILEPATH.exists():
            payload.update(cls._read_configuration_file(cls.DEFAULT_CONFIG_FILEPATH))

        for field, envvar in cls._ENVIRONMENT.items():
            value = environ.get(envvar)
            if value:
                payload[field] = value

        payload.update({k: v for k, v in overrides.items() if v is not None})
        private_key = payload.pop("private_key", None) or environ.get(
            LITGATE_ENVVAR_PRIVATE_KEY
        ) or environ.get(LEGACY_ENVVAR_PRIVATE_KEY)
        return cls(private_key=private_key, **payload)

    def to_configuration_file(self, filepath: Optional[Path] = None) -> Path:
        filepath = Path(filepath or self.DEFAULT_CONFIG_FILEPATH)
        filepath.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "chain": str(self.chain),
            "network": str(self.network),
            "rpc_endpoint": self.rpc_endpoint,
            "rate_limit_nft_address": self.rate_limit_nft_address,
            "node_client": self.node_client,
        }
        with open(filepath, "w") as file:
            json.dump({k: v for k, v in payload.items() if v is not None}, file, indent=4)
        self.log.info(f"Wrote configuration to {filepath}")
        return filepath

    def produce_signer(self) -> InMemorySigner:
        try:
            return InMemorySigner(private_key=self.__private_key)
        except (ValueError, TypeError) as e:
            raise ConfigurationError(f"Invalid private key: {e.__class__.__name__}") from e
