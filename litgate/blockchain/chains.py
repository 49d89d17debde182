from enum import Enum
from typing import Any, Dict, NamedTuple

from cytoolz.functoolz import memoize


class UnrecognizedChain(Exception):
    """Raised when a chain is not in the supported-chains registry."""


class UnrecognizedLitNetwork(Exception):
    """Raised when a Lit network name is not recognized."""


class ChainInfo(NamedTuple):
    id: int
    name: str


# Names must match the identifiers of the Lit supported-chains registry
class Chain(ChainInfo, Enum):
    ETHEREUM = (1, "ethereum")
    POLYGON = (137, "polygon")
    ARBITRUM = (42161, "arbitrum")
    ARBITRUM_SEPOLIA = (421614, "arbitrumSepolia")
    BASE = (8453, "base")
    BASE_SEPOLIA = (84532, "baseSepoliaTestnet")
    SEPOLIA = (11155111, "sepolia")
    YELLOWSTONE = (175188, "yellowstone")

    def __str__(self) -> str:
        return self.value.name


class LitNetwork:
    def __init__(self, name: str, rpc_endpoint: str, requires_capacity: bool):
        self.name = name
        self.rpc_endpoint = rpc_endpoint
        self.requires_capacity = requires_capacity

    def __repr__(self) -> str:
        return f"<LitNetwork {self.name}>"

    def __str__(self) -> str:
        return self.name

    def __hash__(self) -> int:
        return hash((self.name, self.rpc_endpoint, self.requires_capacity))

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, LitNetwork):
            return False
        return (
            self.name == other.name
            and self.rpc_endpoint == other.rpc_endpoint
            and self.requires_capacity == other.requires_capacity
        )

    @property
    def is_testnet(self) -> bool:
        return self.name != DATIL.name


_YELLOWSTONE_RPC = "https://yellowstone-rpc.litprotocol.com"

DATIL_DEV = LitNetwork(name="datil-dev", rpc_endpoint=_YELLOWSTONE_RPC, requires_capacity=False)
DATIL_TEST = LitNetwork(name="datil-test", rpc_endpoint=_YELLOWSTONE_RPC, requires_capacity=True)
DATIL = LitNetwork(name="datil", rpc_endpoint=_YELLOWSTONE_RPC, requires_capacity=True)

DEFAULT_NETWORK: LitNetwork = DATIL_DEV

SUPPORTED_NETWORKS: Dict[str, LitNetwork] = {
    str(network): network for network in (DATIL_DEV, DATIL_TEST, DATIL)
}

SUPPORTED_CHAINS: Dict[str, Chain] = {chain.value.name: chain for chain in Chain}


@memoize
def get_chain(c: Any) -> Chain:
    if isinstance(c, Chain):
        return c
    if not isinstance(c, str):
        raise TypeError(f"chain must be a string, not {type(c)}")
    try:
        return SUPPORTED_CHAINS[c]
    except KeyError:
        raise UnrecognizedChain(
            f"{c} is not a supported chain; choose one of {', '.join(SUPPORTED_CHAINS)}."
        )


@memoize
def get_network(n: Any) -> LitNetwork:
    if isinstance(n, LitNetwork):
        return n
    if not isinstance(n, str):
        raise TypeError(f"network must be a string, not {type(n)}")
    for name, network in SUPPORTED_NETWORKS.items():
        if name == n == str(network):
            return network
    raise UnrecognizedLitNetwork(f"{n} is not a recognized Lit network.")
