from litgate.blockchain.signers.base import Signer
from litgate.blockchain.signers.software import InMemorySigner

__all__ = ["Signer", "InMemorySigner"]
