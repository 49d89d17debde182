from abc import ABC, abstractmethod
from typing import Optional

import maya
import requests
from eth_typing import ChecksumAddress
from eth_utils import to_checksum_address
from web3 import HTTPProvider, Web3
from web3.contract import Contract
from web3.logs import DISCARD
from web3.types import TxReceipt

from litgate.blockchain.signers.base import Signer
from litgate.utilities.logging import Logger

SECONDS_PER_DAY = 86_400


def utc_midnight_expiration(days: int, now: Optional[maya.MayaDT] = None) -> int:
    """Unix timestamp of UTC midnight, `days` days from now."""
    if days < 1:
        raise ValueError(f"Capacity must last at least one day, not {days}")
    now = now or maya.now()
    midnight = now.epoch - (now.epoch % SECONDS_PER_DAY)
    return int(midnight + days * SECONDS_PER_DAY)


class ContractClient(ABC):
    """The chain-side collaborator used to mint rate-limit capacity allocations."""

    class ContractClientError(Exception):
        """Base exception class for contract client errors"""

    class NotConnected(ContractClientError):
        pass

    @abstractmethod
    def connect(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def disconnect(self) -> None:
        raise NotImplementedError

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        raise NotImplementedError

    @abstractmethod
    def mint_capacity_credits(
        self, requests_per_kilosecond: int, days_until_utc_midnight_expiration: int
    ) -> str:
        """Mints a capacity allocation and returns its token ID."""
        raise NotImplementedError


class RateLimitNFTClient(ContractClient):
    """Mints capacity credits by buying a rate-limit NFT, paying the quoted cost in native tokens."""

    ABI = [
        {
            "inputs": [
                {"internalType": "uint256", "name": "requestsPerKilosecond", "type": "uint256"},
                {"internalType": "uint256", "name": "expiresAt", "type": "uint256"},
            ],
            "name": "calculateCost",
            "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
            "stateMutability": "view",
            "type": "function",
        },
        {
            "inputs": [{"internalType": "uint256", "name": "expiresAt", "type": "uint256"}],
            "name": "mint",
            "outputs": [{"internalType": "bool", "name": "", "type": "bool"}],
            "stateMutability": "payable",
            "type": "function",
        },
        {
            "anonymous": False,
            "inputs": [
                {"indexed": True, "internalType": "address", "name": "from", "type": "address"},
                {"indexed": True, "internalType": "address", "name": "to", "type": "address"},
                {"indexed": True, "internalType": "uint256", "name": "tokenId", "type": "uint256"},
            ],
            "name": "Transfer",
            "type": "event",
        },
    ]

    class TransactionFailed(ContractClient.ContractClientError):
        pass

    def __init__(
        self,
        endpoint: str,
        contract_address: ChecksumAddress,
        signer: Signer,
        receipt_timeout: int = 120,
    ):
        self.endpoint = endpoint
        self.contract_address = to_checksum_address(contract_address)
        self.signer = signer
        self.receipt_timeout = receipt_timeout
        self.w3: Optional[Web3] = None
        self._http_session: Optional[requests.Session] = None
        self.log = Logger(self.__class__.__name__)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.contract_address} @ {self.endpoint})"

    def connect(self) -> None:
        http_session = requests.Session()
        w3 = Web3(HTTPProvider(self.endpoint, session=http_session))
        if not w3.is_connected():
            http_session.close()
            raise ConnectionError(f"Unable to connect to {self.endpoint}")
        self.w3 = w3
        self._http_session = http_session
        self.log.info(f"Connected to chain ID {w3.eth.chain_id} via {self.endpoint}")

    def disconnect(self) -> None:
        if self._http_session:
            self._http_session.close()
        self._http_session = None
        self.w3 = None

    @property
    def is_connected(self) -> bool:
        return self.w3 is not None

    @property
    def contract(self) -> Contract:
        if not self.w3:
            raise self.NotConnected(f"{self} is not connected")
        return self.w3.eth.contract(address=self.contract_address, abi=self.ABI)

    def _sign_and_broadcast(self, transaction: dict) -> TxReceipt:
        raw_transaction = self.signer.sign_transaction(transaction)
        transaction_hash = self.w3.eth.send_raw_transaction(raw_transaction)
        self.log.debug(f"Broadcast transaction {transaction_hash.hex()}")
        receipt = self.w3.eth.wait_for_transaction_receipt(
            transaction_hash, timeout=self.receipt_timeout
        )
        if receipt["status"] != 1:
            raise self.TransactionFailed(f"Transaction {transaction_hash.hex()} reverted")
        return receipt

    def mint_capacity_credits(
        self, requests_per_kilosecond: int, days_until_utc_midnight_expiration: int
    ) -> str:
        contract = self.contract
        expires_at = utc_midnight_expiration(days=days_until_utc_midnight_expiration)
        cost = contract.functions.calculateCost(requests_per_kilosecond, expires_at).call()
        self.log.info(
            f"Minting capacity of {requests_per_kilosecond} requests/ks "
            f"until {maya.MayaDT(expires_at).iso8601()} for {cost} wei"
        )

        sender = self.signer.address
        transaction = contract.functions.mint(expires_at).build_transaction(
            {
                "from": sender,
                "value": cost,
                "nonce": self.w3.eth.get_transaction_count(sender, "pending"),
                "chainId": self.w3.eth.chain_id,
            }
        )
        receipt = self._sign_and_broadcast(transaction)

        transfers = contract.events.Transfer().process_receipt(receipt, errors=DISCARD)
        minted = [t for t in transfers if t["args"]["to"] == sender]
        if not minted:
            raise self.TransactionFailed(
                f"No capacity token was minted to {sender} in {receipt['transactionHash'].hex()}"
            )
        token_id = str(minted[0]["args"]["tokenId"])
        self.log.info(f"Minted capacity token #{token_id}")
        return token_id
