from abc import ABC, abstractmethod
from typing import List

from eth_typing.evm import ChecksumAddress
from hexbytes.main import HexBytes


class Signer(ABC):
    """The wallet identity: signs byte strings and names the address every condition is evaluated against."""

    class SignerError(Exception):
        """Base exception class for signer errors"""

    class UnknownAccount(SignerError):
        def __init__(self, account: str):
            self.message = f'Unknown account {account}.'
            super().__init__(self.message)

    @property
    @abstractmethod
    def accounts(self) -> List[ChecksumAddress]:
        return NotImplemented

    @property
    def address(self) -> ChecksumAddress:
        """The default account; the subject of every signature this signer produces."""
        return self.accounts[0]

    @abstractmethod
    def sign_transaction(self, transaction_dict: dict) -> HexBytes:
        return NotImplemented

    @abstractmethod
    def sign_message(self, account: str, message: bytes) -> HexBytes:
        """EIP-191 personal_sign of `message` by `account`."""
        return NotImplemented
