from typing import List, Optional

from cytoolz.dicttoolz import dissoc
from eth_account.account import Account
from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount
from hexbytes.main import BytesLike, HexBytes

from litgate.blockchain.decorators import validate_checksum_address
from litgate.blockchain.signers.base import Signer


class InMemorySigner(Signer):
    """
    Holds one private key in process memory; a random one if none is given.
    The key is never written anywhere nor shown in reprs.
    """

    def __init__(self, private_key: Optional[BytesLike] = None):
        self.__account: LocalAccount = Account.from_key(private_key) if private_key else Account.create()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.address})"

    @property
    def accounts(self) -> List[str]:
        return [self.__account.address]

    @validate_checksum_address
    def _get_account(self, account: str) -> LocalAccount:
        if account != self.__account.address:
            raise self.UnknownAccount(account=account)
        return self.__account

    def sign_transaction(self, transaction_dict: dict) -> HexBytes:
        local_account = self._get_account(account=transaction_dict["from"])
        unsigned = dissoc(transaction_dict, "from")
        if not unsigned.get("to"):
            # contract creation
            unsigned = dissoc(unsigned, "to")
        return HexBytes(local_account.sign_transaction(transaction_dict=unsigned).rawTransaction)

    @validate_checksum_address
    def sign_message(self, account: str, message: bytes) -> HexBytes:
        local_account = self._get_account(account=account)
        signed = local_account.sign_message(signable_message=encode_defunct(primitive=message))
        return HexBytes(signed.signature)
