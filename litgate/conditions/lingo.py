import json
from typing import Any, Dict, Iterable, Iterator, List, Optional, Union

import eth_utils
from eth_utils import encode_hex, keccak
from marshmallow import (
    ValidationError,
    fields,
    post_load,
    validates,
    validates_schema,
)
from marshmallow.validate import OneOf

from litgate.blockchain.chains import SUPPORTED_CHAINS, Chain
from litgate.conditions.base import (
    CamelCaseSchema,
    _Serializable,
    extract_single_error_message_from_schema_errors,
)
from litgate.conditions.context import (
    ConditionParameter,
    CurrentSigner,
    as_parameter,
)
from litgate.conditions.exceptions import InvalidCondition, InvalidConditionLingo

# Comparators understood by the decryption network's condition evaluator
NUMERIC_COMPARATORS = ("==", "!=", ">", ">=", "<", "<=")
# string comparators only apply to raw RPC conditions (standardContractType "")
STRING_COMPARATORS = ("contains", "!contains")
COMPARATORS = NUMERIC_COMPARATORS + STRING_COMPARATORS

STANDARD_CONTRACT_TYPES = (
    "",
    "ERC20",
    "ERC721",
    "ERC721MetadataName",
    "ERC1155",
    "timestamp",
    "SIWE",
    "POAP",
    "PKPPermissions",
    "LitAction",
)


class _ParameterField(fields.Field):
    """Serializes/Deserializes condition parameters to/from their wire strings"""

    def _serialize(self, value, attr, obj, **kwargs):
        return value.to_wire()

    def _deserialize(self, value, attr, data, **kwargs):
        try:
            return ConditionParameter.from_wire(value)
        except InvalidCondition as e:
            raise ValidationError(str(e))


class ReturnValueTest:
    class InvalidExpression(InvalidCondition):
        pass

    COMPARATORS = COMPARATORS

    class Schema(CamelCaseSchema):
        SKIP_VALUES = (None,)
        key = fields.Str(required=False, allow_none=True)
        comparator = fields.Str(required=True, validate=OneOf(COMPARATORS))
        value = fields.Str(required=True)

        class Meta:
            ordered = True

        @post_load
        def make(self, data, **kwargs):
            return ReturnValueTest(**data)

    def __init__(self, comparator: str, value: Union[str, int], key: Optional[str] = None):
        if comparator not in self.COMPARATORS:
            raise self.InvalidExpression(
                f'"{comparator}" is not a permitted comparator.'
            )
        if isinstance(value, bool) or not isinstance(value, (str, int)):
            raise self.InvalidExpression(
                f'"{value}" is not a permitted value; expected a string or integer.'
            )
        if comparator in NUMERIC_COMPARATORS and str(value).strip() == "":
            raise self.InvalidExpression(
                f'Comparator "{comparator}" needs a value to compare against.'
            )

        object.__setattr__(self, "comparator", comparator)
        object.__setattr__(self, "value", str(value))
        object.__setattr__(self, "key", key)

    def __setattr__(self, name, value):
        raise AttributeError(f"{self.__class__.__name__} is immutable")

    def to_dict(self) -> Dict[str, str]:
        return self.Schema().dump(self)

    def __eq__(self, other: Any) -> bool:
        return isinstance(other, ReturnValueTest) and self.to_dict() == other.to_dict()

    def __hash__(self) -> int:
        return hash((self.comparator, self.value, self.key))

    def __repr__(self) -> str:
        return f"ReturnValueTest({self.comparator!r}, {self.value!r})"


class AccessControlCondition(_Serializable):
    """
    A declarative predicate over on-chain state, evaluated live by the decryption
    network every time a decryption share is requested.

    Wire format (camelCase, as expected by the network):

        {
            "contractAddress": "0x...",
            "standardContractType": "ERC721",
            "chain": "arbitrum",
            "method": "balanceOf",
            "parameters": [":userAddress"],
            "returnValueTest": {"comparator": ">", "value": "0"}
        }

    Instances are immutable. The exact same condition set used at encryption time
    must be supplied at decryption time.
    """

    class Schema(CamelCaseSchema):
        contract_address = fields.Str(required=True)
        standard_contract_type = fields.Str(
            required=True, validate=OneOf(STANDARD_CONTRACT_TYPES)
        )
        chain = fields.Str(required=True, validate=OneOf(SUPPORTED_CHAINS))
        method = fields.Str(required=True)
        parameters = fields.List(_ParameterField(), required=True)
        return_value_test = fields.Nested(ReturnValueTest.Schema, required=True)

        # maintain field declaration ordering
        class Meta:
            ordered = True

        @validates("contract_address")
        def validate_contract_address(self, value, **kwargs):
            if value and not eth_utils.is_address(value):
                raise ValidationError(f"{value} is not a valid contract address")

        @validates("method")
        def validate_method(self, value, **kwargs):
            if not value or not value.strip():
                raise ValidationError("method must be specified")

        @validates_schema
        def validate_contract_type_needs_address(self, data, **kwargs):
            contract_type = data.get("standard_contract_type")
            if contract_type in ("ERC20", "ERC721", "ERC1155") and not data.get("contract_address"):
                raise ValidationError(
                    field_name="contract_address",
                    message=f"{contract_type} conditions require a contract address",
                )

        @validates_schema
        def validate_string_comparators_on_rpc_only(self, data, **kwargs):
            return_value_test = data.get("return_value_test")
            comparator = getattr(return_value_test, "comparator", None)
            if comparator in STRING_COMPARATORS and data.get("standard_contract_type") != "":
                raise ValidationError(
                    field_name="return_value_test",
                    message=f"\"{comparator}\" is only permitted when standardContractType is empty",
                )

        @post_load
        def make(self, data, **kwargs):
            return AccessControlCondition(**data)

    def __init__(
        self,
        contract_address: str,
        standard_contract_type: str,
        chain: Union[str, Chain],
        method: str,
        parameters: Iterable[Any],
        return_value_test: Union[ReturnValueTest, Dict[str, Any]],
    ):
        if isinstance(return_value_test, dict):
            return_value_test = ReturnValueTest(**return_value_test)
        if isinstance(chain, Chain):
            chain = str(chain)

        object.__setattr__(self, "contract_address", contract_address)
        object.__setattr__(self, "standard_contract_type", standard_contract_type)
        object.__setattr__(self, "chain", chain)
        object.__setattr__(self, "method", method)
        object.__setattr__(self, "parameters", tuple(as_parameter(p) for p in parameters))
        object.__setattr__(self, "return_value_test", return_value_test)

        self._validate()

    def __setattr__(self, name, value):
        raise AttributeError(f"{self.__class__.__name__} is immutable")

    def _validate(self):
        errors = self.Schema().validate(data=self.to_dict())
        if errors:
            error_message = extract_single_error_message_from_schema_errors(errors)
            raise InvalidCondition(
                f"Invalid {self.__class__.__name__}: {error_message}"
            )

    @classmethod
    def from_dict(cls, data) -> "AccessControlCondition":
        try:
            return super().from_dict(data)
        except ValidationError as e:
            raise InvalidConditionLingo(f"Invalid condition grammar: {e}") from e

    @classmethod
    def nft_ownership(
        cls, contract_address: str, chain: Union[str, Chain], standard_contract_type: str = "ERC721"
    ) -> "AccessControlCondition":
        """The requesting wallet holds at least one token of the given collection."""
        return cls(
            contract_address=contract_address,
            standard_contract_type=standard_contract_type,
            chain=chain,
            method="balanceOf",
            parameters=[CurrentSigner()],
            return_value_test=ReturnValueTest(">", "0"),
        )

    @property
    def references_current_signer(self) -> bool:
        return any(isinstance(p, CurrentSigner) for p in self.parameters)

    def __eq__(self, other: Any) -> bool:
        return isinstance(other, AccessControlCondition) and self.to_dict() == other.to_dict()

    def __hash__(self) -> int:
        return hash(json.dumps(self.to_dict(), sort_keys=True))

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}({self.standard_contract_type or 'rpc'} "
            f"{self.method} on {self.chain} {self.return_value_test.comparator} "
            f"{self.return_value_test.value})"
        )


class ConditionOperator:
    """A boolean operator joining two adjacent conditions, i.e. {"operator": "or"}."""

    AND = "and"
    OR = "or"
    OPERATORS = (AND, OR)

    def __init__(self, operator: str):
        if operator not in self.OPERATORS:
            raise InvalidCondition(f"{operator} is not a valid operator")
        object.__setattr__(self, "operator", operator)

    def __setattr__(self, name, value):
        raise AttributeError(f"{self.__class__.__name__} is immutable")

    def to_dict(self) -> Dict[str, str]:
        return {"operator": self.operator}

    def __eq__(self, other: Any) -> bool:
        return isinstance(other, ConditionOperator) and other.operator == self.operator

    def __hash__(self) -> int:
        return hash(self.operator)

    def __repr__(self) -> str:
        return f"ConditionOperator({self.operator!r})"


ConditionEntry = Union[AccessControlCondition, ConditionOperator]


class AccessControlConditions:
    """
    The ordered, immutable condition set a ciphertext is bound to.

    Entries are conditions, optionally joined by `ConditionOperator`s; adjacent
    conditions without an operator are implicitly joined by "and" by the network.
    The `fingerprint` is used to check that decryption is attempted with the
    very same set that was used to encrypt.
    """

    MAX_CONDITIONS = 5

    def __init__(self, entries: Iterable[Union[ConditionEntry, Dict[str, Any]]]):
        self.__entries = tuple(self.__coerce(entry) for entry in entries)
        self._validate()

    @staticmethod
    def __coerce(entry) -> ConditionEntry:
        if isinstance(entry, (AccessControlCondition, ConditionOperator)):
            return entry
        if isinstance(entry, dict):
            if set(entry) == {"operator"}:
                return ConditionOperator(entry["operator"])
            return AccessControlCondition.from_dict(entry)
        raise InvalidCondition(f"{entry!r} is not a condition or an operator")

    def _validate(self):
        conditions = self.conditions
        if not conditions:
            raise InvalidCondition("At least one access control condition is required")
        if len(conditions) > self.MAX_CONDITIONS:
            raise InvalidCondition(
                f"Maximum of {self.MAX_CONDITIONS} conditions are allowed"
            )
        for index, entry in enumerate(self.__entries):
            if not isinstance(entry, ConditionOperator):
                continue
            first, last = index == 0, index == len(self.__entries) - 1
            if first or last or isinstance(self.__entries[index - 1], ConditionOperator):
                raise InvalidCondition(
                    f"Operator '{entry.operator}' must sit between two conditions"
                )

    @property
    def entries(self) -> tuple:
        return self.__entries

    @property
    def conditions(self) -> List[AccessControlCondition]:
        return [e for e in self.__entries if isinstance(e, AccessControlCondition)]

    @property
    def chains(self) -> set:
        return {c.chain for c in self.conditions}

    def __iter__(self) -> Iterator[ConditionEntry]:
        return iter(self.__entries)

    def __len__(self) -> int:
        return len(self.__entries)

    def __getitem__(self, index: int) -> ConditionEntry:
        return self.__entries[index]

    def to_list(self) -> List[Dict[str, Any]]:
        return [entry.to_dict() for entry in self.__entries]

    @classmethod
    def from_list(cls, data: List[Dict[str, Any]]) -> "AccessControlConditions":
        if not isinstance(data, list):
            raise InvalidConditionLingo(
                f"Access control conditions must be a list, not {type(data).__name__}"
            )
        return cls(data)

    def to_json(self) -> str:
        return json.dumps(self.to_list())

    @classmethod
    def from_json(cls, data: str) -> "AccessControlConditions":
        try:
            payload = json.loads(data)
        except json.JSONDecodeError as e:
            raise InvalidConditionLingo(f"Invalid condition JSON: {e}") from e
        return cls.from_list(payload)

    def canonical_json(self) -> str:
        return json.dumps(self.to_list(), sort_keys=True, separators=(",", ":"))

    @property
    def fingerprint(self) -> str:
        return encode_hex(keccak(text=self.canonical_json()))

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, AccessControlConditions):
            return False
        return self.canonical_json() == other.canonical_json()

    def __hash__(self) -> int:
        return hash(self.canonical_json())

    def __repr__(self) -> str:
        return f"<AccessControlConditions {self.fingerprint[:10]} ({len(self.conditions)} conditions)>"
