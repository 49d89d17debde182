import re
from abc import ABC, abstractmethod
from typing import Any, Union

from litgate.conditions.exceptions import InvalidCondition, UnsupportedContextVariable

USER_ADDRESS_CONTEXT = ":userAddress"

CONTEXT_PREFIX = ":"
CONTEXT_REGEX = re.compile(":[a-zA-Z_][a-zA-Z0-9_]*")


def is_context_variable(variable) -> bool:
    return isinstance(variable, str) and bool(CONTEXT_REGEX.fullmatch(variable))


class ConditionParameter(ABC):
    """
    A single entry of a condition's `parameters` list.

    Either a `Literal` value, or `CurrentSigner`: the address of whichever wallet is
    requesting decryption. The latter is only ever resolved by the decryption network
    against the address embedded in the session credential, never locally.
    """

    @abstractmethod
    def to_wire(self) -> str:
        raise NotImplementedError

    @classmethod
    def from_wire(cls, value: Any) -> "ConditionParameter":
        if value == USER_ADDRESS_CONTEXT:
            return CurrentSigner()
        if is_context_variable(value):
            raise UnsupportedContextVariable(
                f'"{value}" is not a supported context variable; only {USER_ADDRESS_CONTEXT} is.'
            )
        return Literal(value)


class Literal(ConditionParameter):
    def __init__(self, value: Union[str, int]):
        if isinstance(value, bool) or not isinstance(value, (str, int)):
            raise InvalidCondition(
                f"Condition parameters must be strings, not {type(value).__name__}"
            )
        value = str(value)
        if is_context_variable(value):
            raise InvalidCondition(
                f'"{value}" is a context variable; use CurrentSigner for the requesting wallet'
            )
        self.__value = value

    @property
    def value(self) -> str:
        return self.__value

    def to_wire(self) -> str:
        return self.__value

    def __eq__(self, other: Any) -> bool:
        return isinstance(other, Literal) and other.value == self.value

    def __hash__(self) -> int:
        return hash((Literal, self.__value))

    def __repr__(self) -> str:
        return f"Literal({self.__value!r})"


class CurrentSigner(ConditionParameter):
    def to_wire(self) -> str:
        return USER_ADDRESS_CONTEXT

    def __eq__(self, other: Any) -> bool:
        return isinstance(other, CurrentSigner)

    def __hash__(self) -> int:
        return hash(USER_ADDRESS_CONTEXT)

    def __repr__(self) -> str:
        return "CurrentSigner()"


def as_parameter(value: Any) -> ConditionParameter:
    if isinstance(value, ConditionParameter):
        return value
    return ConditionParameter.from_wire(value)
