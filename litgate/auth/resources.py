from abc import ABC
from enum import Enum
from typing import Any, Dict, NamedTuple, Optional, Tuple


class LitAbility(Enum):
    AccessControlConditionDecryption = "access-control-condition-decryption"
    AccessControlConditionSigning = "access-control-condition-signing"
    RateLimitIncreaseAuth = "rate-limit-increase-auth"


class LitResourcePrefix(Enum):
    AccessControlCondition = "lit-accesscontrolcondition"
    RateLimitIncrease = "lit-ratelimitincrease"


# LitAbility -> (ReCap namespace, ReCap ability)
RECAP_ABILITIES: Dict[LitAbility, Tuple[str, str]] = {
    LitAbility.AccessControlConditionDecryption: ("Threshold", "Decryption"),
    LitAbility.AccessControlConditionSigning: ("Threshold", "Signing"),
    LitAbility.RateLimitIncreaseAuth: ("Auth", "Auth"),
}


class LitResource(ABC):
    """A resource a session may be granted abilities over, i.e. lit-accesscontrolcondition://*"""

    PREFIX: LitResourcePrefix = NotImplemented
    ABILITIES: Tuple[LitAbility, ...] = ()

    def __init__(self, resource: str):
        resource = str(resource)
        if not resource:
            raise ValueError(f"{self.__class__.__name__} requires a resource identifier")
        self.resource = resource

    @property
    def resource_prefix(self) -> str:
        return self.PREFIX.value

    def get_resource_key(self) -> str:
        return f"{self.resource_prefix}://{self.resource}"

    def is_valid_lit_ability(self, ability: LitAbility) -> bool:
        return ability in self.ABILITIES

    @property
    def is_wildcard(self) -> bool:
        return self.resource == "*"

    def to_dict(self) -> Dict[str, str]:
        return {"resource": self.resource, "resourcePrefix": self.resource_prefix}

    def __str__(self) -> str:
        return self.get_resource_key()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.resource!r})"

    def __eq__(self, other: Any) -> bool:
        return isinstance(other, LitResource) and other.get_resource_key() == self.get_resource_key()

    def __hash__(self) -> int:
        return hash(self.get_resource_key())


class LitAccessControlConditionResource(LitResource):
    PREFIX = LitResourcePrefix.AccessControlCondition
    ABILITIES = (
        LitAbility.AccessControlConditionDecryption,
        LitAbility.AccessControlConditionSigning,
    )


class LitRateLimitIncreaseResource(LitResource):
    PREFIX = LitResourcePrefix.RateLimitIncrease
    ABILITIES = (LitAbility.RateLimitIncreaseAuth,)


_RESOURCE_CLASSES = {
    cls.PREFIX.value: cls
    for cls in (LitAccessControlConditionResource, LitRateLimitIncreaseResource)
}


def parse_resource_key(resource_key: str) -> LitResource:
    prefix, separator, resource = resource_key.partition("://")
    if not separator or prefix not in _RESOURCE_CLASSES:
        raise ValueError(f"{resource_key} is not a recognized Lit resource")
    return _RESOURCE_CLASSES[prefix](resource)


class ResourceAbilityRequest(NamedTuple):
    resource: LitResource
    ability: LitAbility
    data: Optional[Dict[str, Any]] = None

    def validate(self) -> "ResourceAbilityRequest":
        if not self.resource.is_valid_lit_ability(self.ability):
            raise ValueError(
                f"{self.ability.value} is not a valid ability for {self.resource}"
            )
        return self

    @property
    def recap_ability(self) -> Tuple[str, str]:
        return RECAP_ABILITIES[self.ability]

    def to_dict(self) -> Dict[str, Any]:
        return {"resource": self.resource.to_dict(), "ability": self.ability.value}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ResourceAbilityRequest":
        resource = data["resource"]
        if isinstance(resource, dict):
            resource = _RESOURCE_CLASSES[resource["resourcePrefix"]](resource["resource"])
        elif isinstance(resource, str):
            resource = parse_resource_key(resource)
        ability = data["ability"]
        if not isinstance(ability, LitAbility):
            ability = LitAbility(ability)
        return cls(resource=resource, ability=ability, data=data.get("data")).validate()
