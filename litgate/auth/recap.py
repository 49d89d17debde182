"""
ReCaps (EIP-5573): capability grants embedded in a Sign-In with Ethereum message.

The grant is a JSON object

    {"att": {"<resource key>": {"<namespace>/<ability>": [<nota bene>, ...]}}, "prf": []}

encoded as an unpadded base64url string behind the ``urn:recap:`` URN and appended as the
last entry of the SIWE ``resources`` list. The human-readable statement is derived
deterministically from the same object so that a verifier can check that the wallet
owner was shown exactly what is being granted.
"""

import copy
import json
from base64 import urlsafe_b64decode, urlsafe_b64encode
from typing import Any, Dict, Iterable, List, Optional

from litgate.auth.resources import ResourceAbilityRequest

RECAP_URN_PREFIX = "urn:recap:"
RECAP_STATEMENT_PREFIX = (
    "I further authorize the stated URI to perform the following actions on my behalf:"
)


class InvalidRecap(ValueError):
    pass


def _b64url_encode(payload: bytes) -> str:
    return urlsafe_b64encode(payload).decode().rstrip("=")


def _b64url_decode(payload: str) -> bytes:
    padding = "=" * (-len(payload) % 4)
    return urlsafe_b64decode(payload + padding)


class Recap:

    def __init__(
        self,
        attenuations: Optional[Dict[str, Dict[str, List[Dict[str, Any]]]]] = None,
        proofs: Optional[Iterable[str]] = None,
    ):
        self.__attenuations = copy.deepcopy(attenuations) if attenuations else dict()
        self.__proofs = list(proofs or [])

    @classmethod
    def from_requests(cls, requests: Iterable[ResourceAbilityRequest]) -> "Recap":
        recap = cls()
        for request in requests:
            request.validate()
            namespace, ability = request.recap_ability
            recap.add_capability(
                resource_key=request.resource.get_resource_key(),
                namespace=namespace,
                ability=ability,
                nota_bene=request.data,
            )
        return recap

    @property
    def attenuations(self) -> Dict[str, Dict[str, List[Dict[str, Any]]]]:
        return copy.deepcopy(self.__attenuations)

    @property
    def proofs(self) -> List[str]:
        return list(self.__proofs)

    def add_capability(
        self,
        resource_key: str,
        namespace: str,
        ability: str,
        nota_bene: Optional[Dict[str, Any]] = None,
    ) -> None:
        if "/" in namespace or "/" in ability:
            raise InvalidRecap(f"Invalid ReCap ability {namespace}/{ability}")
        abilities = self.__attenuations.setdefault(resource_key, dict())
        abilities[f"{namespace}/{ability}"] = [dict(nota_bene or {})]

    def has_capability(self, resource_key: str, namespace: str, ability: str) -> bool:
        return f"{namespace}/{ability}" in self.__attenuations.get(resource_key, {})

    def nota_bene(self, resource_key: str, namespace: str, ability: str) -> Dict[str, Any]:
        try:
            restrictions = self.__attenuations[resource_key][f"{namespace}/{ability}"]
        except KeyError:
            raise InvalidRecap(f"No {namespace}/{ability} grant for {resource_key}")
        return dict(restrictions[0]) if restrictions else dict()

    def to_dict(self) -> Dict[str, Any]:
        return {"att": self.attenuations, "prf": self.proofs}

    def encode(self) -> str:
        payload = json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"))
        return RECAP_URN_PREFIX + _b64url_encode(payload.encode())

    @classmethod
    def decode(cls, uri: str) -> "Recap":
        if not uri.startswith(RECAP_URN_PREFIX):
            raise InvalidRecap(f"{uri} is not a ReCap URN")
        try:
            data = json.loads(_b64url_decode(uri[len(RECAP_URN_PREFIX):]))
            attenuations, proofs = data["att"], data.get("prf", [])
        except (ValueError, KeyError, TypeError) as e:
            raise InvalidRecap(f"Malformed ReCap: {e}") from e
        if not isinstance(attenuations, dict):
            raise InvalidRecap("ReCap attenuations must be an object")
        return cls(attenuations=attenuations, proofs=proofs)

    @classmethod
    def extract(cls, resources: Optional[Iterable[str]]) -> "Recap":
        """The ReCap of a SIWE message is the last entry of its resources list."""
        resources = [str(resource) for resource in resources or []]
        if not resources or not resources[-1].startswith(RECAP_URN_PREFIX):
            raise InvalidRecap("SIWE message carries no ReCap")
        return cls.decode(resources[-1])

    def statement(self) -> str:
        clauses = []
        for resource_key in sorted(self.__attenuations):
            by_namespace: Dict[str, List[str]] = dict()
            for namespaced_ability in sorted(self.__attenuations[resource_key]):
                namespace, ability = namespaced_ability.split("/", 1)
                by_namespace.setdefault(namespace, []).append(ability)
            for namespace, abilities in by_namespace.items():
                actions = ", ".join(f"'{ability}'" for ability in abilities)
                clauses.append(f"'{namespace}': {actions} for '{resource_key}'.")
        numbered = " ".join(f"({index}) {clause}" for index, clause in enumerate(clauses, 1))
        return f"{RECAP_STATEMENT_PREFIX} {numbered}"

    def __eq__(self, other: Any) -> bool:
        return isinstance(other, Recap) and other.to_dict() == self.to_dict()

    def __repr__(self) -> str:
        return f"Recap({sorted(self.__attenuations)})"
