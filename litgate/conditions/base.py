import json
import re
from base64 import b64decode, b64encode
from typing import Any, Dict, Tuple

from marshmallow import Schema, post_dump
from marshmallow.exceptions import SCHEMA


def to_camelcase(name: str) -> str:
    head, *tail = name.split("_")
    return head + "".join(part.title() for part in tail)


def camel_case_to_snake(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


class CamelCaseSchema(Schema):
    """
    The network speaks camelCase JSON (`contractAddress`, `returnValueTest`, `derivedVia`);
    attributes stay snake_case. Values listed in SKIP_VALUES are omitted when dumping.
    """

    SKIP_VALUES: Tuple = tuple()

    def on_bind_field(self, field_name, field_obj):
        field_obj.data_key = to_camelcase(field_obj.data_key or field_name)

    @post_dump
    def remove_skip_values(self, data, **kwargs):
        return {key: value for key, value in data.items() if value not in self.SKIP_VALUES}


def extract_single_error_message_from_schema_errors(errors: Dict[str, Any]) -> str:
    """
    Reduces marshmallow's error mapping to one message, preferring a field error
    over a schema-level one. Field errors are prefixed with the snake_case field name.
    """
    if not errors:
        raise ValueError("Validation errors must be provided")

    field_errors = [key for key in errors if key != SCHEMA]
    key = field_errors[0] if field_errors else SCHEMA

    message = errors[key]
    while isinstance(message, (list, dict)):
        # nested schemas report {index: [messages]} or {field: [messages]}
        message = message[0] if isinstance(message, list) else next(iter(message.values()))

    if key == SCHEMA:
        return str(message)
    return f"'{camel_case_to_snake(str(key))}' field - {message}"


class _Serializable:
    """Marshmallow-backed (de)serialization to dicts, JSON and base64-wrapped JSON bytes."""

    class Schema(Schema):
        field = NotImplemented

    def to_dict(self) -> Dict[str, Any]:
        return self.Schema().dump(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]):
        return cls.Schema().load(data)

    def to_json(self) -> str:
        return self.Schema().dumps(self)

    @classmethod
    def from_json(cls, data):
        return cls.from_dict(json.loads(data))

    def __bytes__(self) -> bytes:
        return b64encode(self.to_json().encode())

    @classmethod
    def from_bytes(cls, data: bytes):
        return cls.from_json(b64decode(data).decode())
