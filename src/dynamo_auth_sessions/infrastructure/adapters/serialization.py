"""
Conversion between Python values and DynamoDB typed attribute values.

Wraps boto3's TypeSerializer/TypeDeserializer. DynamoDB has no float
type and returns every number as Decimal, so floats are written as
Decimal and numbers are read back as int when integral, float otherwise.
"""

from decimal import Decimal
from typing import Any

from boto3.dynamodb.types import Binary, TypeDeserializer, TypeSerializer

_serializer = TypeSerializer()
_deserializer = TypeDeserializer()


def to_attribute_value(value: Any) -> dict[str, Any]:
    """Serialize a Python value into a typed attribute value."""
    return _serializer.serialize(_to_dynamo(value))


def from_attribute_value(attribute: dict[str, Any]) -> Any:
    """Deserialize a typed attribute value into a plain Python value."""
    return _to_python(_deserializer.deserialize(attribute))


def marshall(values: dict[str, Any]) -> dict[str, dict[str, Any]]:
    return {name: to_attribute_value(value) for name, value in values.items()}


def unmarshall(item: dict[str, dict[str, Any]]) -> dict[str, Any]:
    return {name: from_attribute_value(value) for name, value in item.items()}


def _to_dynamo(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {k: _to_dynamo(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_dynamo(v) for v in value]
    if isinstance(value, (set, frozenset)):
        return {_to_dynamo(v) for v in value}
    return value


def _to_python(value: Any) -> Any:
    if isinstance(value, Decimal):
        if value == value.to_integral_value():
            return int(value)
        return float(value)
    if isinstance(value, Binary):
        return value.value
    if isinstance(value, dict):
        return {k: _to_python(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_to_python(v) for v in value]
    if isinstance(value, set):
        return {_to_python(v) for v in value}
    return value
