"""Value kinds and the canonical external representation of field values.

Enumeration checks and searches compare values by their external string
representation. to_external() is the single definition of that
representation, so "1" (string) and 1 (integer) compare equal while the
type registry still tells them apart.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from bson import Decimal128, ObjectId

from shared.models.rules import ValueKind

ID_SUFFIX = "_id"
STORE_ID_FIELD = "_id"


def get_surrogate_field(collection: str) -> str:
    """Return the surrogate id field name of a collection, e.g. "Books_id"."""
    return f"{collection}{ID_SUFFIX}"


def is_reference_name(field: str) -> bool:
    """True for relationship-shaped field names (ending in "_id")."""
    return field.endswith(ID_SUFFIX)


def get_target_collection(field: str) -> str:
    """Strip the trailing "_id" from a relationship field name."""
    return field[: -len(ID_SUFFIX)]


def get_kind(value: Any) -> ValueKind:
    """Classify a field value.

    Args:
        value (Any): A value as stored in a document.

    Returns:
        ValueKind: The kind of the value. Unknown types are reported as STRING
            since the driver would refuse to encode them anyway.
    """
    # bool is a subclass of int
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, int):
        return ValueKind.INTEGER
    if isinstance(value, (Decimal, Decimal128)):
        return ValueKind.DECIMAL
    if isinstance(value, float):
        return ValueKind.DOUBLE
    if isinstance(value, datetime):
        return ValueKind.DATETIME
    if isinstance(value, (list, tuple)):
        return ValueKind.ARRAY
    if isinstance(value, dict):
        return ValueKind.DOCUMENT
    if isinstance(value, ObjectId):
        return ValueKind.OBJECT_ID
    if value is None:
        return ValueKind.NULL
    return ValueKind.STRING


def to_external(value: Any) -> str:
    """Render a value in its canonical external string form.

    Args:
        value (Any): A value as stored in a document, or a query value.

    Returns:
        str: The canonical representation.
    """
    kind = get_kind(value)
    if kind == ValueKind.BOOLEAN:
        return "true" if value else "false"
    if kind == ValueKind.NULL:
        return "null"
    if kind == ValueKind.DATETIME:
        return value.isoformat()
    if kind == ValueKind.ARRAY:
        return "[" + ", ".join(to_external(item) for item in value) + "]"
    if kind == ValueKind.DOCUMENT:
        return "{" + ", ".join(f"{key}: {to_external(item)}" for key, item in value.items()) + "}"
    return str(value)


def to_json_value(value: Any) -> Any:
    """Convert a stored value into something JSON serialisable, keeping numbers and nesting."""
    kind = get_kind(value)
    if kind in (ValueKind.DECIMAL, ValueKind.OBJECT_ID, ValueKind.DATETIME):
        return to_external(value)
    if kind == ValueKind.ARRAY:
        return [to_json_value(item) for item in value]
    if kind == ValueKind.DOCUMENT:
        return {key: to_json_value(item) for key, item in value.items()}
    return value
