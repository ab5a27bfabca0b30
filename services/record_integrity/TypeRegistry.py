from typing import Any

from services.record_integrity.values import get_kind
from shared.models.rules import ValueKind


class TypeRegistry:
    """Read-only lookup of expected value kinds per (collection, field).

    Pairs without an entry are unconstrained.
    """

    def __init__(self, types: dict[str, dict[str, ValueKind]]):
        self._types = types

    def get_expected_kind(self, collection: str, field: str) -> ValueKind | None:
        return self._types.get(collection, {}).get(field)

    def is_valid(self, collection: str, field: str, value: Any) -> bool:
        expected = self.get_expected_kind(collection, field)
        if expected is None:
            return True
        return get_kind(value) == expected
