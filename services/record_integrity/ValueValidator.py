from typing import Any

from services.record_integrity.values import to_external


class ValueValidator:
    """Read-only lookup of enumeration constraints per (collection, field).

    Values are compared by their canonical external representation, so the
    allowed sets are plain strings. Pairs without an entry are unconstrained.
    """

    def __init__(self, values: dict[str, dict[str, list[str]]]):
        self._values = {
            collection: {field: frozenset(allowed) for field, allowed in fields.items()}
            for collection, fields in values.items()
        }

    def get_allowed_values(self, collection: str, field: str) -> frozenset[str] | None:
        return self._values.get(collection, {}).get(field)

    def is_valid(self, collection: str, field: str, value: Any) -> bool:
        allowed = self.get_allowed_values(collection, field)
        if allowed is None:
            return True
        return to_external(value) in allowed
