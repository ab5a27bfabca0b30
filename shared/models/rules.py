"""Pydantic models for the declarative constraint tables.

The tables are loaded once and injected into the RecordService, so every
service instance (and every test) can run with its own constraint set.
"""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class ValueKind(str, Enum):
    """The value kinds a field can be constrained to."""

    STRING = "string"
    INTEGER = "integer"
    DECIMAL = "decimal"
    DOUBLE = "double"
    DATETIME = "datetime"
    ARRAY = "array"
    DOCUMENT = "document"
    BOOLEAN = "boolean"
    OBJECT_ID = "objectid"
    NULL = "null"


class IntegrityRules(BaseModel):
    """
    Constraint tables for all collections.

    Attributes:
        types (dict[str, dict[str, ValueKind]]): collection -> field -> expected value kind.
        values (dict[str, dict[str, list[str]]]): collection -> field -> allowed literal values,
            compared against the canonical external representation of a value.

    A (collection, field) pair missing from a table is not constrained by it.
    """

    types: dict[str, dict[str, ValueKind]] = Field(default_factory=dict)
    values: dict[str, dict[str, list[str]]] = Field(default_factory=dict)

    @classmethod
    def from_file(cls, path: str | Path) -> "IntegrityRules":
        """Read the constraint tables from a JSON file.

        Args:
            path (str | Path): Path to a JSON file with optional "types" and "values" keys.

        Returns:
            IntegrityRules: The parsed tables.

        Raises:
            FileNotFoundError: If the file does not exist.
            pydantic.ValidationError: If the file content does not match the model.
        """
        return cls.model_validate_json(Path(path).read_text(encoding="utf-8"))
