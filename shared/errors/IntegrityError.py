"""Error kinds raised by the record integrity layer.

Every error is a hard failure surfaced to the caller. A raised error always
means that nothing was written to the document store.
"""

from typing import Any


class IntegrityError(Exception):
    """Base class for all integrity layer failures.

    Attributes:
        status_code (int): HTTP status the API layer answers with.
        collection (str | None): The collection the failure relates to.
    """

    status_code: int = 400

    def __init__(self, message: str, collection: str | None = None):
        super().__init__(message)
        self.message = message
        self.collection = collection


class ConnectionFailed(IntegrityError):
    """The document store is unreachable, misconfigured or failed a request."""

    status_code = 503


class CollectionNotFound(IntegrityError):
    status_code = 404

    def __init__(self, collection: str):
        super().__init__(f"Collection '{collection}' not found", collection=collection)


class EmptyCollection(IntegrityError):
    status_code = 404

    def __init__(self, collection: str):
        super().__init__(f"No documents found in the collection '{collection}'", collection=collection)


class DocumentNotFound(IntegrityError):
    status_code = 404

    def __init__(self, collection: str, record_id: int):
        super().__init__(
            f"No document found in {collection} collection with {collection}_id: {record_id}",
            collection=collection,
        )
        self.record_id = record_id


class FieldNotFound(IntegrityError):
    status_code = 404

    def __init__(self, collection: str, field: str):
        super().__init__(f"Field '{field}' not found in every document of '{collection}'", collection=collection)
        self.field = field


class ShapeMismatch(IntegrityError):
    """Candidate field layout disagrees with the collection's established template."""

    status_code = 409

    def __init__(self, collection: str, position: int, expected: str | None, actual: str | None):
        super().__init__(
            f"The names of the fields do not match the names of the elements in the collection "
            f"'{collection}' (position {position}: expected '{expected}', got '{actual}')",
            collection=collection,
        )
        self.position = position
        self.expected = expected
        self.actual = actual


class InvalidValue(IntegrityError):
    status_code = 422

    def __init__(self, collection: str, field: str, value: Any):
        super().__init__(f"Invalid value '{value}' for field '{field}'", collection=collection)
        self.field = field
        self.value = value


class InvalidType(IntegrityError):
    status_code = 422

    def __init__(self, collection: str, field: str, expected: str, actual: str):
        super().__init__(
            f"Invalid data type for field '{field}' (expected {expected}, got {actual})",
            collection=collection,
        )
        self.field = field
        self.expected = expected
        self.actual = actual


class IllegalFieldName(IntegrityError):
    """A relationship-only or value-only field appears in the wrong operation."""

    status_code = 422

    def __init__(self, collection: str, field: str, reason: str):
        super().__init__(f"Illegal field name '{field}': {reason}", collection=collection)
        self.field = field


class UnknownField(IntegrityError):
    status_code = 422

    def __init__(self, collection: str, field: str):
        super().__init__(f"Field '{field}' does not exist in the document", collection=collection)
        self.field = field


class DanglingReference(IntegrityError):
    status_code = 409

    def __init__(self, collection: str, field: str, value: Any):
        super().__init__(
            f"No document found in {collection} collection with {field}: {value}",
            collection=collection,
        )
        self.field = field
        self.value = value


class SequenceCorrupted(IntegrityError):
    """The surrogate id field of a stored document is not an integer."""

    status_code = 409

    def __init__(self, collection: str, field: str, value: Any):
        super().__init__(
            f"Surrogate id field '{field}' in '{collection}' holds a non-integer value: {value!r}",
            collection=collection,
        )
        self.field = field
        self.value = value
