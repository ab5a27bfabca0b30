"""Record service.

The only mutation surface over the document store. Every write runs the
integrity checks (references, shape, enumerations, value kinds) to completion
before the store is touched, so a rejected write leaves no trace. Mutating
operations are serialised per collection, which keeps the derive-id-then-insert
and delete-then-renumber sequences consistent within one process.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from services.record_integrity.ReferenceResolver import ReferenceResolver
from services.record_integrity.SequenceManager import SequenceManager
from services.record_integrity.ShapeChecker import ShapeChecker
from services.record_integrity.TypeRegistry import TypeRegistry
from services.record_integrity.ValueValidator import ValueValidator
from services.record_integrity.values import (
    STORE_ID_FIELD,
    get_kind,
    get_surrogate_field,
    is_reference_name,
    to_external,
)
from shared.clients.store.DocumentStoreInterface import DocumentStoreInterface
from shared.errors.IntegrityError import (
    CollectionNotFound,
    DocumentNotFound,
    EmptyCollection,
    FieldNotFound,
    IllegalFieldName,
    IntegrityError,
    InvalidType,
    InvalidValue,
    UnknownField,
)
from shared.helper.HelperConfig import HelperConfig
from shared.models.rules import IntegrityRules


class RecordService:
    """Create, read, search, update and delete records with relational-style guarantees."""

    def __init__(
        self,
        helper_config: HelperConfig,
        store: DocumentStoreInterface,
        rules: IntegrityRules | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._store = store
        rules = rules or IntegrityRules()
        self._types = TypeRegistry(rules.types)
        self._values = ValueValidator(rules.values)
        self._shapes = ShapeChecker(helper_config)
        self._sequence = SequenceManager(helper_config, store)
        self._resolver = ReferenceResolver(helper_config, store)
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    ##########################################
    ################ READ ####################
    ##########################################

    async def list_records(self, collection: str) -> list[dict]:
        """Return all documents of a collection in insertion order.

        An empty result is not an error.
        """
        documents = await self._store.do_find_all(collection)
        if not documents:
            self.logging.info("No documents found in the collection %r.", collection)
        return documents

    async def get_field_values(self, collection: str, field: str) -> list[Any]:
        """Return the value of a field from every document of a collection.

        Args:
            collection (str): The collection name.
            field (str): The field to read.

        Returns:
            list[Any]: One value per document, in insertion order.

        Raises:
            FieldNotFound: If any document lacks the field.
        """
        values = []
        for document in await self._store.do_find_all(collection):
            if field not in document:
                raise FieldNotFound(collection, field)
            values.append(document[field])
        return values

    async def get_latest_id(self, collection: str) -> int:
        """Return the latest surrogate id (the number of records), or 0 for an empty collection."""
        documents = await self._store.do_find_all(collection)
        return self._sequence.get_latest_id(collection, documents)

    async def search_records(self, collection: str, field: str, query: Any) -> list[dict]:
        """Return every document whose field matches the query.

        Field value and query are compared by their canonical external
        representation, e.g. the query "3" matches the integer 3.

        Args:
            collection (str): The collection name.
            field (str): The field to compare.
            query (Any): The value to look for.

        Returns:
            list[dict]: The matching documents. An empty result is not an error.
        """
        expected = to_external(query)
        matches = [
            document
            for document in await self._store.do_find_all(collection)
            if field in document and to_external(document[field]) == expected
        ]
        if not matches:
            self.logging.info("No matched documents in %r for %s=%r.", collection, field, expected)
        return matches

    ##########################################
    ################ WRITE ###################
    ##########################################

    async def add_record(self, collection: str, fields: dict, relationship: dict | None = None) -> dict:
        """Validate and insert a new record.

        The stored document is laid out as "_id", "<collection>_id", the value
        fields, then the relationship fields.

        Args:
            collection (str): The collection name.
            fields (dict): The value fields of the record.
            relationship (dict | None): Optional relationship fields ("<target>_id" -> id or list of ids).

        Returns:
            dict: The inserted document.

        Raises:
            IllegalFieldName: If a value field ends with "_id", or a relationship field is
                malformed or references the collection itself.
            DanglingReference: If a referenced document does not exist.
            ShapeMismatch: If the field layout disagrees with the collection's template.
            InvalidValue: If a value is outside its enumeration.
            InvalidType: If a value has the wrong kind.
        """
        async with self._mutation(collection, "add"):
            id_field = get_surrogate_field(collection)
            for field in fields:
                if field in (STORE_ID_FIELD, id_field):
                    raise IllegalFieldName(collection, field, "id fields are assigned automatically")
                if is_reference_name(field):
                    raise IllegalFieldName(collection, field, "fields ending with '_id' must be passed as relationship")

            resolved: dict = {}
            if relationship:
                for field in relationship:
                    if field == id_field:
                        raise IllegalFieldName(collection, field, "a record cannot reference its own collection id")
                resolved = await self._resolver.resolve(collection, relationship)

            documents = await self._store.do_find_all(collection)
            record = {
                STORE_ID_FIELD: self._store.generate_identifier(),
                id_field: self._sequence.get_next_id(collection, documents),
                **fields,
                **resolved,
            }

            self._shapes.check_shape(collection, documents, record)
            for field, value in record.items():
                self._validate_field(collection, field, value)

            await self._store.do_insert_one(collection, record)
            self.logging.info("New document has been added to %r with %s=%d.", collection, id_field, record[id_field])
            return record

    async def delete_record(self, collection: str, record_id: int) -> None:
        """Delete a record and renumber every record with a higher id.

        Raises:
            CollectionNotFound: If the collection does not exist.
            EmptyCollection: If the collection holds no documents.
            DocumentNotFound: If no document has the given id.
        """
        async with self._mutation(collection, "delete"):
            await self._ensure_collection(collection)
            if not await self._store.do_find_all(collection):
                raise EmptyCollection(collection)

            id_field = get_surrogate_field(collection)
            await self._get_document(collection, record_id)

            await self._store.do_delete_one(collection, id_field, record_id)
            await self._sequence.renumber_after_delete(collection, record_id)
            self.logging.info("Record %s=%d has been deleted from %r.", id_field, record_id, collection)

    async def edit_record(self, collection: str, record_id: int, fields: dict) -> None:
        """Update existing value fields of a record in one combined update.

        Args:
            collection (str): The collection name.
            record_id (int): The surrogate id of the record.
            fields (dict): field -> new value. Every field must already exist on the record.

        Raises:
            IllegalFieldName: If a field name ends with "_id" (use edit_relationship).
            CollectionNotFound: If the collection does not exist.
            DocumentNotFound: If no document has the given id.
            UnknownField: If the record does not have a field.
            InvalidValue: If a value is outside its enumeration.
            InvalidType: If a value has the wrong kind.
        """
        async with self._mutation(collection, "edit"):
            for field in fields:
                if is_reference_name(field):
                    raise IllegalFieldName(collection, field, "value edits must not contain a field that ends with '_id'")

            await self._ensure_collection(collection)
            document = await self._get_document(collection, record_id)
            for field, value in fields.items():
                if field not in document:
                    raise UnknownField(collection, field)
                self._validate_field(collection, field, value)

            if not fields:
                return
            await self._update(collection, record_id, dict(fields))
            self.logging.info("Document %s=%d in %r has been updated.", get_surrogate_field(collection), record_id, collection)

    async def edit_relationship(self, collection: str, record_id: int, relationship: dict) -> int:
        """Replace relationship fields of a record after resolving every reference.

        The record's own "<collection>_id" is skipped, a surrogate id cannot be
        rewritten through this path.

        Args:
            collection (str): The collection name.
            record_id (int): The surrogate id of the record.
            relationship (dict): "<target>_id" -> id or list of ids.

        Returns:
            int: The number of relationship fields written.

        Raises:
            IllegalFieldName: If a field name does not end with "_id".
            CollectionNotFound: If the collection does not exist.
            DocumentNotFound: If no document has the given id.
            UnknownField: If the record does not already have a relationship field.
            DanglingReference: If a referenced document does not exist.
            InvalidValue: If a value is outside its enumeration.
            InvalidType: If a value has the wrong kind.
        """
        async with self._mutation(collection, "edit relationship"):
            for field in relationship:
                if not is_reference_name(field):
                    raise IllegalFieldName(collection, field, f"foreign key '{field}' does not end with '_id'")

            await self._ensure_collection(collection)
            document = await self._get_document(collection, record_id)

            id_field = get_surrogate_field(collection)
            updates: dict = {}
            for field, value in relationship.items():
                if field == id_field:
                    self.logging.debug("Ignoring self reference %r on %r.", field, collection)
                    continue
                # a new field would change the record's shape
                if field not in document:
                    raise UnknownField(collection, field)
                resolved = await self._resolver.resolve_field(collection, field, value)
                self._validate_field(collection, field, resolved)
                updates[field] = resolved

            if updates:
                await self._update(collection, record_id, updates)
                self.logging.info(
                    "Relationship %s of %s=%d in %r has been updated.", list(updates), id_field, record_id, collection,
                )
            return len(updates)

    ##########################################
    ############### HELPERS ##################
    ##########################################

    @asynccontextmanager
    async def _mutation(self, collection: str, action: str) -> AsyncIterator[None]:
        """Serialise mutations per collection and log rejected writes.

        A collection's lock is dropped once no mutation holds or awaits it.
        """
        lock = self._locks.setdefault(collection, asyncio.Lock())
        self._lock_users[collection] = self._lock_users.get(collection, 0) + 1
        try:
            async with lock:
                try:
                    yield
                except IntegrityError as e:
                    self.logging.warning("Rejected %s on %r: %s", action, collection, e.message)
                    raise
        finally:
            self._lock_users[collection] -= 1
            if not self._lock_users[collection]:
                del self._lock_users[collection]
                del self._locks[collection]

    async def _ensure_collection(self, collection: str) -> None:
        if not await self._store.do_collection_exists(collection):
            raise CollectionNotFound(collection)

    async def _get_document(self, collection: str, record_id: int) -> dict:
        document = await self._store.do_find_one(collection, get_surrogate_field(collection), record_id)
        if document is None:
            raise DocumentNotFound(collection, record_id)
        return document

    async def _update(self, collection: str, record_id: int, updates: dict) -> None:
        matched = await self._store.do_update_one(collection, get_surrogate_field(collection), record_id, updates)
        if matched == 0:
            raise DocumentNotFound(collection, record_id)

    def _validate_field(self, collection: str, field: str, value: Any) -> None:
        if not self._values.is_valid(collection, field, value):
            raise InvalidValue(collection, field, to_external(value))
        if not self._types.is_valid(collection, field, value):
            expected = self._types.get_expected_kind(collection, field)
            raise InvalidType(collection, field, expected.value, get_kind(value).value)
