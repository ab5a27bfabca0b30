from typing import Any

from services.record_integrity.values import STORE_ID_FIELD, get_target_collection, is_reference_name
from shared.clients.store.DocumentStoreInterface import DocumentStoreInterface
from shared.errors.IntegrityError import DanglingReference, IllegalFieldName
from shared.helper.HelperConfig import HelperConfig


class ReferenceResolver:
    """Verifies that relationship fields point at existing documents.

    A relationship field "<target>_id" references the document of collection
    "<target>" whose field "<target>_id" equals the value. Array values must
    reference an existing document with every element.
    """

    def __init__(self, helper_config: HelperConfig, store: DocumentStoreInterface):
        self.logging = helper_config.get_logger()
        self._store = store

    async def resolve(self, collection: str, relationship: dict) -> dict:
        """Resolve every relationship field, failing on the first dangling reference.

        Nothing is written here. Either every reference resolves or an error is
        raised before the caller reaches its write phase.

        Args:
            collection (str): The collection that will hold the relationship fields.
            relationship (dict): field name -> referenced value or list of values.

        Returns:
            dict: The validated relationship, array values normalised to lists.

        Raises:
            IllegalFieldName: If a field name does not end with "_id".
            DanglingReference: If a referenced document does not exist.
        """
        resolved: dict = {}
        for field, value in relationship.items():
            resolved[field] = await self.resolve_field(collection, field, value)
        return resolved

    async def resolve_field(self, collection: str, field: str, value: Any) -> Any:
        """Resolve one relationship field.

        Returns:
            Any: The value as it should be written.
        """
        if not is_reference_name(field):
            raise IllegalFieldName(collection, field, "foreign keys must end with '_id'")
        if field == STORE_ID_FIELD:
            raise IllegalFieldName(collection, field, "the store identifier cannot be used as a foreign key")
        target = get_target_collection(field)

        if isinstance(value, (list, tuple)):
            for element in value:
                await self._ensure_exists(target, field, element)
            return list(value)

        await self._ensure_exists(target, field, value)
        return value

    async def _ensure_exists(self, target: str, field: str, value: Any) -> None:
        document = await self._store.do_find_one(target, field, value)
        if document is None:
            self.logging.warning("Dangling reference %s=%r, no such document in %r.", field, value, target)
            raise DanglingReference(target, field, value)
