import copy
from typing import Any

from shared.clients.store.DocumentStoreInterface import DocumentStoreInterface
from shared.errors.IntegrityError import ConnectionFailed
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


def _equals(stored: Any, value: Any) -> bool:
    # MongoDB compares numbers across numeric types but never matches a boolean against a number
    if isinstance(stored, bool) != isinstance(value, bool):
        return False
    return stored == value


def _matches(document: dict, field: str, value: Any) -> bool:
    """Equality filter with MongoDB semantics for array fields."""
    if field not in document:
        return False
    stored = document[field]
    if _equals(stored, value):
        return True
    return isinstance(stored, list) and not isinstance(value, list) and any(_equals(item, value) for item in stored)


class DocumentStoreMemory(DocumentStoreInterface):
    """In-process document store. Documents are deep-copied on the way in and out."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._collections: dict[str, list[dict]] | None = None

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Memory"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return []

    def _get_documents(self, collection: str, create: bool = False) -> list[dict]:
        if self._collections is None:
            raise ConnectionFailed("Memory store not initialised. Call boot() before making requests.")
        if create:
            return self._collections.setdefault(collection, [])
        return self._collections.get(collection, [])

    ##########################################
    ############## LIFECYCLE #################
    ##########################################

    async def boot(self) -> None:
        self._collections = {}

    async def close(self) -> None:
        self._collections = None

    async def do_healthcheck(self) -> bool:
        return self._collections is not None

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_collection_exists(self, collection: str) -> bool:
        if self._collections is None:
            raise ConnectionFailed("Memory store not initialised. Call boot() before making requests.")
        return collection in self._collections

    async def do_find_all(self, collection: str) -> list[dict]:
        return copy.deepcopy(self._get_documents(collection))

    async def do_find_one(self, collection: str, field: str, value: Any) -> dict | None:
        for document in self._get_documents(collection):
            if _matches(document, field, value):
                return copy.deepcopy(document)
        return None

    async def do_insert_one(self, collection: str, document: dict) -> None:
        self._get_documents(collection, create=True).append(copy.deepcopy(document))

    async def do_delete_one(self, collection: str, field: str, value: Any) -> None:
        documents = self._get_documents(collection)
        for index, document in enumerate(documents):
            if _matches(document, field, value):
                del documents[index]
                return

    async def do_update_many_increment(self, collection: str, field: str, greater_than: int, delta: int) -> int:
        modified = 0
        for document in self._get_documents(collection):
            current = document.get(field)
            if isinstance(current, (int, float)) and not isinstance(current, bool) and current > greater_than:
                document[field] = current + delta
                modified += 1
        return modified

    async def do_update_one(self, collection: str, field: str, value: Any, updates: dict) -> int:
        for document in self._get_documents(collection):
            if _matches(document, field, value):
                # $set keeps existing positions and appends new fields
                for key, new_value in updates.items():
                    document[key] = copy.deepcopy(new_value)
                return 1
        return 0
