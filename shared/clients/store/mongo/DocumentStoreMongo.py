from contextlib import contextmanager
from typing import Any, Iterator

from pymongo import AsyncMongoClient
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import PyMongoError

from shared.clients.store.DocumentStoreInterface import DocumentStoreInterface
from shared.errors.IntegrityError import ConnectionFailed
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class DocumentStoreMongo(DocumentStoreInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._uri = self.get_config_val("URI", default=None, val_type="string")
        self._database_name = self.get_config_val("DATABASE", default=None, val_type="string")
        self._timeout_ms = self.get_config_val("TIMEOUT_MS", default=5000, val_type="number")

        self._client: AsyncMongoClient | None = None
        self._database: AsyncDatabase | None = None

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Mongo"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="URI", val_type="string", default=None),
            EnvConfig(env_key="DATABASE", val_type="string", default=None),
            EnvConfig(env_key="TIMEOUT_MS", val_type="number", default=5000),
        ]

    def _get_collection(self, collection: str) -> AsyncCollection:
        if self._database is None:
            raise ConnectionFailed("Mongo client not initialised. Call boot() before making requests.")
        return self._database[collection]

    @contextmanager
    def _translate_errors(self, action: str, collection: str | None = None) -> Iterator[None]:
        """Re-raise any driver error as ConnectionFailed."""
        try:
            yield
        except PyMongoError as e:
            self.logging.error("Mongo %s failed for collection %r: %s", action, collection, e)
            raise ConnectionFailed(f"Error while running {action} against the database: {e}", collection=collection) from e

    ##########################################
    ############## LIFECYCLE #################
    ##########################################

    async def boot(self) -> None:
        with self._translate_errors("connect"):
            self._client = AsyncMongoClient(self._uri, serverSelectionTimeoutMS=int(self._timeout_ms))
            self._database = self._client[self._database_name]
        self.logging.info("Mongo client created for database %r.", self._database_name)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
            self._database = None

    async def do_healthcheck(self) -> bool:
        if self._client is None:
            return False
        try:
            await self._client.admin.command("ping")
            return True
        except PyMongoError as e:
            self.logging.warning("Mongo healthcheck failed: %s", e)
            return False

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_collection_exists(self, collection: str) -> bool:
        if self._database is None:
            raise ConnectionFailed("Mongo client not initialised. Call boot() before making requests.")
        with self._translate_errors("list_collection_names", collection):
            names = await self._database.list_collection_names()
        return collection in names

    async def do_find_all(self, collection: str) -> list[dict]:
        with self._translate_errors("find", collection):
            return await self._get_collection(collection).find({}).to_list()

    async def do_find_one(self, collection: str, field: str, value: Any) -> dict | None:
        with self._translate_errors("find_one", collection):
            return await self._get_collection(collection).find_one({field: value})

    async def do_insert_one(self, collection: str, document: dict) -> None:
        with self._translate_errors("insert_one", collection):
            await self._get_collection(collection).insert_one(document)

    async def do_delete_one(self, collection: str, field: str, value: Any) -> None:
        with self._translate_errors("delete_one", collection):
            await self._get_collection(collection).delete_one({field: value})

    async def do_update_many_increment(self, collection: str, field: str, greater_than: int, delta: int) -> int:
        with self._translate_errors("update_many", collection):
            result = await self._get_collection(collection).update_many(
                {field: {"$gt": greater_than}},
                {"$inc": {field: delta}},
            )
        return result.modified_count

    async def do_update_one(self, collection: str, field: str, value: Any, updates: dict) -> int:
        with self._translate_errors("update_one", collection):
            result = await self._get_collection(collection).update_one({field: value}, {"$set": updates})
        return result.matched_count
