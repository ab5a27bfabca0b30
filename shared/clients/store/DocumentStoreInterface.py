from abc import abstractmethod
from typing import Any

from bson import ObjectId

from shared.clients.ClientInterface import ClientInterface
from shared.helper.HelperConfig import HelperConfig


class DocumentStoreInterface(ClientInterface):
    """
    Minimal document store contract the integrity layer is built on.

    Documents are plain dicts whose key order is the field order. Implementations
    must return documents of a collection in insertion order and must never hand
    out references to their internal state.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "store"
        """
        return "store"

    def generate_identifier(self) -> Any:
        """
        Returns a new opaque document identifier for position 0 ("_id") of a document.
        """
        return ObjectId()

    ##########################################
    ############### REQUESTS #################
    ##########################################

    @abstractmethod
    async def do_collection_exists(self, collection: str) -> bool:
        """Check if a collection is known to the store.

        Args:
            collection (str): The collection name.

        Returns:
            bool: True if the collection exists.
        """
        pass

    @abstractmethod
    async def do_find_all(self, collection: str) -> list[dict]:
        """Fetch all documents of a collection.

        Args:
            collection (str): The collection name.

        Returns:
            list[dict]: All documents in insertion order. Empty if the collection does not exist.
        """
        pass

    @abstractmethod
    async def do_find_one(self, collection: str, field: str, value: Any) -> dict | None:
        """Fetch the first document whose field equals the value.

        An array field matches when it contains the value.

        Args:
            collection (str): The collection name.
            field (str): The field to compare.
            value (Any): The value to compare against.

        Returns:
            dict | None: The first matching document, or None.
        """
        pass

    @abstractmethod
    async def do_insert_one(self, collection: str, document: dict) -> None:
        """Insert one document, creating the collection if needed.

        Args:
            collection (str): The collection name.
            document (dict): The complete document including "_id".
        """
        pass

    @abstractmethod
    async def do_delete_one(self, collection: str, field: str, value: Any) -> None:
        """Delete the first document whose field equals the value.

        Args:
            collection (str): The collection name.
            field (str): The field to compare.
            value (Any): The value to compare against.
        """
        pass

    @abstractmethod
    async def do_update_many_increment(self, collection: str, field: str, greater_than: int, delta: int) -> int:
        """Increment a numeric field by delta on every document where it is greater than a bound.

        Args:
            collection (str): The collection name.
            field (str): The numeric field to filter on and increment.
            greater_than (int): Exclusive lower bound for the filter.
            delta (int): The increment (negative to decrement).

        Returns:
            int: The number of modified documents.
        """
        pass

    @abstractmethod
    async def do_update_one(self, collection: str, field: str, value: Any, updates: dict) -> int:
        """Set several fields on the first document whose field equals the value, in one update.

        Args:
            collection (str): The collection name.
            field (str): The field to filter on.
            value (Any): The value to filter on.
            updates (dict): field -> new value.

        Returns:
            int: The number of matched documents (0 or 1).
        """
        pass
