from services.record_integrity.values import get_surrogate_field
from shared.clients.store.DocumentStoreInterface import DocumentStoreInterface
from shared.errors.IntegrityError import SequenceCorrupted
from shared.helper.HelperConfig import HelperConfig


class SequenceManager:
    """Assigns dense per-collection surrogate ids and renumbers them after a delete.

    Ids of a collection with N documents are always exactly 1..N. The latest id
    is the maximum surrogate id, which under that invariant is also the id of
    the most recently inserted document.
    """

    def __init__(self, helper_config: HelperConfig, store: DocumentStoreInterface):
        self.logging = helper_config.get_logger()
        self._store = store

    def get_latest_id(self, collection: str, documents: list[dict]) -> int:
        """Return the highest surrogate id of a collection.

        Args:
            collection (str): The collection name.
            documents (list[dict]): The current documents of the collection.

        Returns:
            int: The latest id, or 0 for an empty collection.

        Raises:
            SequenceCorrupted: If a document lacks the surrogate id or holds a non-integer in it.
        """
        id_field = get_surrogate_field(collection)
        latest = 0
        for document in documents:
            value = document.get(id_field)
            if not isinstance(value, int) or isinstance(value, bool):
                raise SequenceCorrupted(collection, id_field, value)
            latest = max(latest, value)
        return latest

    def get_next_id(self, collection: str, documents: list[dict]) -> int:
        return self.get_latest_id(collection, documents) + 1

    async def renumber_after_delete(self, collection: str, deleted_id: int) -> int:
        """Close the gap left by a deleted id.

        Args:
            collection (str): The collection name.
            deleted_id (int): The surrogate id that was deleted.

        Returns:
            int: The number of renumbered documents.
        """
        id_field = get_surrogate_field(collection)
        renumbered = await self._store.do_update_many_increment(collection, id_field, greater_than=deleted_id, delta=-1)
        self.logging.debug("Renumbered %d document(s) in %r after deleting id %d.", renumbered, collection, deleted_id)
        return renumbered
