"""
Document store client interface and in-memory implementation
"""

import asyncio
import copy
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Any, AsyncIterator, Dict, List, Optional
from taskwise.utils.error_handler import NotFoundError
from taskwise.utils.logger import logger

Document = Dict[str, Any]


class DocumentStore(ABC):
    """
    Base class for document stores

    Documents are plain dicts keyed by their "id" field. Every write made
    through the store wakes the subscribers of that collection, which then
    receive the full current result set of their query (never a delta).
    """

    def __init__(self):
        """Initialize subscriber registry"""
        self._subscribers: Dict[str, List[asyncio.Queue]] = defaultdict(list)
        self.logger = logger

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        """Get document by ID, None if absent"""

    @abstractmethod
    async def _insert(self, collection: str, document: Document) -> Document:
        pass

    @abstractmethod
    async def _update(self, collection: str, doc_id: str, fields: Document) -> Document:
        pass

    @abstractmethod
    async def _delete(self, collection: str, doc_id: str) -> bool:
        pass

    @abstractmethod
    async def query(self, collection: str, filters: Optional[Dict[str, Any]] = None) -> List[Document]:
        """
        Get documents whose fields equal every filter value

        Args:
            collection: Collection name
            filters: Field name to value mapping (all must match)

        Returns:
            List of documents (unordered)
        """

    async def insert(self, collection: str, document: Document) -> Document:
        """
        Insert a new document

        Args:
            collection: Collection name
            document: Document with an "id" field

        Returns:
            Stored document
        """
        if not document.get("id"):
            raise ValueError("Document must carry an 'id'")
        stored = await self._insert(collection, document)
        self.logger.debug(f"[Store] Inserted {collection}/{document['id']}")
        self._notify(collection)
        return stored

    async def update(self, collection: str, doc_id: str, fields: Document) -> Document:
        """
        Merge fields into an existing document (last writer wins per field)

        Args:
            collection: Collection name
            doc_id: Document ID
            fields: Fields to set

        Returns:
            Updated document

        Raises:
            NotFoundError: If the document does not exist
        """
        fields = {k: v for k, v in fields.items() if k != "id"}
        stored = await self._update(collection, doc_id, fields)
        self.logger.debug(f"[Store] Updated {collection}/{doc_id}: {sorted(fields)}")
        self._notify(collection)
        return stored

    async def update_many(self, collection: str, updates: Dict[str, Document]) -> List[Document]:
        """
        Apply several field updates, notifying subscribers once

        Args:
            collection: Collection name
            updates: Document ID to fields mapping

        Returns:
            Updated documents
        """
        stored = []
        for doc_id, fields in updates.items():
            fields = {k: v for k, v in fields.items() if k != "id"}
            stored.append(await self._update(collection, doc_id, fields))
        self.logger.debug(f"[Store] Batch updated {len(stored)} documents in {collection}")
        self._notify(collection)
        return stored

    async def delete(self, collection: str, doc_id: str) -> bool:
        """
        Delete document

        Args:
            collection: Collection name
            doc_id: Document ID

        Returns:
            True if a document was removed
        """
        deleted = await self._delete(collection, doc_id)
        if deleted:
            self.logger.debug(f"[Store] Deleted {collection}/{doc_id}")
            self._notify(collection)
        return deleted

    async def subscribe(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
    ) -> AsyncIterator[List[Document]]:
        """
        Stream full query snapshots: the current one, then one per change

        Nothing is registered until the first snapshot is requested.
        Closing or cancelling the iteration unsubscribes.

        Args:
            collection: Collection name
            filters: Query filters

        Yields:
            Complete result set of the query
        """
        queue: asyncio.Queue = asyncio.Queue()
        self._subscribers[collection].append(queue)
        self.logger.debug(f"[Store] Subscribed to {collection} {filters or {}}")
        try:
            yield await self.query(collection, filters)
            while True:
                await queue.get()
                # Several writes in a row produce one snapshot
                while not queue.empty():
                    queue.get_nowait()
                yield await self.query(collection, filters)
        finally:
            self._subscribers[collection].remove(queue)
            self.logger.debug(f"[Store] Unsubscribed from {collection}")

    def subscriber_count(self, collection: str) -> int:
        """Number of active subscriptions on a collection"""
        return len(self._subscribers.get(collection, []))

    def _notify(self, collection: str):
        for queue in self._subscribers.get(collection, []):
            queue.put_nowait(collection)

    async def close(self):
        """Release resources held by the store"""


class InMemoryDocumentStore(DocumentStore):
    """Document store kept in process memory"""

    def __init__(self):
        super().__init__()
        self._collections: Dict[str, Dict[str, Document]] = defaultdict(dict)

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        document = self._collections[collection].get(doc_id)
        return copy.deepcopy(document) if document is not None else None

    async def _insert(self, collection: str, document: Document) -> Document:
        if document["id"] in self._collections[collection]:
            raise ValueError(f"Document {collection}/{document['id']} already exists")
        self._collections[collection][document["id"]] = copy.deepcopy(document)
        return copy.deepcopy(document)

    async def _update(self, collection: str, doc_id: str, fields: Document) -> Document:
        document = self._collections[collection].get(doc_id)
        if document is None:
            raise NotFoundError(f"Document {collection}/{doc_id} not found")
        document.update(copy.deepcopy(fields))
        return copy.deepcopy(document)

    async def _delete(self, collection: str, doc_id: str) -> bool:
        return self._collections[collection].pop(doc_id, None) is not None

    async def query(self, collection: str, filters: Optional[Dict[str, Any]] = None) -> List[Document]:
        filters = filters or {}
        return [
            copy.deepcopy(document)
            for document in self._collections[collection].values()
            if all(document.get(key) == value for key, value in filters.items())
        ]
