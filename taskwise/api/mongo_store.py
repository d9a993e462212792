"""
MongoDB document store
"""

import asyncio
from typing import Any, Dict, List, Optional
from pymongo import MongoClient
from pymongo.errors import DuplicateKeyError, OperationFailure
from taskwise.api.document_store import Document, DocumentStore
from taskwise.utils.error_handler import NotFoundError, PermissionDeniedError

# MongoDB server error codes that mean "not allowed"
_UNAUTHORIZED_CODES = {13, 18}


def _to_mongo(document: Document) -> Document:
    data = dict(document)
    if "id" in data:
        data["_id"] = data.pop("id")
    return data


def _from_mongo(document: Optional[Document]) -> Optional[Document]:
    if document is None:
        return None
    data = dict(document)
    data["id"] = data.pop("_id")
    return data


def _filters_to_mongo(filters: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    return _to_mongo(filters or {})


class MongoDocumentStore(DocumentStore):
    """
    Document store backed by a MongoDB database

    pymongo is blocking, so every call runs in a worker thread. Documents
    are stored with the task ID as "_id". Subscriptions are woken by writes
    made through this store instance.
    """

    def __init__(self, database_url: str, database_name: str, client: Optional[MongoClient] = None):
        """
        Initialize MongoDB store

        Args:
            database_url: MongoDB connection string
            database_name: Database name
            client: Pre-built client (optional)
        """
        super().__init__()
        self.client = client or MongoClient(database_url, tz_aware=True)
        self.db = self.client[database_name]

    async def _run(self, func, *args, **kwargs):
        try:
            return await asyncio.to_thread(func, *args, **kwargs)
        except OperationFailure as e:
            if e.code in _UNAUTHORIZED_CODES:
                raise PermissionDeniedError(str(e)) from e
            raise

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        document = await self._run(self.db[collection].find_one, {"_id": doc_id})
        return _from_mongo(document)

    async def _insert(self, collection: str, document: Document) -> Document:
        try:
            await self._run(self.db[collection].insert_one, _to_mongo(document))
        except DuplicateKeyError as e:
            raise ValueError(f"Document {collection}/{document['id']} already exists") from e
        return dict(document)

    async def _update(self, collection: str, doc_id: str, fields: Document) -> Document:
        result = await self._run(
            self.db[collection].update_one,
            {"_id": doc_id},
            {"$set": fields},
        )
        if result.matched_count == 0:
            raise NotFoundError(f"Document {collection}/{doc_id} not found")
        return await self.get(collection, doc_id)

    async def _delete(self, collection: str, doc_id: str) -> bool:
        result = await self._run(self.db[collection].delete_one, {"_id": doc_id})
        return result.deleted_count > 0

    async def query(self, collection: str, filters: Optional[Dict[str, Any]] = None) -> List[Document]:
        def _find():
            return list(self.db[collection].find(_filters_to_mongo(filters)))

        documents = await self._run(_find)
        return [_from_mongo(d) for d in documents]

    async def close(self):
        """Close MongoDB client"""
        self.client.close()
