"""
Document Store Adapter

The store contract the review core is written against, and its MongoDB
implementation on top of Motor.

Mapping:
- MERGE write      -> update_one($set, upsert)
- SET write        -> replace_one(upsert)
- set-union append -> update_one($addToSet + $each)
- vote set delta   -> one update_one with $addToSet and $pull
- batch commit     -> one multi-document transaction per group
"""

import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence

from pymongo.errors import PyMongoError

from .constants import DEFAULT_MAX_BATCH_OPERATIONS, OperationKind, WriteMode
from .contracts import VoteDelta, WriteOperation
from .errors import NotFoundError, StoreError

logger = logging.getLogger(__name__)


class DocumentStore(Protocol):
    """What the core needs from the persistent document store."""

    max_batch_operations: int

    async def read_document(self, collection: str, document_id: str) -> Dict[str, Any]:
        ...

    async def query_documents(self, collection: str, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        ...

    async def write_document(
        self,
        collection: str,
        document_id: str,
        fields: Dict[str, Any],
        mode: WriteMode = WriteMode.MERGE,
    ) -> None:
        ...

    async def set_union_append(
        self, collection: str, document_id: str, field: str, values: Sequence[str]
    ) -> None:
        ...

    async def apply_set_delta(self, collection: str, document_id: str, delta: VoteDelta) -> None:
        ...

    async def commit_batch(self, operations: Sequence[WriteOperation]) -> None:
        ...


def _from_mongo(raw: Dict[str, Any]) -> Dict[str, Any]:
    doc = dict(raw)
    doc["id"] = str(doc.pop("_id"))
    return doc


def _union_update(field: str, values: Sequence[str]) -> Dict[str, Any]:
    return {"$addToSet": {field: {"$each": list(values)}}}


def _delta_update(delta: VoteDelta) -> Dict[str, Any]:
    update: Dict[str, Any] = {}
    if delta.add:
        update["$addToSet"] = {f: {"$each": list(v)} for f, v in delta.add.items()}
    if delta.remove:
        update["$pull"] = {f: {"$in": list(v)} for f, v in delta.remove.items()}
    return update


class MongoDocumentStore:
    """
    DocumentStore over a Motor database.

    Batch commits need a replica set (MongoDB transactions); every other
    call works on a standalone server.
    """

    def __init__(
        self,
        database,
        client=None,
        max_batch_operations: int = DEFAULT_MAX_BATCH_OPERATIONS,
    ):
        """
        Args:
            database: AsyncIOMotorDatabase
            client: AsyncIOMotorClient used to open sessions; defaults to database.client
            max_batch_operations: Largest group commit_batch accepts
        """
        self.db = database
        self.client = client if client is not None else database.client
        self.max_batch_operations = max_batch_operations

    async def read_document(self, collection: str, document_id: str) -> Dict[str, Any]:
        try:
            raw = await self.db[collection].find_one({"_id": document_id})
        except PyMongoError as e:
            logger.error("Read %s/%s failed: %s", collection, document_id, e)
            raise StoreError(str(e)) from e
        if raw is None:
            raise NotFoundError(collection, document_id)
        return _from_mongo(raw)

    async def query_documents(self, collection: str, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        try:
            cursor = self.db[collection].find(filters)
            docs = await cursor.to_list(length=None)
        except PyMongoError as e:
            logger.error("Query on %s failed: %s", collection, e)
            raise StoreError(str(e)) from e
        return [_from_mongo(d) for d in docs]

    async def write_document(
        self,
        collection: str,
        document_id: str,
        fields: Dict[str, Any],
        mode: WriteMode = WriteMode.MERGE,
    ) -> None:
        try:
            if mode == WriteMode.SET:
                await self.db[collection].replace_one({"_id": document_id}, dict(fields), upsert=True)
            else:
                await self.db[collection].update_one({"_id": document_id}, {"$set": dict(fields)}, upsert=True)
        except PyMongoError as e:
            logger.error("Write %s/%s failed: %s", collection, document_id, e)
            raise StoreError(str(e)) from e

    async def set_union_append(
        self, collection: str, document_id: str, field: str, values: Sequence[str]
    ) -> None:
        try:
            result = await self.db[collection].update_one(
                {"_id": document_id}, _union_update(field, values)
            )
        except PyMongoError as e:
            logger.error("Union into %s/%s.%s failed: %s", collection, document_id, field, e)
            raise StoreError(str(e)) from e
        if result.matched_count == 0:
            raise NotFoundError(collection, document_id)

    async def apply_set_delta(self, collection: str, document_id: str, delta: VoteDelta) -> None:
        update = _delta_update(delta)
        if not update:
            return
        try:
            result = await self.db[collection].update_one({"_id": document_id}, update)
        except PyMongoError as e:
            logger.error("Set delta on %s/%s failed: %s", collection, document_id, e)
            raise StoreError(str(e)) from e
        if result.matched_count == 0:
            raise NotFoundError(collection, document_id)

    async def _apply(self, operation: WriteOperation, session) -> None:
        coll = self.db[operation.collection]
        if operation.kind == OperationKind.MERGE:
            await coll.update_one(
                {"_id": operation.document_id},
                {"$set": dict(operation.changes)},
                upsert=True,
                session=session,
            )
            return

        result = await coll.update_one(
            {"_id": operation.document_id},
            _union_update(operation.array_field, operation.values),
            session=session,
        )
        if result.matched_count == 0:
            raise NotFoundError(operation.collection, operation.document_id)

    async def commit_batch(self, operations: Sequence[WriteOperation]) -> None:
        """
        Apply every operation of one group atomically, or none of them.

        Raises:
            ValueError: if the group exceeds max_batch_operations
            NotFoundError: if a union targets a missing document (group aborted)
            StoreError: on any driver failure (group aborted)
        """
        if len(operations) > self.max_batch_operations:
            raise ValueError(
                f"batch of {len(operations)} operations exceeds limit of {self.max_batch_operations}"
            )
        if not operations:
            return

        try:
            async with await self.client.start_session() as session:
                async with session.start_transaction():
                    for operation in operations:
                        await self._apply(operation, session)
        except PyMongoError as e:
            logger.error("Batch commit of %d operations failed: %s", len(operations), e)
            raise StoreError(str(e)) from e


def get_store(
    database=None,
    client=None,
    max_batch_operations: Optional[int] = None,
) -> MongoDocumentStore:
    """Store bound to the application's Mongo database unless one is given."""
    if database is None:
        import db_mongo

        database = db_mongo.db
        client = db_mongo.client
        if max_batch_operations is None:
            max_batch_operations = db_mongo.MAX_BATCH_OPERATIONS

    return MongoDocumentStore(
        database,
        client=client,
        max_batch_operations=max_batch_operations or DEFAULT_MAX_BATCH_OPERATIONS,
    )
