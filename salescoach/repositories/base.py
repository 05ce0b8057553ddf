"""
Generic Repository Base Class
Async persistence shared by every engine collection: id mapping, window
range queries and the delete-then-insert replacement used by derived data.
"""
from typing import Generic, TypeVar, Type, Optional, List, Dict, Any, Tuple
from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from bson import ObjectId
import datetime as dt

from ..config import settings
from ..models.base import MongoBaseModel
from ..models.period import PeriodWindow
from ..utils.observability import logger

T = TypeVar("T", bound=MongoBaseModel)


def window_range(window: PeriodWindow) -> Dict[str, dt.datetime]:
    """Inclusive range filter on a timestamp field."""
    return {"$gte": window.start, "$lte": window.end}


class BaseRepository(Generic[T]):
    """
    Typed async access to one MongoDB collection.

    Usage:
        class ActivityRepository(BaseRepository[ActivityRecord]):
            def __init__(self, database: AsyncIOMotorDatabase):
                super().__init__(database, "activities", ActivityRecord)
    """

    def __init__(
        self,
        database: AsyncIOMotorDatabase,
        collection_name: str,
        model_class: Type[T]
    ):
        self.database = database
        self.collection: AsyncIOMotorCollection = database[collection_name]
        self.model_class = model_class
        self.collection_name = collection_name

    def _to_document(self, document: T) -> Dict[str, Any]:
        # Unset optionals stay absent; Mongo matches {field: None} on missing fields
        return document.model_dump(by_alias=True, exclude={"id"}, exclude_none=True)

    def _to_model(self, doc: Dict[str, Any]) -> T:
        """Map a raw document onto the model, dropping fields it does not declare."""
        known = self.model_class.model_fields.keys()
        data = {k: v for k, v in doc.items() if k in known}
        if "_id" in doc:
            data["_id"] = str(doc["_id"])
        return self.model_class.model_validate(data)

    @staticmethod
    def _stamp(documents: List[T]) -> None:
        now = dt.datetime.now(dt.UTC)
        for document in documents:
            document.created_at = now
            document.updated_at = now

    # ============================================
    # WRITES
    # ============================================

    async def create(self, document: T) -> T:
        """
        Insert one document and set its `id`.

        Raises:
            pymongo.errors.DuplicateKeyError: a unique index rejected it
        """
        self._stamp([document])
        result = await self.collection.insert_one(self._to_document(document))
        document.id = str(result.inserted_id)

        logger.debug(f"Inserted into {self.collection_name}", extra={"document_id": document.id})
        return document

    async def bulk_create(self, documents: List[T]) -> List[T]:
        """Insert many documents in one round trip; ids are set in order."""
        if not documents:
            return []

        self._stamp(documents)
        result = await self.collection.insert_many([self._to_document(d) for d in documents])
        for document, inserted_id in zip(documents, result.inserted_ids):
            document.id = str(inserted_id)

        logger.debug(f"Inserted {len(documents)} into {self.collection_name}")
        return documents

    async def delete_many(self, filter_dict: Dict[str, Any]) -> int:
        result = await self.collection.delete_many(filter_dict)
        return result.deleted_count

    async def replace_where(self, filter_dict: Dict[str, Any], documents: List[T]) -> Tuple[int, List[T]]:
        """
        Delete every document matching the filter, then insert `documents`.

        Returns:
            (number removed, inserted documents)
        """
        removed = await self.delete_many(filter_dict)
        saved = await self.bulk_create(documents)

        logger.debug(
            f"Replaced {removed} with {len(saved)} in {self.collection_name}",
            extra={"filter": filter_dict}
        )
        return removed, saved

    # ============================================
    # READS
    # ============================================

    async def find_by_id(self, document_id: str) -> Optional[T]:
        # Ids that are not ObjectIds can never match
        if not ObjectId.is_valid(document_id):
            return None
        return await self.find_one({"_id": ObjectId(document_id)})

    async def find_one(self, filter_dict: Dict[str, Any]) -> Optional[T]:
        doc = await self.collection.find_one(filter_dict)
        return self._to_model(doc) if doc is not None else None

    async def find_many(
        self,
        filter_dict: Dict[str, Any],
        limit: Optional[int] = None,
        skip: int = 0,
        sort: Optional[List[tuple]] = None
    ) -> List[T]:
        """
        Documents matching the filter.

        Args:
            filter_dict: MongoDB query filter
            limit: Maximum number returned (defaults to the configured read limit)
            skip: Number of documents to skip
            sort: List of (field, direction) tuples
        """
        limit = limit or settings.storage_read_limit
        cursor = self.collection.find(filter_dict).skip(skip).limit(limit)
        if sort:
            cursor = cursor.sort(sort)

        docs = await cursor.to_list(length=limit)
        return [self._to_model(doc) for doc in docs]

    async def find_in_window(
        self,
        time_field: str,
        window: PeriodWindow,
        filter_dict: Optional[Dict[str, Any]] = None,
        limit: Optional[int] = None,
    ) -> List[T]:
        """Documents whose `time_field` falls inside the window, oldest first."""
        query = {**(filter_dict or {}), time_field: window_range(window)}
        return await self.find_many(query, limit=limit, sort=[(time_field, 1)])

    async def count(self, filter_dict: Optional[Dict[str, Any]] = None) -> int:
        return await self.collection.count_documents(filter_dict or {})
