"""Generic MongoDB repository shared by all collections."""

from typing import Any, Dict, Generic, List, Optional, Tuple, Type, TypeVar

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.collection import Collection
from pymongo.database import Database

from miranda.entities.base import BaseEntity
from miranda.utils.datetime import utc_now

T = TypeVar("T", bound=BaseEntity)

SortSpec = Optional[List[Tuple[str, int]]]


class BaseRepository(Generic[T]):
    """CRUD helpers that convert raw documents into entity models."""

    def __init__(self, db: Database, collection_name: str, model_class: Type[T]):
        self.db = db
        self.collection: Collection = db[collection_name]
        self.model_class = model_class

    def _to_object_id(self, value: Any) -> Optional[ObjectId]:
        if value is None:
            return None
        if isinstance(value, ObjectId):
            return value
        if isinstance(value, str) and ObjectId.is_valid(value):
            return ObjectId(value)
        return None

    def _to_entity(self, doc: Optional[Dict[str, Any]]) -> Optional[T]:
        if doc is None:
            return None
        return self.model_class.model_validate(doc)

    def find_by_id(self, entity_id: Any) -> Optional[T]:
        oid = self._to_object_id(entity_id)
        if oid is None:
            return None
        return self._to_entity(self.collection.find_one({"_id": oid}))

    def find_by_ids(self, entity_ids: List[Any]) -> List[T]:
        oids = [oid for oid in (self._to_object_id(i) for i in entity_ids) if oid]
        if not oids:
            return []
        return self.find_many({"_id": {"$in": oids}})

    def find_one(self, query: Dict[str, Any], sort: SortSpec = None) -> Optional[T]:
        return self._to_entity(self.collection.find_one(query, sort=sort))

    def find_many(
        self,
        query: Dict[str, Any],
        sort: SortSpec = None,
        skip: int = 0,
        limit: int = 0,
    ) -> List[T]:
        cursor = self.collection.find(query)
        if sort:
            cursor = cursor.sort(sort)
        if skip:
            cursor = cursor.skip(skip)
        if limit:
            cursor = cursor.limit(limit)
        return [self._to_entity(doc) for doc in cursor]

    def paginate(
        self,
        query: Dict[str, Any],
        sort: SortSpec = None,
        skip: int = 0,
        limit: int = 0,
    ) -> Tuple[List[T], int]:
        total = self.collection.count_documents(query)
        return self.find_many(query, sort=sort, skip=skip, limit=limit), total

    def count(self, query: Optional[Dict[str, Any]] = None) -> int:
        return self.collection.count_documents(query or {})

    def insert_one(self, entity: Any) -> T:
        if isinstance(entity, BaseEntity):
            doc = entity.to_mongo()
        else:
            doc = dict(entity)
        result = self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return self._to_entity(doc)

    def insert_many(self, entities: List[Any]) -> List[ObjectId]:
        if not entities:
            return []
        docs = [e.to_mongo() if isinstance(e, BaseEntity) else dict(e) for e in entities]
        return list(self.collection.insert_many(docs).inserted_ids)

    def update_one(self, entity_id: Any, updates: Dict[str, Any]) -> Optional[T]:
        """Set fields on one document and return the updated entity."""
        oid = self._to_object_id(entity_id)
        if oid is None:
            return None
        payload = dict(updates)
        payload.setdefault("updated_at", utc_now())
        doc = self.collection.find_one_and_update(
            {"_id": oid},
            {"$set": payload},
            return_document=ReturnDocument.AFTER,
        )
        return self._to_entity(doc)

    def find_one_and_update(
        self,
        query: Dict[str, Any],
        update: Dict[str, Any],
        upsert: bool = False,
        return_after: bool = True,
    ) -> Optional[T]:
        doc = self.collection.find_one_and_update(
            query,
            update,
            upsert=upsert,
            return_document=ReturnDocument.AFTER if return_after else ReturnDocument.BEFORE,
        )
        return self._to_entity(doc)

    def delete_many(self, query: Dict[str, Any]) -> int:
        return self.collection.delete_many(query).deleted_count
