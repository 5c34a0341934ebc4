"""
Database operations - Generic CRUD functions for all collections
"""
from typing import List, Dict, Optional
from datetime import datetime

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ReturnDocument

from hotel_app.config.database import DatabaseConfig


def to_object_id(doc_id) -> Optional[ObjectId]:
    """Parse a string id, returning None when it is not a valid ObjectId"""
    if isinstance(doc_id, ObjectId):
        return doc_id
    try:
        return ObjectId(doc_id)
    except (InvalidId, TypeError):
        return None


class DBOperations:
    """Generic database operations for MongoDB collections, bound to one connection"""

    def __init__(self, db: DatabaseConfig):
        self.db = db

    def collection(self, collection_name: str):
        return self.db.get_collection(collection_name)

    async def get_all(
        self,
        collection_name: str,
        filter_query: Dict = None,
        skip: int = 0,
        limit: int = 100,
        sort: List = None,
    ) -> List[Dict]:
        """Get all documents from a collection with optional filtering"""
        collection = self.collection(collection_name)
        filter_query = filter_query or {}
        cursor = collection.find(filter_query)
        if sort:
            cursor = cursor.sort(sort)
        cursor = cursor.skip(skip).limit(limit)
        return await cursor.to_list(length=limit)

    async def get_by_id(self, collection_name: str, doc_id: str) -> Optional[Dict]:
        """Get a single document by ID"""
        object_id = to_object_id(doc_id)
        if object_id is None:
            return None
        return await self.collection(collection_name).find_one({"_id": object_id})

    async def get_one(self, collection_name: str, filter_query: Dict) -> Optional[Dict]:
        """Get a single document by filter query"""
        return await self.collection(collection_name).find_one(filter_query)

    async def create(self, collection_name: str, document: Dict) -> Dict:
        """Create a new document"""
        now = datetime.utcnow()
        document["created_at"] = now
        document["updated_at"] = now
        result = await self.collection(collection_name).insert_one(document)
        document["_id"] = result.inserted_id
        return document

    async def update(self, collection_name: str, doc_id: str, update_data: Dict) -> Optional[Dict]:
        """Update a document by ID"""
        return await self.update_where(collection_name, {"_id": to_object_id(doc_id)}, update_data)

    async def update_where(
        self,
        collection_name: str,
        filter_query: Dict,
        update_data: Dict,
        unset_fields: List[str] = None,
        sort: List = None,
    ) -> Optional[Dict]:
        """Atomically update the first document matching filter_query.

        Returns the updated document, or None when nothing matched. This is the
        compare-and-swap primitive: put the expected current values in the filter.
        """
        if filter_query.get("_id", True) is None:
            return None
        update_data["updated_at"] = datetime.utcnow()
        update = {"$set": update_data}
        if unset_fields:
            update["$unset"] = {field: "" for field in unset_fields}
        return await self.collection(collection_name).find_one_and_update(
            filter_query,
            update,
            sort=sort,
            return_document=ReturnDocument.AFTER,
        )

    async def count(self, collection_name: str, filter_query: Dict = None) -> int:
        """Count documents in a collection"""
        filter_query = filter_query or {}
        return await self.collection(collection_name).count_documents(filter_query)

    async def aggregate(self, collection_name: str, pipeline: List[Dict]) -> List[Dict]:
        """Execute aggregation pipeline"""
        cursor = self.collection(collection_name).aggregate(pipeline)
        return await cursor.to_list(length=None)
