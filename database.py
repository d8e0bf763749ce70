"""
MongoDB connection and the pymongo-backed document store.

open_store() is what the app calls at startup: it returns a MongoStore when
MONGODB_URI is set and the server answers a ping, and falls back to a
MemoryStore otherwise so the demo still runs without a database.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from bson import ObjectId
from pymongo import MongoClient, ReturnDocument
from pymongo.database import Database
from pymongo.errors import PyMongoError

from config import Settings
from storage import Doc, DocumentStore, MemoryStore

logger = logging.getLogger(__name__)


def _key(key: Any) -> Any:
    if isinstance(key, str) and ObjectId.is_valid(key):
        return ObjectId(key)
    return key


def _out(doc: Optional[Dict[str, Any]]) -> Optional[Doc]:
    if doc is None:
        return None
    doc["_id"] = str(doc["_id"])
    return doc


class MongoStore(DocumentStore):
    name = "mongodb"

    def __init__(self, db: Database) -> None:
        self.db = db

    def get(self, collection: str, key: str) -> Optional[Doc]:
        return _out(self.db[collection].find_one({"_id": _key(key)}))

    def find(self, collection: str, filter: Optional[Mapping[str, Any]] = None) -> List[Doc]:
        return [_out(d) for d in self.db[collection].find(dict(filter or {})).sort("_id", 1)]

    def put(self, collection: str, key: str, doc: Doc) -> None:
        body = {k: v for k, v in doc.items() if k != "_id"}
        self.db[collection].replace_one({"_id": _key(key)}, body, upsert=True)

    def update(
        self,
        collection: str,
        key: str,
        fields: Optional[Mapping[str, Any]] = None,
        inc: Optional[Mapping[str, Any]] = None,
    ) -> bool:
        ops: Dict[str, Any] = {}
        if fields:
            ops["$set"] = dict(fields)
        if inc:
            ops["$inc"] = dict(inc)
        if not ops:
            return self.get(collection, key) is not None
        updated = self.db[collection].find_one_and_update(
            {"_id": _key(key)}, ops, return_document=ReturnDocument.AFTER
        )
        return updated is not None

    def update_all(self, collection: str, fields: Mapping[str, Any]) -> int:
        return self.db[collection].update_many({}, {"$set": dict(fields)}).matched_count

    def insert(self, collection: str, doc: Doc) -> str:
        body = dict(doc)
        if "_id" in body:
            body["_id"] = _key(body["_id"])
        return str(self.db[collection].insert_one(body).inserted_id)

    def delete(self, collection: str, key: str) -> bool:
        return self.db[collection].delete_one({"_id": _key(key)}).deleted_count > 0

    def delete_all(self, collection: str) -> int:
        return self.db[collection].delete_many({}).deleted_count

    def count(self, collection: str) -> int:
        return self.db[collection].count_documents({})

    def ensure_text_index(self, collection: str, fields: List[str], name: str) -> bool:
        existing = [ix["name"] for ix in self.db[collection].list_indexes()]
        if name in existing:
            return False
        self.db[collection].create_index([(f, "text") for f in fields], name=name)
        return True

    def ping(self) -> bool:
        try:
            self.db.client.admin.command("ping")
            return True
        except PyMongoError as e:
            logger.warning("MongoDB ping failed: %s", e)
            return False


def open_store(settings: Settings) -> DocumentStore:
    if not settings.mongodb_uri:
        logger.info("MONGODB_URI not set, using in-memory data")
        return MemoryStore()
    client: MongoClient = MongoClient(settings.mongodb_uri, serverSelectionTimeoutMS=settings.mongo_timeout_ms)
    store = MongoStore(client[settings.db_name])
    if not store.ping():
        client.close()
        logger.warning("MongoDB unreachable, falling back to in-memory data")
        return MemoryStore()
    logger.info("Connected to MongoDB database %s", settings.db_name)
    return store
