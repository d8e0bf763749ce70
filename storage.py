"""
Document store interface and the in-memory implementation.

Documents are plain dicts keyed by "_id", which is always a str at this
boundary. Services only talk to DocumentStore, so tests can hand them a
MemoryStore and production can hand them a MongoStore (see database.py).
"""
from __future__ import annotations

import copy
import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional

from bson import ObjectId
from pydantic import BaseModel

logger = logging.getLogger(__name__)

Doc = Dict[str, Any]


class DocumentStore(ABC):
    name = "abstract"

    @abstractmethod
    def get(self, collection: str, key: str) -> Optional[Doc]: ...

    @abstractmethod
    def find(self, collection: str, filter: Optional[Mapping[str, Any]] = None) -> List[Doc]:
        """Documents whose fields equal every value in filter, in insertion order."""

    @abstractmethod
    def put(self, collection: str, key: str, doc: Doc) -> None:
        """Replace or create the document stored under key."""

    @abstractmethod
    def update(
        self,
        collection: str,
        key: str,
        fields: Optional[Mapping[str, Any]] = None,
        inc: Optional[Mapping[str, Any]] = None,
    ) -> bool:
        """Apply field assignments and increments to one document. False when key is absent."""

    @abstractmethod
    def update_all(self, collection: str, fields: Mapping[str, Any]) -> int: ...

    @abstractmethod
    def insert(self, collection: str, doc: Doc) -> str:
        """Store a new document and return its id (generated when doc has none)."""

    @abstractmethod
    def delete(self, collection: str, key: str) -> bool: ...

    @abstractmethod
    def delete_all(self, collection: str) -> int: ...

    @abstractmethod
    def count(self, collection: str) -> int: ...

    def ensure_text_index(self, collection: str, fields: List[str], name: str) -> bool:
        """Create a text index if the backend supports one. Returns True when created."""
        return False

    def ping(self) -> bool:
        return True

    # Helpers shared by every backend

    def create_document(self, collection: str, model: BaseModel) -> str:
        data = model.model_dump(by_alias=True, exclude_none=True)
        return self.insert(collection, data)

    def get_documents(self, collection: str, filter: Optional[Mapping[str, Any]] = None) -> List[Doc]:
        return self.find(collection, filter or {})


def _matches(doc: Mapping[str, Any], filter: Mapping[str, Any]) -> bool:
    return all(doc.get(field) == value for field, value in filter.items())


class MemoryStore(DocumentStore):
    """
    Process-local store.

    Each call holds a lock so the dicts never tear under FastAPI's thread pool,
    but nothing spans two calls: a read followed by an update is not atomic.
    Returned documents are copies, so callers must write changes back.
    """

    name = "memory"

    def __init__(self) -> None:
        self._collections: Dict[str, Dict[str, Doc]] = {}
        self._lock = threading.Lock()

    def _collection(self, name: str) -> Dict[str, Doc]:
        return self._collections.setdefault(name, {})

    def get(self, collection: str, key: str) -> Optional[Doc]:
        with self._lock:
            doc = self._collection(collection).get(key)
            return copy.deepcopy(doc) if doc is not None else None

    def find(self, collection: str, filter: Optional[Mapping[str, Any]] = None) -> List[Doc]:
        with self._lock:
            docs = self._collection(collection).values()
            return [copy.deepcopy(d) for d in docs if _matches(d, filter or {})]

    def put(self, collection: str, key: str, doc: Doc) -> None:
        stored = copy.deepcopy(doc)
        stored["_id"] = key
        with self._lock:
            self._collection(collection)[key] = stored

    def update(
        self,
        collection: str,
        key: str,
        fields: Optional[Mapping[str, Any]] = None,
        inc: Optional[Mapping[str, Any]] = None,
    ) -> bool:
        with self._lock:
            doc = self._collection(collection).get(key)
            if doc is None:
                return False
            for field, value in (fields or {}).items():
                doc[field] = copy.deepcopy(value)
            for field, amount in (inc or {}).items():
                doc[field] = doc.get(field, 0) + amount
            return True

    def update_all(self, collection: str, fields: Mapping[str, Any]) -> int:
        with self._lock:
            docs = self._collection(collection).values()
            for doc in docs:
                doc.update(copy.deepcopy(dict(fields)))
            return len(docs)

    def insert(self, collection: str, doc: Doc) -> str:
        stored = copy.deepcopy(doc)
        key = str(stored.get("_id") or ObjectId())
        stored["_id"] = key
        with self._lock:
            self._collection(collection)[key] = stored
        return key

    def delete(self, collection: str, key: str) -> bool:
        with self._lock:
            return self._collection(collection).pop(key, None) is not None

    def delete_all(self, collection: str) -> int:
        with self._lock:
            docs = self._collection(collection)
            removed = len(docs)
            docs.clear()
            return removed

    def count(self, collection: str) -> int:
        with self._lock:
            return len(self._collection(collection))
