"""
Database helpers

MongoDB access for the API. ``db`` is set by connect() at startup (tests
install their own database instead) and every helper resolves it at call
time, so handlers never hold a stale handle.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import BaseModel
from pymongo import MongoClient, ReturnDocument
from pymongo.database import Database
from pymongo.errors import PyMongoError

import config
import errors

logger = logging.getLogger(__name__)

client: Optional[MongoClient] = None
db: Optional[Database] = None


def connect(url: Optional[str] = None, name: Optional[str] = None,
            timeout_ms: Optional[int] = None) -> Database:
    global client, db
    client = MongoClient(
        url or config.DATABASE_URL,
        serverSelectionTimeoutMS=timeout_ms or config.DATABASE_TIMEOUT_MS,
    )
    try:
        # MongoClient connects lazily; ping forces server selection now
        client.admin.command("ping")
    except PyMongoError:
        client.close()
        client = None
        raise
    db = client[name or config.DATABASE_NAME]
    logger.info("Connected to MongoDB database %s", db.name)
    return db


def close() -> None:
    global client, db
    if client is not None:
        client.close()
    client = None
    db = None


@contextmanager
def store_errors():
    try:
        yield
    except PyMongoError as exc:
        raise errors.StoreError(str(exc)) from exc


def get_collection(name: str):
    if db is None:
        raise errors.StoreError("Database not initialized")
    return db[name]


def object_id(value: Any) -> Optional[ObjectId]:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def serialize(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Public form of a stored document: ``_id`` becomes ``id`` and
    datetimes become ISO strings."""
    if not doc:
        return doc
    d = {**doc}
    if d.get("_id") is not None:
        d["id"] = str(d.pop("_id"))
    for k, v in list(d.items()):
        if isinstance(v, datetime):
            d[k] = v.isoformat()
    return d


def create_document(collection_name: str, data: Union[BaseModel, Dict[str, Any]],
                    timestamps: bool = False) -> Dict[str, Any]:
    """Insert a document and return it as stored."""
    doc = data.model_dump(exclude_none=True) if isinstance(data, BaseModel) else dict(data)
    if timestamps:
        now = datetime.now(timezone.utc)
        doc.update({"createdAt": now, "updatedAt": now})
    with store_errors():
        collection = get_collection(collection_name)
        inserted_id = collection.insert_one(doc).inserted_id
        return collection.find_one({"_id": inserted_id})


def get_documents(collection_name: str, filter_dict: Optional[Dict[str, Any]] = None,
                  sort: Optional[List[tuple]] = None) -> List[Dict[str, Any]]:
    with store_errors():
        cursor = get_collection(collection_name).find(filter_dict or {})
        if sort:
            cursor = cursor.sort(sort)
        return list(cursor)


def get_document(collection_name: str, doc_id: str) -> Optional[Dict[str, Any]]:
    _id = object_id(doc_id)
    if _id is None:
        return None
    with store_errors():
        return get_collection(collection_name).find_one({"_id": _id})


def update_document(collection_name: str, doc_id: str, fields: Dict[str, Any],
                    expected: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
    """Atomically set ``fields`` and return the updated document.

    ``expected`` adds conditions the stored document must still meet.
    Returns None when nothing matched.
    """
    _id = object_id(doc_id)
    if _id is None:
        return None
    with store_errors():
        return get_collection(collection_name).find_one_and_update(
            {"_id": _id, **(expected or {})},
            {"$set": fields},
            return_document=ReturnDocument.AFTER,
        )


def delete_document(collection_name: str, doc_id: str) -> Optional[Dict[str, Any]]:
    """Remove a document, returning it, or None if it did not exist."""
    _id = object_id(doc_id)
    if _id is None:
        return None
    with store_errors():
        return get_collection(collection_name).find_one_and_delete({"_id": _id})
