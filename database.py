"""
MongoDB access for the admin API.

`db` is None when DATABASE_URL / DATABASE_NAME are not configured; routes
check for that and answer 503. Helpers take the collection name, which is the
lowercase schema class name (Event -> "event").
"""
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId
from pydantic import BaseModel
from pymongo import MongoClient, ReturnDocument

from config import DATABASE_URL, DATABASE_NAME
from logging_config import get_logger

logger = get_logger(__name__)

db = None

if DATABASE_URL and DATABASE_NAME:
    db = MongoClient(DATABASE_URL)[DATABASE_NAME]


def _as_dict(data: Union[BaseModel, Dict[str, Any]]) -> Dict[str, Any]:
    if isinstance(data, BaseModel):
        return data.model_dump()
    return dict(data)


def is_valid_id(doc_id: str) -> bool:
    return ObjectId.is_valid(doc_id)


def create_document(collection: str, data: Union[BaseModel, Dict[str, Any]]) -> str:
    """Insert a document and return its id as a string."""
    result = db[collection].insert_one(_as_dict(data))
    return str(result.inserted_id)


def get_documents(collection: str, filter_dict: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
    return list(db[collection].find(filter_dict or {}))


def get_document(collection: str, filter_dict: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
    return db[collection].find_one(filter_dict or {})


def update_document(collection: str, doc_id: str, data: Union[BaseModel, Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Set the given fields on one document; returns the updated document or None."""
    if not is_valid_id(doc_id):
        return None
    return db[collection].find_one_and_update(
        {"_id": ObjectId(doc_id)},
        {"$set": _as_dict(data)},
        return_document=ReturnDocument.AFTER,
    )


def replace_document(collection: str, filter_dict: Dict[str, Any], data: Union[BaseModel, Dict[str, Any]]) -> int:
    """Replace the first matching document wholesale; returns the match count."""
    result = db[collection].replace_one(filter_dict, _as_dict(data))
    return result.matched_count


def delete_document(collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
    """Delete one document by id; returns the deleted document or None."""
    if not is_valid_id(doc_id):
        return None
    return db[collection].find_one_and_delete({"_id": ObjectId(doc_id)})


def ensure_indexes():
    """Lookup indexes. Admin usernames are deliberately not a unique index."""
    if db is None:
        return
    try:
        db["admin"].create_index("username")
    except Exception:
        logger.warning("Could not create indexes", exc_info=True)
