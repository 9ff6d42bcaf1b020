from typing import Any, Optional

from bson import ObjectId
from bson.errors import InvalidId


def to_object_id(value: Any) -> Optional[ObjectId]:
    """
    Convert a path-supplied identifier into an ObjectId.

    Returns None when the value is not a valid ObjectId, so that callers
    can treat it as a missing document.
    """
    if isinstance(value, ObjectId):
        return value
    # ObjectId(None) mints a new id instead of failing
    if value is None:
        return None
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def serialize_document(value: Any) -> Any:
    """Recursively convert ObjectId values to strings for JSON serialization."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return {key: serialize_document(item) for key, item in value.items()}
    if isinstance(value, list):
        return [serialize_document(item) for item in value]
    return value
