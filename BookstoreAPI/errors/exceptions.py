"""
Exceptions raised by repositories, the purchase history manager and the
query translator.

Route handlers never build error responses themselves: they let these
exceptions propagate to the handlers registered in errors/handlers.py.
"""

from typing import Any, Dict, List, Optional, Type

import pydantic
from pydantic import BaseModel


class BookstoreError(Exception):
    """
    Base exception for the Bookstore API.

    Args:
        message: Human-readable error message
        error_code: Machine-readable error code
    """

    def __init__(self, message: str, error_code: str = "BOOKSTORE_ERROR"):
        self.message = message
        self.error_code = error_code
        super().__init__(self.message)


class NotFoundError(BookstoreError):
    """Raised when a user, book or purchase record does not exist."""

    def __init__(self, entity_kind: str, entity_id: Any):
        self.entity_kind = entity_kind
        self.entity_id = entity_id
        super().__init__(
            f"{entity_kind} with id {entity_id} not found!",
            error_code="NOT_FOUND"
        )


class ValidationError(BookstoreError):
    """Raised when a document or a query fails validation before reaching the store."""

    def __init__(self, message: str, errors: Optional[List[Dict[str, str]]] = None):
        self.errors = errors or []
        super().__init__(message, error_code="VALIDATION_ERROR")


def validate_document(model: Type[BaseModel], data: Dict[str, Any]) -> BaseModel:
    """
    Validate a raw document against a schema model.

    Pydantic errors are converted into a ValidationError carrying one
    entry per failing field.
    """
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as e:
        raise ValidationError(
            f"{model.__name__} validation failed",
            errors=[
                {
                    "field": ".".join(str(loc) for loc in error["loc"]),
                    "message": error["msg"],
                }
                for error in e.errors()
            ]
        ) from e
