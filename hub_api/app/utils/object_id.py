"""ObjectId validation stricter than `ObjectId.is_valid`: only 24-character hex strings pass.

`ObjectId.is_valid` also accepts any 12-byte value and existing ObjectId instances, which lets
ids such as "journal_1234" through and fails later with a confusing error.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from bson import ObjectId
from bson.errors import InvalidId

OBJECT_ID_PATTERN = re.compile(r"^[0-9a-fA-F]{24}$")
OBJECT_ID_LENGTH = 24


@dataclass(frozen=True)
class ObjectIdValidation:
    is_valid: bool
    object_id: ObjectId | None = None
    error: str | None = None


def is_valid_object_id(value: Any) -> bool:
    if not isinstance(value, str) or not value:
        return False
    if not OBJECT_ID_PATTERN.match(value):
        return False
    return ObjectId.is_valid(value)


def to_object_id(value: Any) -> ObjectId | None:
    if not is_valid_object_id(value):
        return None
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def validate_object_id(value: Any, field_name: str = "ID") -> ObjectIdValidation:
    """Validate and convert, with a message that says what is wrong with the input."""
    if value is None:
        return ObjectIdValidation(is_valid=False, error=f"{field_name} is required.")
    if not isinstance(value, str):
        return ObjectIdValidation(is_valid=False, error=f"{field_name} must be a string.")
    if not value.strip():
        return ObjectIdValidation(is_valid=False, error=f"{field_name} cannot be empty.")
    if not OBJECT_ID_PATTERN.match(value):
        if len(value) != OBJECT_ID_LENGTH:
            return ObjectIdValidation(
                is_valid=False,
                error=f"Invalid {field_name} format. Expected {OBJECT_ID_LENGTH} characters, got {len(value)}.",
            )
        return ObjectIdValidation(
            is_valid=False,
            error=f"Invalid {field_name} format. Expected a {OBJECT_ID_LENGTH}-character hexadecimal string.",
        )
    try:
        return ObjectIdValidation(is_valid=True, object_id=ObjectId(value))
    except InvalidId:
        return ObjectIdValidation(is_valid=False, error=f"Invalid {field_name} format.")


__all__ = [
    "ObjectIdValidation",
    "is_valid_object_id",
    "to_object_id",
    "validate_object_id",
]
