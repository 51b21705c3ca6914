# taskboard/validation.py — Input normalisation shared by create/update paths
import unicodedata
from typing import Optional

from taskboard.errors import InvalidArgument

MAX_TITLE_LENGTH = 255
MAX_DESCRIPTION_LENGTH = 10000

# Range of the 32-bit INTEGER position column
MIN_POSITION = -2**31
MAX_POSITION = 2**31 - 1


def _normalise(value: str) -> str:
    return unicodedata.normalize("NFC", value).strip()


def clean_title(value, field: str = "title") -> str:
    """Trim and NFC-normalise a title; blank titles are rejected"""
    if not isinstance(value, str):
        raise InvalidArgument(field, "must be a string")
    title = _normalise(value)
    if not title:
        raise InvalidArgument(field, "must not be empty")
    if len(title) > MAX_TITLE_LENGTH:
        raise InvalidArgument(field, f"must be at most {MAX_TITLE_LENGTH} characters")
    return title


def clean_description(value) -> Optional[str]:
    """Trim a description; blank collapses to None rather than ''"""
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidArgument("description", "must be a string")
    description = value.strip()
    if not description:
        return None
    if len(description) > MAX_DESCRIPTION_LENGTH:
        raise InvalidArgument("description", f"must be at most {MAX_DESCRIPTION_LENGTH} characters")
    return description


def check_position(value, field: str = "position") -> Optional[int]:
    if value is None:
        return None
    # bool is an int subclass but never a meaningful rank
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgument(field, "must be an integer")
    if not MIN_POSITION <= value <= MAX_POSITION:
        raise InvalidArgument(field, f"must be between {MIN_POSITION} and {MAX_POSITION}")
    return value


def clean_query(value) -> str:
    """NFC-normalise search text the same way titles are stored"""
    if value is None:
        return ""
    if not isinstance(value, str):
        raise InvalidArgument("query", "must be a string")
    return unicodedata.normalize("NFC", value)
