"""
Object key and listing prefix construction.

Key layout:
    {org_code}/{yyyy}/{mm}/{dd}/{uuid}/{original_filename}

The random token keeps two uploads of the same filename on the same day
from overwriting each other. Listing prefixes walk the same hierarchy:
organization, then year, month and day buckets.
"""
import uuid
from datetime import date
from typing import Callable, Optional

from s3gateway.constants import (
    DATE_PREFIX_FORMAT,
    FILE_NAME_MAX_BYTES,
    PREFIX_DELIMITER,
    YEAR_LENGTH,
    YEAR_MONTH_DAY_LENGTH,
    YEAR_MONTH_LENGTH,
)
from s3gateway.errors import InvalidRequest


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def build_object_key(
    org_code: Optional[str],
    original_filename: Optional[str],
    today: Optional[date] = None,
    token_factory: Callable[[], uuid.UUID] = uuid.uuid4
) -> str:
    """
    Build the storage key for a new upload.

    Args:
        org_code: Owning organization code
        original_filename: Client-supplied filename (kept verbatim)
        today: Date bucket, defaults to the current date
        token_factory: Source of the per-upload unique token

    Returns:
        Object key string

    Raises:
        InvalidRequest: blank org_code, missing filename, or filename
            longer than FILE_NAME_MAX_BYTES in UTF-8
    """
    if _is_blank(org_code):
        raise InvalidRequest("Organization code is required")

    if not original_filename:
        raise InvalidRequest("File name is required")

    if len(original_filename.encode("utf-8")) > FILE_NAME_MAX_BYTES:
        raise InvalidRequest(
            f"File name is too long (max {FILE_NAME_MAX_BYTES} bytes)"
        )

    today = today or date.today()

    return PREFIX_DELIMITER.join([
        org_code,
        today.strftime(DATE_PREFIX_FORMAT),
        str(token_factory()),
        original_filename,
    ])


def build_prefix(org_code: Optional[str], date_string: Optional[str] = None) -> str:
    """
    Build a listing prefix from an organization code and a date fragment.

    "2025" -> "ORG/2025/", "202509" -> "ORG/2025/09/",
    "20250905" -> "ORG/2025/09/05/". Any other length is appended as-is
    without delimiters. A blank org_code yields "" (list everything).
    Never raises.
    """
    if _is_blank(org_code):
        return ""

    prefix = org_code + PREFIX_DELIMITER

    if _is_blank(date_string):
        return prefix

    if len(date_string) == YEAR_LENGTH:
        parts = [date_string]
    elif len(date_string) == YEAR_MONTH_LENGTH:
        parts = [date_string[0:4], date_string[4:6]]
    elif len(date_string) == YEAR_MONTH_DAY_LENGTH:
        parts = [date_string[0:4], date_string[4:6], date_string[6:8]]
    else:
        # Unrecognized length: literal suffix, no date boundaries
        return prefix + date_string

    return prefix + "".join(part + PREFIX_DELIMITER for part in parts)


def filename_from_key(object_key: str) -> str:
    """Return the last path segment of an object key."""
    return object_key.rstrip(PREFIX_DELIMITER).rsplit(PREFIX_DELIMITER, 1)[-1]
