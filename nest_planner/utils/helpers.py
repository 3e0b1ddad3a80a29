"""
Helper utilities for the NEST planner.

This module provides general utility functions used across the application.
"""

import base64
import binascii
import json
import re
import uuid
from typing import Any

from nest_planner.utils.error_handling import MalformedResponseError

DEFAULT_IMAGE_MIME = "image/jpeg"

_FENCE_PATTERN = re.compile(r"```(?:json)?", re.IGNORECASE)
_DATA_URI_PATTERN = re.compile(r"^data:([^;,]+)?(;base64)?,", re.IGNORECASE)


def generate_id(prefix: str = "") -> str:
    """
    Generate a unique ID with an optional prefix.

    Args:
        prefix: Optional prefix for the ID

    Returns:
        A unique ID string
    """
    unique_id = str(uuid.uuid4()).replace("-", "")
    if prefix:
        return f"{prefix}-{unique_id}"
    return unique_id


def truncate_text(text: str, max_length: int = 100, suffix: str = "...") -> str:
    """
    Truncate text to a maximum length, adding a suffix if truncated.

    Args:
        text: Text to truncate
        max_length: Maximum length of the result
        suffix: Suffix to append when truncated

    Returns:
        Truncated text
    """
    if len(text) <= max_length:
        return text
    return text[: max_length - len(suffix)] + suffix


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences (```json / ```) wrapped around a payload."""
    return _FENCE_PATTERN.sub("", text or "").strip()


def parse_json_payload(text: str) -> Any:
    """
    Parse a model response as JSON after stripping code fences.

    Args:
        text: Raw response text

    Returns:
        The decoded JSON value

    Raises:
        MalformedResponseError: If the text is not valid JSON
    """
    clean = strip_code_fences(text)
    try:
        return json.loads(clean)
    except json.JSONDecodeError as e:
        raise MalformedResponseError(
            "Response is not valid JSON", raw_text=text, original_error=e
        ) from e


def encode_data_uri(data: bytes, mime_type: str) -> str:
    """Encode raw bytes as a base64 data URI."""
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def split_data_uri(value: str, default_mime: str = DEFAULT_IMAGE_MIME) -> tuple[str, str]:
    """
    Split a data URI (or a bare base64 string) into (base64 payload, MIME type).

    Args:
        value: A ``data:<mime>;base64,<payload>`` string or bare base64 text
        default_mime: MIME type used when none can be detected

    Returns:
        Tuple of base64 payload and MIME type
    """
    match = _DATA_URI_PATTERN.match(value)
    if not match:
        return value, default_mime
    return value[match.end() :], match.group(1) or default_mime


def decode_data_uri(
    value: str, default_mime: str = DEFAULT_IMAGE_MIME
) -> tuple[bytes, str]:
    """
    Decode a data URI (or bare base64 string) into raw bytes and MIME type.

    Raises:
        ValueError: If the payload is not valid base64
    """
    payload, mime_type = split_data_uri(value, default_mime)
    try:
        return base64.b64decode(payload, validate=True), mime_type
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 payload: {e!s}") from e


def is_data_uri(value: str) -> bool:
    return bool(_DATA_URI_PATTERN.match(value))
