"""
Helper Utility Module

This module provides various helper functions used throughout the blog client library.
"""

import hashlib
from typing import Optional, Dict, Any
from datetime import datetime, timezone, tzinfo
from urllib.parse import urlparse


def is_valid_url(url: str) -> bool:
    """
    Check if a URL is valid.

    Args:
        url: The URL to validate

    Returns:
        bool: True if the URL is valid, False otherwise
    """
    try:
        result = urlparse(url)
        return all([result.scheme, result.netloc])
    except Exception:
        return False


def truncate_text(text: str, max_length: int = 100, add_ellipsis: bool = True) -> str:
    """
    Truncate text to a maximum length.

    Args:
        text: The text to truncate
        max_length: Maximum length
        add_ellipsis: Whether to add an ellipsis if text is truncated

    Returns:
        str: Truncated text
    """
    if not text or len(text) <= max_length:
        return text

    truncated = text[:max_length].rstrip()
    if add_ellipsis:
        truncated += "..."

    return truncated


def safe_get(data: Dict[str, Any], *keys, default: Any = None) -> Any:
    """
    Safely get a value from a nested dictionary.

    Args:
        data: The dictionary to search
        *keys: The keys to follow
        default: Default value if key doesn't exist

    Returns:
        The value at the specified keys or the default value
    """
    for key in keys:
        try:
            data = data[key]
        except (KeyError, TypeError, IndexError):
            return default
    return data


def to_utc(value: Optional[datetime], local_tz: Optional[tzinfo] = None) -> Optional[datetime]:
    """
    Convert a datetime to an aware UTC datetime.

    Naive values are taken to be in ``local_tz`` (UTC when not given).

    Args:
        value: The datetime to convert, may be None
        local_tz: Time zone assumed for naive datetimes

    Returns:
        datetime: The converted value, or None if value was None
    """
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=local_tz or timezone.utc)
    return value.astimezone(timezone.utc)


def to_local(value: Optional[datetime], local_tz: Optional[tzinfo] = None) -> Optional[datetime]:
    """
    Express a datetime in the blog's local time zone.

    Args:
        value: The datetime to convert, may be None
        local_tz: Target time zone (UTC when not given)

    Returns:
        datetime: The converted value, or None if value was None
    """
    if value is None:
        return None
    target = local_tz or timezone.utc
    if value.tzinfo is None:
        return value.replace(tzinfo=target)
    return value.astimezone(target)


def md5_hex(text: str) -> str:
    """Return the hex MD5 digest of a UTF-8 string."""
    return hashlib.md5(text.encode("utf-8")).hexdigest()
