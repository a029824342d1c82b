"""
Configuration Validation for the Blog Client

This module contains configuration validation logic.
Extracted from settings.py for better separation of concerns.
"""

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from utils.exceptions import ConfigurationError
from utils.helpers import is_valid_url


def validate_settings():
    """
    Validate that all required settings are properly configured.

    Raises:
        ConfigurationError: If required settings are missing or invalid.
    """
    # Import settings here to avoid circular imports
    from config import settings

    errors = []

    interface = (settings.BLOG_INTERFACE or "").lower()
    if interface not in settings.SUPPORTED_INTERFACES:
        errors.append(f"BLOG_INTERFACE must be one of {', '.join(settings.SUPPORTED_INTERFACES)}, "
                      f"got '{settings.BLOG_INTERFACE}'")

    if not settings.BLOG_URL:
        errors.append("Missing required environment variable: BLOG_URL")
    elif not is_valid_url(settings.BLOG_URL):
        errors.append(f"BLOG_URL is not a valid URL: {settings.BLOG_URL}")

    # Required credentials
    required_vars = [
        ("BLOG_USERNAME", settings.BLOG_USERNAME),
        ("BLOG_PASSWORD", settings.BLOG_PASSWORD),
    ]
    if interface == "gdata":
        required_vars = [("GDATA_AUTH_TOKEN", settings.GDATA_AUTH_TOKEN)]

    for var_name, var_value in required_vars:
        if not var_value:
            errors.append(f"Missing required environment variable: {var_name}")

    # Blogger-family and GData calls are addressed by blog id
    if interface in ("blogger1", "metaweblog", "movabletype", "gdata") and not settings.BLOG_ID:
        errors.append(f"BLOG_ID is required for the {interface} interface")

    try:
        ZoneInfo(settings.BLOG_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError):
        errors.append(f"BLOG_TIMEZONE is not a known time zone: {settings.BLOG_TIMEZONE}")

    if settings.REQUEST_TIMEOUT <= 0:
        errors.append(f"REQUEST_TIMEOUT must be positive, got {settings.REQUEST_TIMEOUT}")

    if settings.CALL_COUNTER_BASE < 0:
        errors.append(f"CALL_COUNTER_BASE must not be negative, got {settings.CALL_COUNTER_BASE}")

    # Raise all errors at once
    if errors:
        error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        raise ConfigurationError(error_msg)

    return True


def get_config_summary() -> dict:
    """
    Returns a summary of current configuration (without sensitive values).
    Useful for logging startup state.
    """
    # Import settings here to avoid circular imports
    from config import settings

    return {
        "blog": {
            "interface": settings.BLOG_INTERFACE,
            "url": settings.BLOG_URL,
            "blog_id": settings.BLOG_ID,
            "username": settings.BLOG_USERNAME,
            "password_set": bool(settings.BLOG_PASSWORD),
            "timezone": settings.BLOG_TIMEZONE,
        },
        "gdata": {
            "profile_id": settings.GDATA_PROFILE_ID,
            "auth_token_set": bool(settings.GDATA_AUTH_TOKEN),
        },
        "client": {
            "application": f"{settings.APPLICATION_NAME}/{settings.APPLICATION_VERSION}".strip("/"),
            "request_timeout": settings.REQUEST_TIMEOUT,
        },
    }
