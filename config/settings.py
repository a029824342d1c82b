"""
Configuration Settings for the Blog Client

This module centralizes all configuration settings for the blog client library,
including environment variables, credentials, and protocol constants.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Determine the application root directory
APP_ROOT = Path(__file__).resolve().parent.parent

# Load environment variables from .env file
load_dotenv(dotenv_path=os.path.join(APP_ROOT, '.env'))

# =============================================================================
# Blog Connection Settings
# =============================================================================

BLOG_INTERFACE = os.getenv("BLOG_INTERFACE", "metaweblog")
BLOG_URL = os.getenv("BLOG_URL", "")
BLOG_ID = os.getenv("BLOG_ID", "")
BLOG_USERNAME = os.getenv("BLOG_USERNAME", "")
BLOG_PASSWORD = os.getenv("BLOG_PASSWORD", "")
BLOG_TIMEZONE = os.getenv("BLOG_TIMEZONE", "UTC")

# GData (Blogger Atom) Settings
GDATA_PROFILE_ID = os.getenv("GDATA_PROFILE_ID", "")
GDATA_FULL_NAME = os.getenv("GDATA_FULL_NAME", "")
GDATA_AUTH_TOKEN = os.getenv("GDATA_AUTH_TOKEN", "")

# =============================================================================
# Client Identification
# =============================================================================

LIBRARY_NAME = "blogclient"
LIBRARY_VERSION = "1.0"
APPLICATION_NAME = os.getenv("APPLICATION_NAME", "")
APPLICATION_VERSION = os.getenv("APPLICATION_VERSION", "")

# Blogger 1.0 requires an application key as first argument of every call
BLOGGER_APP_KEY = os.getenv("BLOGGER_APP_KEY", "0123456789ABCDEF")

# =============================================================================
# Protocol Settings
# =============================================================================

SUPPORTED_INTERFACES = ["blogger1", "metaweblog", "movabletype", "gdata", "livejournal"]

REQUEST_TIMEOUT = 30                 # Seconds to wait for a server response
CALL_COUNTER_BASE = 1                # First call token issued by an adapter
GDATA_FEED_BASE = "http://www.blogger.com/feeds"
GDATA_PAGE_LIMIT = 50                # Safety stop for pagination chains
LIVEJOURNAL_CLIENT_VERSION = f"Python-{LIBRARY_NAME}/{LIBRARY_VERSION}"

# Fault codes servers use for rejected credentials
AUTHENTICATION_FAULT_CODES = [401, 403, 801]
AUTHENTICATION_FAULT_PHRASES = [
    "incorrect username",
    "invalid login",
    "invalid password",
    "bad password",
    "authentication",
    "not authorized",
]


def validate_settings():
    """
    Validate that all required settings are properly configured.

    Thin wrapper kept here so callers can do ``settings.validate_settings()``.

    Raises:
        ConfigurationError: If required settings are missing or invalid.
    """
    from config.validators import validate_settings as _validate
    return _validate()
