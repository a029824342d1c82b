"""
Custom Exception Classes for the Blog Client Library

This module defines custom exceptions for better error handling and
categorization of failures across the library. Adapters never let these
escape to callers; they are turned into ``error`` events instead.
"""


class BlogClientError(Exception):
    """Base exception for all blog client errors."""
    pass


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(BlogClientError):
    """Raised when configuration validation fails or required settings are missing."""
    pass


class UnknownInterfaceError(ConfigurationError):
    """Raised when a blog interface name does not match any backend."""
    pass


# =============================================================================
# Protocol Errors
# =============================================================================

class ProtocolError(BlogClientError):
    """Base exception for errors talking to a blog server."""
    pass


class TransportError(ProtocolError):
    """Raised when the RPC, HTTP or feed layer reports a failure."""

    def __init__(self, message: str, code: int = 0):
        super().__init__(message)
        self.code = code


class ParsingError(ProtocolError):
    """Raised when a server response does not have the expected shape."""
    pass


class AuthenticationError(ProtocolError):
    """Raised when the server rejects the configured credentials."""
    pass


class NotSupportedError(ProtocolError):
    """Raised when an operation is not offered by a backend's protocol."""
    pass


# =============================================================================
# Domain Record Errors
# =============================================================================

class RecordError(BlogClientError):
    """Base exception for post, comment and media record errors."""
    pass


class StatusTransitionError(RecordError):
    """Raised when a record status would move backwards without an explicit reset."""
    pass
