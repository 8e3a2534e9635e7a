"""schoolnet.errors

Exceptions raised by the schoolnet client. Transport failures are left as the
``requests.exceptions`` types they arrive as.
"""
from __future__ import annotations

from typing import Any

__all__ = [
    "SchoolnetError",
    "AuthenticationError",
    "ConfigurationError",
]


class SchoolnetError(Exception):
    """Base class for every error raised by this package."""


class AuthenticationError(SchoolnetError):
    """The token endpoint answered without an access token."""

    def __init__(self, message: str = "Failed to obtain token.", body: Any = None):
        super().__init__(message)
        self.body = body


class ConfigurationError(SchoolnetError):
    pass
