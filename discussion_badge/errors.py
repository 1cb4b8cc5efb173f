"""Exception types raised by badge collaborators."""

from __future__ import annotations


class BadgeError(Exception):
    """Base class for errors raised by this package."""


class AuthenticationError(BadgeError):
    """The remote API rejected or never received credentials."""


class SnapshotError(BadgeError):
    """The discussion snapshot could not be fetched or parsed."""


class StorageError(BadgeError):
    """Persisted state could not be read or written."""


class ConfigError(BadgeError, ValueError):
    """Environment configuration is invalid."""
