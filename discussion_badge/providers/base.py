"""Base interfaces for identity and discussion snapshot providers."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..config import BadgeConfig
from ..models import SnapshotPage, User


class IdentityProvider(ABC):
    @abstractmethod
    async def get_current_user(self) -> User | None:
        """Return the signed-in user, or ``None`` when nobody is signed in."""


class SnapshotProvider(ABC):
    @abstractmethod
    async def get_item_snapshots(self) -> SnapshotPage:
        """Return the current page of discussions."""


class DiscussionSource(IdentityProvider, SnapshotProvider):
    """A backend that can answer both who the viewer is and what they posted."""

    @classmethod
    @abstractmethod
    def from_config(cls, config: BadgeConfig) -> "DiscussionSource":
        """Build the provider from runtime configuration."""

    async def aclose(self) -> None:
        """Release network resources held by the provider."""
