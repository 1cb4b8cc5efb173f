"""Discussion source backed by a JSON snapshot file."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from . import register
from ..config import BadgeConfig
from ..errors import SnapshotError
from ..models import ItemSnapshot, PageInfo, SnapshotPage, User
from .base import DiscussionSource

logger = logging.getLogger(__name__)


@register("file")
class FileSnapshotProvider(DiscussionSource):
    """Reads ``{"viewer": {...}, "items": [...]}`` from disk on every poll.

    Useful for demos and for driving the server from another process that
    already knows the discussions. A missing or null ``viewer`` means signed out.
    """

    def __init__(self, snapshot_file: Path):
        self.snapshot_file = snapshot_file

    @classmethod
    def from_config(cls, config: BadgeConfig) -> "FileSnapshotProvider":
        return cls(config.snapshot_file)

    def _load(self) -> dict[str, Any]:
        try:
            with self.snapshot_file.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except FileNotFoundError as exc:
            raise SnapshotError(f"Snapshot file {self.snapshot_file} does not exist") from exc
        except (OSError, json.JSONDecodeError) as exc:
            raise SnapshotError(f"Cannot read snapshot file {self.snapshot_file}: {exc}") from exc
        if not isinstance(payload, dict):
            raise SnapshotError(f"Snapshot file {self.snapshot_file} must hold a JSON object")
        return payload

    async def get_current_user(self) -> User | None:
        viewer = self._load().get("viewer")
        if not viewer:
            return None
        return User.from_dict(viewer)

    async def get_item_snapshots(self) -> SnapshotPage:
        payload = self._load()
        items: list[ItemSnapshot] = []
        for raw in payload.get("items") or []:
            try:
                items.append(ItemSnapshot.from_dict(raw))
            except (KeyError, ValueError, TypeError) as exc:
                logger.warning("Skipping malformed snapshot item %r: %s", raw, exc)
        logger.debug("Loaded %d items from %s", len(items), self.snapshot_file)
        return SnapshotPage(items=tuple(items), page_info=PageInfo())
