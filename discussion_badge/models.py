"""Data model for discussion snapshots and persisted unread state."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Sequence

STATE_KEY = "unread-state"


def dt_to_iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        value = value.astimezone(timezone.utc)
    return value.isoformat().replace("+00:00", "Z")


def iso_to_dt(value: str) -> datetime:
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True, frozen=True)
class User:
    """The authenticated account the badge is computed for."""

    login: str
    id: str | None = None
    name: str | None = None
    avatar_url: str | None = None

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "User":
        return cls(
            login=str(payload["login"]),
            id=str(payload["id"]) if payload.get("id") else None,
            name=str(payload["name"]) if payload.get("name") else None,
            avatar_url=str(payload["avatarUrl"]) if payload.get("avatarUrl") else None,
        )


@dataclass(slots=True, frozen=True)
class ActivityRecord:
    """A single comment on a discussion."""

    timestamp: datetime
    authored_by_viewer: bool

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "ActivityRecord":
        return cls(
            timestamp=iso_to_dt(str(payload["timestamp"])),
            authored_by_viewer=bool(payload.get("authoredByViewer", False)),
        )


@dataclass(slots=True, frozen=True)
class ItemSnapshot:
    """Polled view of one discussion.

    ``activity`` holds the most recent comments, newest first. ``None`` means the
    provider could not tell us anything about recent comments, which is not the
    same as an empty tuple (known to have none).
    """

    id: str
    author: str
    created_at: datetime
    updated_at: datetime
    activity: tuple[ActivityRecord, ...] | None = None
    number: int | None = None
    title: str | None = None
    url: str | None = None
    comment_count: int | None = None

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "ItemSnapshot":
        raw_activity = payload.get("activity")
        activity = (
            tuple(ActivityRecord.from_dict(entry) for entry in raw_activity)
            if isinstance(raw_activity, list)
            else None
        )
        number = payload.get("number")
        comment_count = payload.get("commentCount")
        return cls(
            id=str(payload["id"]),
            author=str(payload["author"]),
            created_at=iso_to_dt(str(payload["createdAt"])),
            updated_at=iso_to_dt(str(payload["updatedAt"])),
            activity=activity,
            number=int(number) if number is not None else None,
            title=str(payload["title"]) if payload.get("title") else None,
            url=str(payload["url"]) if payload.get("url") else None,
            comment_count=int(comment_count) if comment_count is not None else None,
        )


@dataclass(slots=True, frozen=True)
class PageInfo:
    has_next_page: bool = False
    end_cursor: str | None = None


@dataclass(slots=True)
class SnapshotPage:
    """One page of discussions as returned by a snapshot provider."""

    items: Sequence[ItemSnapshot] = field(default_factory=tuple)
    page_info: PageInfo = field(default_factory=PageInfo)


@dataclass(slots=True, frozen=True)
class UnreadState:
    """The durable unread set and the watermark of the previous check."""

    unread_ids: tuple[str, ...]
    last_checked_at: datetime

    def without(self, item_id: str) -> "UnreadState":
        return UnreadState(
            unread_ids=tuple(i for i in self.unread_ids if i != item_id),
            last_checked_at=self.last_checked_at,
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "unreadIds": list(self.unread_ids),
            "lastCheckedAt": dt_to_iso(self.last_checked_at),
        }

    @classmethod
    def from_dict(cls, payload: dict[str, object]) -> "UnreadState":
        raw_ids = payload.get("unreadIds")
        if not isinstance(raw_ids, list):
            raise ValueError("unreadIds must be a list")
        return cls(
            unread_ids=tuple(dict.fromkeys(str(item) for item in raw_ids)),
            last_checked_at=iso_to_dt(str(payload["lastCheckedAt"])),
        )
