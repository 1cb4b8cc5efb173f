"""Shared builders for the test-suite."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from discussion_badge.models import ActivityRecord, ItemSnapshot, SnapshotPage, User

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)
VIEWER = User(login="octocat")


def hours_ago(hours: float) -> datetime:
    return NOW - timedelta(hours=hours)


def make_item(
    item_id: str,
    *,
    author: str = "octocat",
    created: float = 3,
    updated: float = 1,
    activity=None,
) -> ItemSnapshot:
    return ItemSnapshot(
        id=item_id,
        author=author,
        created_at=hours_ago(created),
        updated_at=hours_ago(updated),
        activity=activity,
    )


def comment(hours: float, *, mine: bool = False) -> ActivityRecord:
    return ActivityRecord(timestamp=hours_ago(hours), authored_by_viewer=mine)


class FakeSource:
    """Identity and snapshot provider fed from test data."""

    def __init__(self, user: User | None = VIEWER, items=()):
        self.user = user
        self.items = list(items)
        self.snapshot_calls = 0
        self.error: Exception | None = None

    async def get_current_user(self):
        return self.user

    async def get_item_snapshots(self):
        self.snapshot_calls += 1
        if self.error is not None:
            raise self.error
        return SnapshotPage(items=tuple(self.items))

