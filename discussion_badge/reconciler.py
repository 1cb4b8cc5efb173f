"""Pure unread-state reconciliation.

Given the signed-in user, a fresh snapshot of discussions and the previously
persisted :class:`UnreadState`, compute the next state. Nothing here performs
I/O; the engine is responsible for fetching inputs and persisting outputs.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Sequence

from .models import ItemSnapshot, UnreadState, User

DEFAULT_MAX_UNREAD = 20


class Outcome(enum.Enum):
    UNAUTHENTICATED = "unauthenticated"
    INITIALIZED = "initialized"
    RECONCILED = "reconciled"


@dataclass(slots=True, frozen=True)
class ReconcileResult:
    outcome: Outcome
    state: UnreadState | None
    newly_flagged: tuple[str, ...] = ()

    @property
    def count(self) -> int:
        return len(self.state.unread_ids) if self.state else 0

    @property
    def should_persist(self) -> bool:
        return self.state is not None


def relevant_items(user: User, items: Iterable[ItemSnapshot]) -> list[ItemSnapshot]:
    """Return the items authored by ``user``."""

    return [item for item in items if item.author == user.login]


def has_new_activity(item: ItemSnapshot, watermark: datetime) -> bool:
    """Return True when ``item`` received comments from someone else after ``watermark``."""

    if item.updated_at <= watermark or item.updated_at <= item.created_at:
        return False

    # Unknown activity: we cannot prove the update was our own comment.
    if item.activity is None:
        return True

    return any(
        record.timestamp > watermark and not record.authored_by_viewer
        for record in item.activity
    )


def trim_recent(ids: Sequence[str], max_size: int) -> tuple[str, ...]:
    """Keep the ``max_size`` most recently added identifiers."""

    if max_size <= 0:
        return ()
    return tuple(ids[-max_size:])


def reconcile(
    user: User | None,
    items: Sequence[ItemSnapshot],
    prior: UnreadState | None,
    *,
    now: datetime,
    max_size: int = DEFAULT_MAX_UNREAD,
) -> ReconcileResult:
    """Compute the next unread state for ``user``."""

    if user is None:
        return ReconcileResult(Outcome.UNAUTHENTICATED, None)

    if prior is None:
        return ReconcileResult(Outcome.INITIALIZED, UnreadState(unread_ids=(), last_checked_at=now))

    mine = relevant_items(user, items)
    watermark = prior.last_checked_at

    flagged = [item.id for item in mine if has_new_activity(item, watermark)]

    # dict preserves insertion order: prior ids first, then new flags.
    union = dict.fromkeys(prior.unread_ids)
    newly_flagged = [item_id for item_id in dict.fromkeys(flagged) if item_id not in union]
    union.update(dict.fromkeys(newly_flagged))

    existing = {item.id for item in mine}
    pruned = [item_id for item_id in union if item_id in existing]

    # The watermark never moves backwards, even if the wall clock does.
    state = UnreadState(
        unread_ids=trim_recent(pruned, max_size),
        last_checked_at=max(now, watermark),
    )
    return ReconcileResult(Outcome.RECONCILED, state, tuple(newly_flagged))
