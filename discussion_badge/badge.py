"""Badge payloads and the sink that displays them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Protocol, Sequence


@dataclass(slots=True, frozen=True)
class BadgePayload:
    count: int
    tooltip: str

    def to_dict(self) -> dict[str, object]:
        return {"count": self.count, "tooltip": self.tooltip}


def format_tooltip(count: int) -> str:
    noun = "discussion has" if count == 1 else "discussions have"
    return f"{count} {noun} new comments"


def badge_for(unread_ids: Sequence[str]) -> BadgePayload | None:
    """Return the badge to show for ``unread_ids``; ``None`` hides it."""

    if not unread_ids:
        return None
    count = len(unread_ids)
    return BadgePayload(count=count, tooltip=format_tooltip(count))


class BadgeSink(Protocol):
    def set_badge(self, badge: BadgePayload | None) -> None: ...


class LatestBadgeSink:
    """Keeps the badge most recently written to it."""

    def __init__(self) -> None:
        self.badge: BadgePayload | None = None
        self.writes: List[BadgePayload | None] = []

    def set_badge(self, badge: BadgePayload | None) -> None:
        self.badge = badge
        self.writes.append(badge)
