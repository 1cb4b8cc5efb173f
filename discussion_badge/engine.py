"""Notification badge engine.

Wraps :func:`reconcile` with the I/O around it: who is signed in, what the
discussions look like now, what we persisted last time. It caches the unread
ids it last published and only fires ``on_did_change_unread_state`` when that
list actually changes. Collaborator failures never escape; the previous badge
and cache are left as they were.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Callable, List

from .badge import BadgePayload, BadgeSink, badge_for
from .models import UnreadState, utc_now
from .providers.base import IdentityProvider, SnapshotProvider
from .reconciler import DEFAULT_MAX_UNREAD, Outcome, reconcile
from .signals import ChangeSignal, Subscription
from .storage import StateRepository, load_unread_state, save_unread_state

logger = logging.getLogger(__name__)


class NotificationBadgeEngine:
    """Owns the cached unread ids and the change signal for one session."""

    def __init__(
        self,
        identity: IdentityProvider,
        snapshots: SnapshotProvider,
        repository: StateRepository,
        sink: BadgeSink,
        *,
        max_unread: int = DEFAULT_MAX_UNREAD,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._identity = identity
        self._snapshots = snapshots
        self._repository = repository
        self._sink = sink
        self._max_unread = max_unread
        self._clock = clock
        self._lock = asyncio.Lock()
        self._cached_unread_ids: List[str] = []
        self._badge: BadgePayload | None = None
        self._subscriptions: List[Subscription] = []
        self.on_did_change_unread_state = ChangeSignal()

    @property
    def badge(self) -> BadgePayload | None:
        return self._badge

    def get_unread_ids(self) -> list[str]:
        return list(self._cached_unread_ids)

    def subscribe(self, listener: Callable[[], None]) -> Subscription:
        """Subscribe ``listener`` and release it when the engine is disposed."""

        subscription = self.on_did_change_unread_state.subscribe(listener)
        self._subscriptions.append(subscription)
        return subscription

    async def update_badge(self) -> BadgePayload | None:
        """Poll the providers, reconcile and publish the result."""

        async with self._lock:
            try:
                await self._update_badge()
            except Exception as exc:
                logger.warning("Failed to update notification badge: %s", exc, exc_info=True)
            return self._badge

    async def _update_badge(self) -> None:
        user = await self._identity.get_current_user()
        if user is None:
            logger.info("No signed-in user; hiding badge")
            self._apply_badge(None)
            return

        page = await self._snapshots.get_item_snapshots()
        prior = await load_unread_state(self._repository)

        result = reconcile(
            user,
            page.items,
            prior,
            now=self._clock(),
            max_size=self._max_unread,
        )
        if result.state is None:
            return

        await save_unread_state(self._repository, result.state)

        if result.outcome is Outcome.INITIALIZED:
            logger.info("Initialized unread state for %s at %s", user.login, result.state.last_checked_at)
        else:
            logger.debug(
                "Reconciled %d discussions for %s: %d unread, %d new",
                len(page.items),
                user.login,
                result.count,
                len(result.newly_flagged),
            )
        self._publish(result.state)

    async def mark_as_read(self, item_id: str) -> None:
        """Drop ``item_id`` from the unread set, if it is there."""

        async with self._lock:
            try:
                await self._mark_as_read(item_id)
            except Exception as exc:
                logger.warning("Failed to mark discussion %s as read: %s", item_id, exc, exc_info=True)

    async def _mark_as_read(self, item_id: str) -> None:
        state = await load_unread_state(self._repository)
        if state is None or item_id not in state.unread_ids:
            return

        reduced = state.without(item_id)
        await save_unread_state(self._repository, reduced)
        logger.info("Marked discussion %s as read", item_id)
        self._publish(reduced, always_notify=True)

    def _publish(self, state: UnreadState, always_notify: bool = False) -> None:
        unread_ids = list(state.unread_ids)
        changed = unread_ids != self._cached_unread_ids
        # The sink goes first: if it raises, cache and badge keep their old values.
        self._apply_badge(badge_for(unread_ids))
        self._cached_unread_ids = unread_ids
        if changed or always_notify:
            self.on_did_change_unread_state.fire()

    def _apply_badge(self, badge: BadgePayload | None) -> None:
        self._sink.set_badge(badge)
        self._badge = badge

    def dispose(self) -> None:
        for subscription in self._subscriptions:
            subscription.dispose()
        self._subscriptions = []
        self.on_did_change_unread_state.dispose()
