"""FastMCP bootstrap for the discussion badge server."""

from __future__ import annotations

import asyncio
import logging
from typing import Annotated, Any, Dict, Optional

from fastmcp import FastMCP

from .badge import LatestBadgeSink
from .config import BadgeConfig, load_config
from .engine import NotificationBadgeEngine
from .providers import DiscussionSource, get_provider
from .scheduler import AutoRefresh
from .storage import JsonStateStore

SERVER_NAME = "Discussion Badge Server"

logger = logging.getLogger(__name__)


def build_engine(
    cfg: BadgeConfig,
    source: Optional[DiscussionSource] = None,
) -> NotificationBadgeEngine:
    """Wire the engine to the configured provider and the on-disk state file."""

    source = source or get_provider(cfg.provider, cfg)
    return NotificationBadgeEngine(
        identity=source,
        snapshots=source,
        repository=JsonStateStore(cfg.state_file),
        sink=LatestBadgeSink(),
        max_unread=cfg.max_unread,
    )


def _status(engine: NotificationBadgeEngine) -> Dict[str, Any]:
    badge = engine.badge
    return {
        "badge": badge.to_dict() if badge else None,
        "unread_ids": engine.get_unread_ids(),
    }


def build_app(
    config: Optional[BadgeConfig] = None,
    *,
    engine: Optional[NotificationBadgeEngine] = None,
) -> FastMCP:
    """Instantiate and configure the FastMCP server."""

    cfg = config or load_config()
    badge_engine = engine or build_engine(cfg)

    mcp = FastMCP(SERVER_NAME)

    @mcp.tool
    async def check_unread_discussions() -> Dict[str, Any]:
        """Check your own discussions for comments from other people since the last check. Returns the badge (count and tooltip, or null when nothing is unread) and the unread discussion ids."""

        logger.info("check_unread_discussions invoked")
        await badge_engine.update_badge()
        return _status(badge_engine)

    @mcp.tool
    async def mark_discussion_read(
        discussion_id: Annotated[
            str,
            "Node id of the discussion the user has opened, as returned in unread_ids.",
        ],
    ) -> Dict[str, Any]:
        """Remove a discussion from the unread set once the user has looked at it."""

        logger.info("mark_discussion_read invoked for %s", discussion_id)
        if not discussion_id:
            raise ValueError("discussion_id cannot be empty")
        await badge_engine.mark_as_read(discussion_id)
        return _status(badge_engine)

    @mcp.tool
    def list_unread_discussions() -> Dict[str, Any]:
        """Return the unread discussions from the last check without contacting GitHub."""

        return _status(badge_engine)

    return mcp


def _configure_logging(cfg: BadgeConfig) -> None:
    logging.basicConfig(
        level=getattr(logging, cfg.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


async def _watch(cfg: BadgeConfig) -> None:
    source = get_provider(cfg.provider, cfg)
    engine = build_engine(cfg, source)

    def _report() -> None:
        badge = engine.badge
        logger.info("Unread discussions changed: %s", engine.get_unread_ids())
        if badge:
            logger.info("Badge: %s", badge.tooltip)

    engine.subscribe(_report)
    refresher = AutoRefresh(engine.update_badge, cfg.refresh_interval)
    refresher.start()
    try:
        await asyncio.Event().wait()
    finally:
        await refresher.stop()
        engine.dispose()
        await source.aclose()


def main() -> None:
    """Entry point used when launching via CLI."""

    cfg = load_config()
    _configure_logging(cfg)
    build_app(cfg).run()


def watch() -> None:
    """Poll in the foreground and log every change of the unread set."""

    cfg = load_config()
    _configure_logging(cfg)
    try:
        asyncio.run(_watch(cfg))
    except KeyboardInterrupt:
        logger.info("Stopped")


if __name__ == "__main__":  # pragma: no cover - CLI entry
    main()
