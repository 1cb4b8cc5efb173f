"""GitHub Discussions source using the GraphQL API."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, List

import httpx

from . import register
from ..config import BadgeConfig
from ..errors import AuthenticationError, SnapshotError
from ..models import ActivityRecord, ItemSnapshot, PageInfo, SnapshotPage, User, iso_to_dt
from .base import DiscussionSource

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3
RETRY_DELAY_S = 1.0

VIEWER_QUERY = """
query Viewer {
  viewer {
    id
    login
    name
    avatarUrl
  }
}
"""

DISCUSSIONS_QUERY = """
query DiscussionSnapshots($owner: String!, $name: String!, $first: Int!, $window: Int!) {
  repository(owner: $owner, name: $name) {
    discussions(first: $first, states: [OPEN], orderBy: {field: UPDATED_AT, direction: DESC}) {
      nodes {
        id
        number
        title
        url
        author {
          login
        }
        createdAt
        updatedAt
        comments(last: $window) {
          totalCount
          nodes {
            createdAt
            viewerDidAuthor
            replies(last: $window) {
              totalCount
              nodes {
                createdAt
                viewerDidAuthor
              }
            }
          }
        }
      }
      pageInfo {
        hasNextPage
        endCursor
      }
    }
  }
}
"""


def _is_transient(exc: Exception) -> bool:
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500 or exc.response.status_code == 429
    return False


def _activity_record(entry: Dict[str, Any]) -> ActivityRecord:
    return ActivityRecord(
        timestamp=iso_to_dt(str(entry["createdAt"])),
        authored_by_viewer=bool(entry.get("viewerDidAuthor")),
    )


def _is_truncated(connection: Dict[str, Any], nodes: List[Any]) -> bool:
    total = connection.get("totalCount")
    return isinstance(total, int) and total > len(nodes)


def parse_activity(
    comments: Dict[str, Any],
    updated_at: datetime,
) -> tuple[ActivityRecord, ...] | None:
    """Merge the comment window and its replies, newest first.

    Returns ``None`` when the window is truncated and nothing in it is as recent
    as ``updated_at``: the update may be a reply to a comment we did not fetch.
    """

    raw_comments = comments.get("nodes")
    if not isinstance(raw_comments, list):
        return None

    truncated = _is_truncated(comments, raw_comments)
    records: list[ActivityRecord] = []
    for comment in raw_comments:
        if not comment:
            continue
        records.append(_activity_record(comment))
        thread = comment.get("replies") or {}
        replies = thread.get("nodes") or []
        truncated = truncated or _is_truncated(thread, replies)
        records.extend(_activity_record(reply) for reply in replies if reply)
    records.sort(key=lambda record: record.timestamp, reverse=True)

    if truncated and (not records or records[0].timestamp < updated_at):
        return None
    return tuple(records)


def parse_discussion(node: Dict[str, Any]) -> ItemSnapshot:
    """Convert a GraphQL discussion node into an :class:`ItemSnapshot`."""

    author = (node.get("author") or {}).get("login")
    comments = node.get("comments") or {}
    updated_at = iso_to_dt(str(node["updatedAt"]))
    activity = parse_activity(comments, updated_at)
    return ItemSnapshot(
        id=str(node["id"]),
        # Deleted accounts come back as a null author ("ghost").
        author=str(author) if author else "ghost",
        created_at=iso_to_dt(str(node["createdAt"])),
        updated_at=updated_at,
        activity=activity,
        number=node.get("number"),
        title=node.get("title"),
        url=node.get("url"),
        comment_count=comments.get("totalCount"),
    )


@register("github")
class GitHubDiscussionsProvider(DiscussionSource):
    """Fetches the viewer and open discussions of one repository."""

    def __init__(
        self,
        token: str | None,
        owner: str,
        name: str,
        *,
        api_url: str,
        page_size: int = 20,
        activity_window: int = 5,
        client: httpx.AsyncClient | None = None,
        retry_delay: float = RETRY_DELAY_S,
    ) -> None:
        self.token = token
        self.owner = owner
        self.name = name
        self.api_url = api_url
        self.page_size = page_size
        self.activity_window = activity_window
        self.retry_delay = retry_delay
        self._client = client or httpx.AsyncClient(timeout=30.0)
        self._viewer: User | None = None

    @classmethod
    def from_config(cls, config: BadgeConfig) -> "GitHubDiscussionsProvider":
        owner, name = config.repository_owner_and_name
        return cls(
            config.github_token,
            owner,
            name,
            api_url=config.api_url,
            page_size=config.page_size,
            activity_window=config.activity_window,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def query(self, query: str, variables: Dict[str, Any] | None = None) -> Dict[str, Any]:
        """Run a GraphQL query, retrying transient failures."""

        if not self.token:
            raise AuthenticationError("No GitHub token configured")

        for attempt in range(1, MAX_ATTEMPTS + 1):
            try:
                return await self._execute(query, variables or {})
            except (httpx.TransportError, httpx.HTTPStatusError) as exc:
                if attempt < MAX_ATTEMPTS and _is_transient(exc):
                    logger.debug("GraphQL attempt %d failed, retrying: %s", attempt, exc)
                    await asyncio.sleep(self.retry_delay * attempt)
                    continue
                raise SnapshotError(f"GitHub GraphQL request failed: {exc}") from exc
        raise AssertionError("unreachable")  # pragma: no cover

    async def _execute(self, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        response = await self._client.post(
            self.api_url,
            json={"query": query, "variables": variables},
            headers={
                "Authorization": f"Bearer {self.token}",
                "Accept": "application/json",
            },
        )
        if response.status_code == 401:
            raise AuthenticationError("GitHub rejected the configured token")
        response.raise_for_status()

        payload = response.json()
        errors: List[Dict[str, Any]] = payload.get("errors") or []
        if errors:
            messages = "; ".join(str(error.get("message", error)) for error in errors)
            raise SnapshotError(f"GitHub GraphQL errors: {messages}")
        data = payload.get("data")
        if not isinstance(data, dict):
            raise SnapshotError("GitHub GraphQL response has no data")
        return data

    async def get_current_user(self) -> User | None:
        if not self.token:
            return None
        if self._viewer is None:
            data = await self.query(VIEWER_QUERY)
            viewer = data.get("viewer")
            if not viewer:
                return None
            self._viewer = User.from_dict(viewer)
        return self._viewer

    async def get_item_snapshots(self) -> SnapshotPage:
        if not self.token:
            return SnapshotPage()

        data = await self.query(
            DISCUSSIONS_QUERY,
            {
                "owner": self.owner,
                "name": self.name,
                "first": self.page_size,
                "window": self.activity_window,
            },
        )
        repository = data.get("repository")
        if not repository:
            raise SnapshotError(f"Repository {self.owner}/{self.name} not found")

        discussions = repository.get("discussions") or {}
        try:
            items = tuple(parse_discussion(node) for node in discussions.get("nodes") or [] if node)
        except (KeyError, ValueError, TypeError) as exc:
            raise SnapshotError(f"Malformed discussion payload: {exc}") from exc

        raw_page = discussions.get("pageInfo") or {}
        page_info = PageInfo(
            has_next_page=bool(raw_page.get("hasNextPage")),
            end_cursor=raw_page.get("endCursor"),
        )
        logger.debug("Fetched %d discussions from %s/%s", len(items), self.owner, self.name)
        return SnapshotPage(items=items, page_info=page_info)
