"""Configuration helpers for the discussion badge server."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .errors import ConfigError

DEFAULT_PROVIDER = "github"
DEFAULT_API_URL = "https://api.github.com/graphql"
DEFAULT_MAX_UNREAD = 20
DEFAULT_REFRESH_INTERVAL = 300
MIN_REFRESH_INTERVAL = 30
DEFAULT_PAGE_SIZE = 20
DEFAULT_ACTIVITY_WINDOW = 5

ENV_PROVIDER = "BADGE_PROVIDER"
ENV_STATE_DIR = "BADGE_STATE_DIR"
ENV_MAX_UNREAD = "BADGE_MAX_UNREAD"
ENV_REFRESH_INTERVAL = "BADGE_REFRESH_INTERVAL"
ENV_SNAPSHOT_FILE = "BADGE_SNAPSHOT_FILE"
ENV_LOG_LEVEL = "BADGE_LOG_LEVEL"
ENV_PAGE_SIZE = "BADGE_PAGE_SIZE"
ENV_ACTIVITY_WINDOW = "BADGE_ACTIVITY_WINDOW"
ENV_GITHUB_TOKEN = "GITHUB_TOKEN"
ENV_GITHUB_REPOSITORY = "GITHUB_REPOSITORY"
ENV_GITHUB_API_URL = "GITHUB_API_URL"


@dataclass(slots=True)
class BadgeConfig:
    """Container for runtime configuration loaded from environment variables."""

    provider: str
    state_dir: Path
    snapshot_file: Path
    max_unread: int = DEFAULT_MAX_UNREAD
    refresh_interval: int = DEFAULT_REFRESH_INTERVAL
    log_level: str = "INFO"
    github_token: str | None = None
    repository: str | None = None
    api_url: str = DEFAULT_API_URL
    page_size: int = DEFAULT_PAGE_SIZE
    activity_window: int = DEFAULT_ACTIVITY_WINDOW

    @property
    def state_file(self) -> Path:
        """Return the path to the JSON document holding persisted state."""

        return self.state_dir / "badge_state.json"

    @property
    def repository_owner_and_name(self) -> tuple[str, str]:
        return parse_repository(self.repository)


def parse_repository(value: str | None) -> tuple[str, str]:
    if not value or value.count("/") != 1:
        raise ConfigError(f"Repository must look like 'owner/name', got {value!r}")
    owner, name = (part.strip() for part in value.split("/"))
    if not owner or not name:
        raise ConfigError(f"Repository must look like 'owner/name', got {value!r}")
    return owner, name


def _read_path(env_key: str, default: Path) -> Path:
    """Read a filesystem path from an environment variable."""

    value = os.getenv(env_key)
    if value:
        return Path(value).expanduser().resolve()
    return default


def _read_int(env_key: str, default: int, minimum: int = 0) -> int:
    value = os.getenv(env_key)
    if value is None or not value.strip():
        return default
    try:
        parsed = int(value)
    except ValueError as exc:
        raise ConfigError(f"{env_key} must be an integer, got {value!r}") from exc
    if parsed < minimum:
        raise ConfigError(f"{env_key} must be at least {minimum}, got {parsed}")
    return parsed


def load_config() -> BadgeConfig:
    """Load badge configuration from environment variables."""

    cwd = Path.cwd()
    default_state = cwd / "data" / "state"
    default_snapshot = cwd / "data" / "snapshot.json"

    provider = os.getenv(ENV_PROVIDER, DEFAULT_PROVIDER).strip().lower()
    refresh_interval = max(
        MIN_REFRESH_INTERVAL,
        _read_int(ENV_REFRESH_INTERVAL, DEFAULT_REFRESH_INTERVAL),
    )

    return BadgeConfig(
        provider=provider,
        state_dir=_read_path(ENV_STATE_DIR, default_state),
        snapshot_file=_read_path(ENV_SNAPSHOT_FILE, default_snapshot),
        max_unread=_read_int(ENV_MAX_UNREAD, DEFAULT_MAX_UNREAD, minimum=1),
        refresh_interval=refresh_interval,
        log_level=os.getenv(ENV_LOG_LEVEL, "INFO").strip().upper(),
        github_token=os.getenv(ENV_GITHUB_TOKEN) or None,
        repository=os.getenv(ENV_GITHUB_REPOSITORY) or None,
        api_url=os.getenv(ENV_GITHUB_API_URL, DEFAULT_API_URL),
        page_size=_read_int(ENV_PAGE_SIZE, DEFAULT_PAGE_SIZE, minimum=1),
        activity_window=_read_int(ENV_ACTIVITY_WINDOW, DEFAULT_ACTIVITY_WINDOW, minimum=1),
    )
