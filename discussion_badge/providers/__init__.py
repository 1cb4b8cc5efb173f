"""Provider registry for discussion sources."""

from __future__ import annotations

from ..config import BadgeConfig
from .base import DiscussionSource, IdentityProvider, SnapshotProvider

__all__ = [
    "DiscussionSource",
    "IdentityProvider",
    "SnapshotProvider",
    "get_provider",
    "register",
]

_REGISTRY: dict[str, type[DiscussionSource]] = {}


def register(name: str):
    """Decorator for registering discussion sources."""

    def _wrapper(cls: type[DiscussionSource]) -> type[DiscussionSource]:
        _REGISTRY[name] = cls
        return cls

    return _wrapper


def get_provider(name: str, config: BadgeConfig) -> DiscussionSource:
    """Instantiate the provider for the requested backend."""

    try:
        provider_cls = _REGISTRY[name]
    except KeyError as exc:
        known = ", ".join(sorted(_REGISTRY)) or "<none>"
        raise ValueError(f"Unsupported provider '{name}'. Known: {known}") from exc

    return provider_cls.from_config(config)


# Eagerly import provider modules for registration side-effects
from . import file, github  # noqa: E402,F401
