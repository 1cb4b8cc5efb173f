"""Discussion badge MCP server package."""

__all__ = ["build_app", "NotificationBadgeEngine", "reconcile"]


def __getattr__(name: str):  # pragma: no cover - module-level convenience
    if name == "build_app":
        from .main import build_app

        return build_app
    if name == "NotificationBadgeEngine":
        from .engine import NotificationBadgeEngine

        return NotificationBadgeEngine
    if name == "reconcile":
        from .reconciler import reconcile

        return reconcile
    raise AttributeError(name)
