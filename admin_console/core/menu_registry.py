"""Registry for the built-in navigation entries and their icons."""
from __future__ import annotations

from admin_console.core.icons import (
    FALLBACK_ICON,
    ICON_REGISTRY,
    IconCapability,
    normalize_icon_ref,
    resolve_icon,
)
from admin_console.core.models import NavigationItem

ADMIN_ROLES: tuple[str, ...] = ("ROLE_ADMIN", "ADMIN")

DEFAULT_MENU_ITEMS: tuple[NavigationItem, ...] = (
    NavigationItem(id="dashboard", name="Dashboard", path="/dashboard", icon_ref="LayoutDashboard", order=0),
    NavigationItem(id="products", name="Products", path="/dashboard/products", icon_ref="Package", order=1),
    NavigationItem(
        id="team",
        name="Team Members",
        path="/dashboard/team",
        icon_ref="Users",
        required_roles=ADMIN_ROLES,
        order=2,
    ),
    NavigationItem(id="chat", name="Chat", path="/dashboard/chat", icon_ref="MessageSquare", order=3),
    NavigationItem(id="profile", name="Profile", path="/dashboard/profile", icon_ref="UserCircle", order=4),
    NavigationItem(
        id="logs",
        name="Application Logs",
        path="/dashboard/logs",
        icon_ref="Activity",
        required_roles=ADMIN_ROLES,
        order=5,
    ),
    NavigationItem(
        id="analytics",
        name="Analytics",
        path="/dashboard/analytics",
        icon_ref="BarChart3",
        badge="New",
        is_visible=False,
        order=6,
    ),
    NavigationItem(
        id="cpool",
        name="Connection Pool",
        path="/dashboard/cpool",
        icon_ref="Database",
        required_roles=ADMIN_ROLES,
        order=7,
    ),
    NavigationItem(
        id="menu-settings",
        name="Menu Settings",
        path="/dashboard/menu-settings",
        icon_ref="Settings",
        required_roles=ADMIN_ROLES,
        order=8,
    ),
)

_DEFAULTS_BY_ID: dict[str, NavigationItem] = {item.id: item for item in DEFAULT_MENU_ITEMS}

DEFAULT_MENU_IDS: frozenset[str] = frozenset(_DEFAULTS_BY_ID)


def default_items() -> list[NavigationItem]:
    """Return fresh copies of the built-in entries, sorted by order."""

    return sorted((item.model_copy(deep=True) for item in DEFAULT_MENU_ITEMS), key=lambda item: item.order)


def default_item(menu_id: str) -> NavigationItem | None:
    item = _DEFAULTS_BY_ID.get(menu_id)
    return item.model_copy(deep=True) if item is not None else None


__all__ = [
    "ADMIN_ROLES",
    "DEFAULT_MENU_IDS",
    "DEFAULT_MENU_ITEMS",
    "FALLBACK_ICON",
    "ICON_REGISTRY",
    "IconCapability",
    "default_item",
    "default_items",
    "normalize_icon_ref",
    "resolve_icon",
]
