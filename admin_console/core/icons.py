"""Table des capacités d'icônes adressées par nom symbolique."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class IconCapability:
    """Icône utilisable par la couche de rendu.

    ``name`` est la référence symbolique stockée sur les entrées de menu,
    ``slug`` l'identifiant de l'icône dans la bibliothèque lucide.
    """

    name: str
    slug: str


FALLBACK_ICON = "Package"

ICON_REGISTRY: dict[str, IconCapability] = {
    capability.name: capability
    for capability in (
        IconCapability("LayoutDashboard", "layout-dashboard"),
        IconCapability("Package", "package"),
        IconCapability("Users", "users"),
        IconCapability("UserCircle", "user-circle"),
        IconCapability("MessageSquare", "message-square"),
        IconCapability("Settings", "settings"),
        IconCapability("BarChart3", "bar-chart-3"),
        IconCapability("Activity", "activity"),
        IconCapability("FileText", "file-text"),
        IconCapability("Database", "database"),
        IconCapability("Server", "server"),
        IconCapability("Code", "code"),
        IconCapability("Zap", "zap"),
        IconCapability("Globe", "globe"),
    )
}


def normalize_icon_ref(icon_ref: object) -> str:
    """Retourne ``icon_ref`` s'il est connu, sinon l'icône de repli."""

    if isinstance(icon_ref, IconCapability):
        icon_ref = icon_ref.name
    if isinstance(icon_ref, str):
        candidate = icon_ref.strip()
        if candidate in ICON_REGISTRY:
            return candidate
    return FALLBACK_ICON


def resolve_icon(icon_ref: object) -> IconCapability:
    return ICON_REGISTRY[normalize_icon_ref(icon_ref)]
