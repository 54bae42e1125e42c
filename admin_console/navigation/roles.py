"""Filtrage des entrées de navigation selon les rôles de l'utilisateur."""
from __future__ import annotations

from typing import Iterable

from admin_console.core.models import NavigationItem


def is_visible_for_roles(item: NavigationItem, user_roles: Iterable[str]) -> bool:
    """Indique si les rôles de l'utilisateur donnent accès à ``item``.

    Une entrée sans rôle requis est visible par tous ; sinon il suffit d'un
    rôle en commun.
    """

    if not item.required_roles:
        return True
    return not set(item.required_roles).isdisjoint(user_roles)


def filter_by_role(items: Iterable[NavigationItem], user_roles: Iterable[str]) -> list[NavigationItem]:
    roles = frozenset(user_roles)
    return [item for item in items if is_visible_for_roles(item, roles)]


def visible_entries(items: Iterable[NavigationItem], user_roles: Iterable[str]) -> list[NavigationItem]:
    """Entrées à afficher : filtre de rôles puis préférence de visibilité."""

    roles = frozenset(user_roles)
    visible: list[NavigationItem] = []
    for item in items:
        if not is_visible_for_roles(item, roles) or not item.is_visible:
            continue
        children = visible_entries(item.children, roles)
        if children != item.children:
            item = item.model_copy(update={"children": children})
        visible.append(item)
    return visible
