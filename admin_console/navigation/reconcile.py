"""Fusion des sources locale, distante et par défaut de la navigation.

Le stockage distant fait autorité pour ``order`` et ``is_visible`` : il
reflète la dernière action utilisateur enregistrée durablement. Les champs
structurels (nom, chemin, badge, icône) viennent du distant s'ils sont
présents, sinon de l'entrée locale, sinon du registre.
"""
from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional, Sequence

from admin_console.core.icons import FALLBACK_ICON
from admin_console.core.menu_registry import default_item
from admin_console.core.models import NavigationItem, PreferenceRecord
from admin_console.navigation.local_cache import sort_by_order

logger = logging.getLogger(__name__)

RegistryLookup = Callable[[str], Optional[NavigationItem]]


def _index_by_id(items: Iterable[NavigationItem]) -> dict[str, NavigationItem]:
    index: dict[str, NavigationItem] = {}
    for item in items:
        index.setdefault(item.id, item)
    return index


def _latest_records(records: Iterable[PreferenceRecord]) -> list[PreferenceRecord]:
    latest: dict[str, PreferenceRecord] = {}
    for record in records:
        if record.menu_id in latest:
            logger.debug("Préférence distante dupliquée '%s' : la dernière occurrence l'emporte", record.menu_id)
            del latest[record.menu_id]
        latest[record.menu_id] = record
    return list(latest.values())


def _pick(*candidates: Optional[str], fallback: str) -> str:
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return fallback


def merge_record(
    record: PreferenceRecord,
    local: Optional[NavigationItem],
    default: Optional[NavigationItem],
) -> NavigationItem:
    """Construit l'entrée fusionnée pour une préférence distante."""

    base = local or default
    return NavigationItem(
        id=record.menu_id,
        order=record.order,
        is_visible=record.visible,
        name=_pick(
            record.name,
            local.name if local else None,
            default.name if default else None,
            fallback=record.menu_id,
        ),
        path=_pick(
            record.path,
            local.path if local else None,
            default.path if default else None,
            fallback="",
        ),
        badge=_pick(
            record.badge,
            local.badge if local else None,
            default.badge if default else None,
            fallback="",
        ),
        icon_ref=_pick(
            record.icon_ref,
            local.icon_ref if local else None,
            default.icon_ref if default else None,
            fallback=FALLBACK_ICON,
        ),
        required_roles=list(base.required_roles) if base else [],
        children=list(base.children) if base else [],
    )


def reconcile(
    local_items: Sequence[NavigationItem],
    remote_records: Sequence[PreferenceRecord],
    registry_lookup: RegistryLookup = default_item,
) -> list[NavigationItem]:
    """Fusionne ``local_items`` et ``remote_records`` en une liste triée.

    Aucune entrée n'est perdue : les entrées uniquement locales sont
    conservées telles quelles, les identifiants distants inconnus reçoivent
    les valeurs du registre ou des valeurs de repli.
    """

    if not remote_records:
        return sort_by_order(local_items)

    local_by_id = _index_by_id(local_items)
    records = _latest_records(remote_records)

    merged = [
        merge_record(record, local_by_id.get(record.menu_id), registry_lookup(record.menu_id))
        for record in records
    ]
    remote_ids = {record.menu_id for record in records}
    local_only = [item for item in local_by_id.values() if item.id not in remote_ids]

    result = sort_by_order([*merged, *local_only])
    logger.debug(
        "Réconciliation: %d entrées distantes, %d uniquement locales",
        len(merged),
        len(local_only),
    )
    return result
