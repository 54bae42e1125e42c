"""Magasin observable de la liste de navigation faisant autorité."""
from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Iterator, Mapping, Optional, Sequence, Union

from admin_console.core.menu_registry import default_items
from admin_console.core.models import NAVIGATION_FIELD_ALIASES, NavigationItem
from admin_console.navigation.local_cache import sort_by_order
from admin_console.navigation.roles import filter_by_role, visible_entries

logger = logging.getLogger(__name__)

Snapshot = tuple[NavigationItem, ...]
Listener = Callable[[Snapshot], None]
ItemInput = Union[NavigationItem, Mapping[str, Any]]


def _as_item(value: ItemInput) -> NavigationItem:
    if isinstance(value, NavigationItem):
        return value
    return NavigationItem.model_validate(dict(value))


def normalize_items(items: Iterable[ItemInput]) -> Snapshot:
    """Trie par ordre et ne garde que la première occurrence de chaque id."""

    unique: dict[str, NavigationItem] = {}
    for value in items:
        item = _as_item(value)
        if item.id in unique:
            logger.warning("Entrée de navigation dupliquée '%s' ignorée", item.id)
            continue
        unique[item.id] = item
    return tuple(sort_by_order(unique.values()))


def _normalize_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    normalized: dict[str, Any] = {}
    for key, value in fields.items():
        name = NAVIGATION_FIELD_ALIASES.get(key, key)
        if name not in NavigationItem.model_fields:
            raise ValueError(f"Champ de navigation inconnu: {key}")
        normalized[name] = value
    return normalized


def _add(items: Snapshot, item: NavigationItem) -> Snapshot:
    if any(existing.id == item.id for existing in items):
        return items
    return tuple(sort_by_order([*items, item]))


def _remove(items: Snapshot, item_id: str) -> Snapshot:
    return tuple(item for item in items if item.id != item_id)


def _update(items: Snapshot, item_id: str, fields: Mapping[str, Any]) -> Snapshot:
    updated: list[NavigationItem] = []
    for item in items:
        if item.id == item_id:
            item = NavigationItem.model_validate({**item.model_dump(), **fields})
        updated.append(item)
    return tuple(sort_by_order(updated))


def _toggle_visibility(items: Snapshot, item_id: str) -> Snapshot:
    return tuple(
        item.model_copy(update={"is_visible": not item.is_visible}) if item.id == item_id else item
        for item in items
    )


def _reorder(items: Snapshot, ordered_ids: Sequence[str]) -> Snapshot:
    by_id = {item.id: item for item in items}
    sequence: list[str] = []
    for item_id in ordered_ids:
        if item_id in by_id and item_id not in sequence:
            sequence.append(item_id)
    named = set(sequence)
    remaining = [item for item in items if item.id not in named]

    if [*sequence, *(item.id for item in remaining)] == [item.id for item in items]:
        return items

    reordered = [by_id[item_id].model_copy(update={"order": index}) for index, item_id in enumerate(sequence)]
    start = len(sequence)
    trailing = [item.model_copy(update={"order": start + index}) for index, item in enumerate(remaining)]
    return tuple(sort_by_order([*reordered, *trailing]))


def _replace(items: Snapshot, new_items: Snapshot) -> Snapshot:
    return new_items


_OPERATIONS: dict[str, Callable[..., Snapshot]] = {
    "add": _add,
    "remove": _remove,
    "update": _update,
    "toggle_visibility": _toggle_visibility,
    "reorder": _reorder,
    "reset_to_default": _replace,
}


class PreferenceStore:
    """Liste ordonnée de :class:`NavigationItem` et notifications associées.

    Toute mutation est synchrone. Les observateurs reçoivent l'instantané
    complet après chaque mutation effective ; une mutation sans effet ne
    notifie personne.

    Lorsqu'un journal est ouvert (:meth:`start_journal`), chaque mutation est
    aussi enregistrée pour être rejouée par :meth:`rebase` sur une nouvelle
    liste de base.
    """

    def __init__(
        self,
        items: Iterable[ItemInput] = (),
        *,
        roles: Iterable[str] = (),
        defaults: Callable[[], Iterable[NavigationItem]] = default_items,
    ) -> None:
        self._items: Snapshot = normalize_items(items)
        self._roles = frozenset(roles)
        self._defaults = defaults
        self._listeners: list[Listener] = []
        self._journal: Optional[list[tuple[str, tuple[Any, ...]]]] = None
        self._journal_base: Snapshot = ()

    # -- lecture -------------------------------------------------------

    @property
    def items(self) -> Snapshot:
        return self._items

    @property
    def roles(self) -> frozenset[str]:
        return self._roles

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[NavigationItem]:
        return iter(self._items)

    def __contains__(self, item_id: object) -> bool:
        return any(item.id == item_id for item in self._items)

    def get(self, item_id: str) -> Optional[NavigationItem]:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def ids(self) -> list[str]:
        return [item.id for item in self._items]

    def visible_items(self) -> list[NavigationItem]:
        return visible_entries(self._items, self._roles)

    def default_snapshot(self) -> Snapshot:
        return normalize_items(filter_by_role(self._defaults(), self._roles))

    def set_roles(self, roles: Iterable[str]) -> None:
        self._roles = frozenset(roles)

    # -- observateurs --------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Enregistre ``listener`` et retourne la fonction de désinscription."""

        if listener not in self._listeners:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            self.unsubscribe(listener)

        return _unsubscribe

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self) -> None:
        snapshot = self._items
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Observateur de navigation en échec: %r", listener)

    def _commit(self, items: Snapshot) -> bool:
        if items == self._items:
            return False
        self._items = items
        self._notify()
        return True

    def _apply(self, operation: str, *args: Any) -> bool:
        # Une mutation rejetée (exception) n'entre jamais dans le journal.
        items = _OPERATIONS[operation](self._items, *args)
        if self._journal is not None:
            self._journal.append((operation, args))
        return self._commit(items)

    # -- mutations -----------------------------------------------------

    def add(self, item: ItemInput) -> bool:
        return self._apply("add", _as_item(item))

    def remove(self, item_id: str) -> bool:
        return self._apply("remove", item_id)

    def update(self, item_id: str, fields: Optional[Mapping[str, Any]] = None, /, **changes: Any) -> bool:
        """Fusionne superficiellement ``fields`` dans l'entrée ``item_id``."""

        normalized = _normalize_fields({**(fields or {}), **changes})
        if "id" in normalized and normalized["id"] != item_id:
            raise ValueError("L'identifiant d'une entrée de navigation ne peut pas être modifié")
        normalized.pop("id", None)
        if item_id not in self or not normalized:
            return False
        return self._apply("update", item_id, normalized)

    def toggle_visibility(self, item_id: str) -> bool:
        return self._apply("toggle_visibility", item_id)

    def reorder(self, ordered_ids: Sequence[str]) -> bool:
        return self._apply("reorder", tuple(ordered_ids))

    def reset_to_default(self) -> bool:
        return self._apply("reset_to_default", self.default_snapshot())

    def replace(self, items: Iterable[ItemInput]) -> bool:
        """Remplace toute la liste (hors journal)."""

        return self._commit(normalize_items(items))

    # -- journal -------------------------------------------------------

    @property
    def journaling(self) -> bool:
        return self._journal is not None

    @property
    def journal_base(self) -> Snapshot:
        """Liste telle qu'elle était à l'ouverture du journal."""

        return self._journal_base if self._journal is not None else self._items

    def start_journal(self) -> None:
        if self._journal is None:
            self._journal = []
            self._journal_base = self._items

    def discard_journal(self) -> None:
        self._journal = None
        self._journal_base = ()

    def rebase(self, items: Iterable[ItemInput]) -> bool:
        """Remplace la base par ``items`` puis rejoue les mutations journalisées.

        Le résultat est publié en une seule notification et le journal est
        fermé.
        """

        journal, self._journal = self._journal or [], None
        self._journal_base = ()
        snapshot = normalize_items(items)
        for operation, args in journal:
            try:
                snapshot = _OPERATIONS[operation](snapshot, *args)
            except ValueError as exc:
                logger.warning("Mutation locale '%s' non rejouable, ignorée: %s", operation, exc)
        if journal:
            logger.debug("%d mutation(s) locale(s) rejouée(s) après réconciliation", len(journal))
        return self._commit(snapshot)
