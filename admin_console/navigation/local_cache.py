"""Cache local persistant (par poste) de la liste de navigation."""
from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from threading import RLock
from typing import Any, Iterable, Optional

from pydantic import ValidationError

from admin_console.core.models import NavigationItem
from admin_console.navigation.errors import CacheParseError

logger = logging.getLogger(__name__)


def scoped_key(base_key: str, user_id: Optional[object] = None) -> str:
    """Clé de cache propre à un utilisateur (ou partagée en l'absence de session)."""

    if user_id is None or user_id == "":
        return base_key
    return f"{base_key}:{user_id}"


def sort_by_order(items: Iterable[NavigationItem]) -> list[NavigationItem]:
    # sorted() est stable : les égalités conservent l'ordre d'entrée.
    return sorted(items, key=lambda item: item.order)


class SqliteKeyValueStorage:
    """Stockage clé/valeur synchrone dans un fichier SQLite local."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self._lock = RLock()
        self._schema_ready = False

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        with self._lock:
            if not self._schema_ready:
                self.path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self.path)
            try:
                if not self._schema_ready:
                    conn.execute(
                        """
                        CREATE TABLE IF NOT EXISTS kv_store (
                            key TEXT PRIMARY KEY,
                            value TEXT NOT NULL,
                            updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
                        )
                        """
                    )
                    self._schema_ready = True
                yield conn
                conn.commit()
            except Exception:
                if conn.in_transaction:
                    conn.rollback()
                raise
            finally:
                conn.close()

    def get(self, key: str) -> Optional[str]:
        with self._connection() as conn:
            row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
        return None if row is None else row[0]

    def set(self, key: str, value: str) -> None:
        with self._connection() as conn:
            conn.execute(
                """
                INSERT INTO kv_store (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET
                  value = excluded.value,
                  updated_at = CURRENT_TIMESTAMP
                """,
                (key, value),
            )

    def delete(self, key: str) -> None:
        with self._connection() as conn:
            conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))


def _as_item_payload(entry: Any) -> dict[str, Any]:
    if not isinstance(entry, dict):
        raise TypeError(f"entrée inattendue de type {type(entry).__name__}")
    payload = dict(entry)
    # Accepte aussi la forme wire {menuId, visible, ...}.
    if "id" not in payload and "menuId" in payload:
        payload["id"] = payload.pop("menuId")
    if "isVisible" not in payload and "is_visible" not in payload and "visible" in payload:
        payload["isVisible"] = payload.pop("visible")
    return payload


def parse_items(key: str, raw: str) -> list[NavigationItem]:
    """Décode le contenu brut du cache ; lève :class:`CacheParseError`."""

    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise CacheParseError(key, f"JSON invalide ({exc})") from exc
    if not isinstance(data, list):
        raise CacheParseError(key, "une liste JSON est attendue")

    items: list[NavigationItem] = []
    seen: set[str] = set()
    for index, entry in enumerate(data):
        try:
            item = NavigationItem.model_validate(_as_item_payload(entry))
        except (TypeError, ValidationError) as exc:
            raise CacheParseError(key, f"entrée {index} invalide ({exc})") from exc
        if item.id in seen:
            logger.warning("Entrée dupliquée '%s' ignorée dans le cache '%s'", item.id, key)
            continue
        seen.add(item.id)
        items.append(item)
    return sort_by_order(items)


def serialize_items(items: Iterable[NavigationItem]) -> str:
    return json.dumps([item.to_storage() for item in items], ensure_ascii=False)


class LocalCache:
    """Adaptateur entre le stockage clé/valeur et la liste de navigation."""

    def __init__(self, storage: SqliteKeyValueStorage) -> None:
        self._storage = storage

    def load(self, key: str) -> Optional[list[NavigationItem]]:
        """Retourne la liste enregistrée, ou ``None`` si absente ou illisible.

        Un contenu corrompu est journalisé puis supprimé : l'appelant retombe
        alors sur les entrées par défaut.
        """

        try:
            raw = self._storage.get(key)
        except (sqlite3.Error, OSError):
            logger.exception("Lecture du cache local '%s' impossible", key)
            return None
        if raw is None:
            return None
        try:
            return parse_items(key, raw)
        except CacheParseError as exc:
            logger.warning("%s ; le cache est ignoré", exc)
            self.clear(key)
            return None

    def save(self, key: str, items: Iterable[NavigationItem]) -> bool:
        try:
            payload = serialize_items(items)
            self._storage.set(key, payload)
        except (sqlite3.Error, OSError, TypeError, ValueError):
            logger.exception("Écriture du cache local '%s' impossible", key)
            return False
        logger.debug("Cache local '%s' mis à jour", key)
        return True

    def clear(self, key: str) -> None:
        try:
            self._storage.delete(key)
        except (sqlite3.Error, OSError):
            logger.exception("Suppression du cache local '%s' impossible", key)
