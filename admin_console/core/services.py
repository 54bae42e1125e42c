"""Services métier de la console d'administration."""
from __future__ import annotations

import json
import logging
import sqlite3
from typing import Iterable, Optional

from admin_console.core import db, models, security

# Initialisation des bases de données au premier accès
_db_initialized = False

logger = logging.getLogger(__name__)

_DEFAULT_ADMIN_USERNAME = "admin"
_DEFAULT_ADMIN_PASSWORD = "admin123"

_MENU_DATA_FIELDS = ("name", "path", "iconRef", "badge")


def ensure_database_ready() -> None:
    global _db_initialized
    if _db_initialized:
        return
    db.init_databases()
    seed_default_admin()
    _db_initialized = True


def seed_default_admin() -> None:
    with db.get_users_connection() as conn:
        cur = conn.execute(
            "SELECT id, password, role, is_active FROM users WHERE username = ?",
            (_DEFAULT_ADMIN_USERNAME,),
        )
        row = cur.fetchone()
        if row is None:
            conn.execute(
                "INSERT INTO users (username, password, role, is_active) VALUES (?, ?, ?, 1)",
                (_DEFAULT_ADMIN_USERNAME, security.hash_password(_DEFAULT_ADMIN_PASSWORD), "admin"),
            )
            conn.commit()
            logger.info("Administrateur par défaut créé")
            return

        needs_update = False
        if not security.verify_password(_DEFAULT_ADMIN_PASSWORD, row["password"]):
            needs_update = True
        if row["role"] != "admin" or not bool(row["is_active"]):
            needs_update = True

        if needs_update:
            conn.execute(
                "UPDATE users SET password = ?, role = ?, is_active = 1 WHERE id = ?",
                (security.hash_password(_DEFAULT_ADMIN_PASSWORD), "admin", row["id"]),
            )
            conn.commit()


def _row_to_user(row: sqlite3.Row) -> models.User:
    return models.User(
        id=row["id"],
        username=row["username"],
        role=row["role"],
        is_active=bool(row["is_active"]),
    )


def get_user(username: str) -> Optional[models.User]:
    ensure_database_ready()
    with db.get_users_connection() as conn:
        cur = conn.execute("SELECT * FROM users WHERE username = ?", (username,))
        row = cur.fetchone()
        if not row:
            return None
        return _row_to_user(row)


def get_user_by_id(user_id: int) -> Optional[models.User]:
    ensure_database_ready()
    with db.get_users_connection() as conn:
        cur = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,))
        row = cur.fetchone()
        if not row:
            return None
        return _row_to_user(row)


def create_user(payload: models.UserCreate) -> models.User:
    ensure_database_ready()
    hashed = security.hash_password(payload.password)
    with db.get_users_connection() as conn:
        try:
            cur = conn.execute(
                "INSERT INTO users (username, password, role, is_active) VALUES (?, ?, ?, 1)",
                (payload.username, hashed, payload.role),
            )
        except sqlite3.IntegrityError as exc:
            raise ValueError("Ce nom d'utilisateur existe déjà") from exc
        conn.commit()
        user_id = cur.lastrowid
    created = get_user_by_id(user_id)
    if created is None:  # pragma: no cover - inserted row should exist
        raise ValueError("Échec de la création de l'utilisateur")
    return created


def authenticate(username: str, password: str) -> Optional[models.User]:
    ensure_database_ready()
    with db.get_users_connection() as conn:
        cur = conn.execute("SELECT * FROM users WHERE username = ?", (username,))
        row = cur.fetchone()
        if not row or not bool(row["is_active"]):
            return None
        if not security.verify_password(password, row["password"]):
            return None
        return _row_to_user(row)


def _row_to_preference(row: sqlite3.Row) -> models.PreferenceRecord:
    extra: dict[str, object] = {}
    raw = row["menu_data"]
    if raw:
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("menu_data illisible pour %s, champs structurels ignorés", row["menu_key"])
            data = {}
        if isinstance(data, dict):
            extra = {key: data[key] for key in _MENU_DATA_FIELDS if data.get(key) is not None}
    return models.PreferenceRecord.model_validate(
        {
            "menuId": row["menu_key"],
            "visible": bool(row["visible"]),
            "order": row["display_order"],
            **extra,
        }
    )


def get_menu_preferences(user_id: int) -> list[models.PreferenceRecord]:
    """Retourne les préférences de menu de l'utilisateur triées par ordre."""

    ensure_database_ready()
    with db.get_users_connection() as conn:
        rows = conn.execute(
            """
            SELECT menu_key, visible, display_order, menu_data
            FROM menu_preferences
            WHERE user_id = ?
            ORDER BY display_order, id
            """,
            (user_id,),
        ).fetchall()
    return [_row_to_preference(row) for row in rows]


def _deduplicate(records: Iterable[models.PreferenceRecord]) -> list[models.PreferenceRecord]:
    latest: dict[str, models.PreferenceRecord] = {}
    for record in records:
        latest.pop(record.menu_id, None)
        latest[record.menu_id] = record
    return list(latest.values())


def save_menu_preferences(
    user_id: int, records: Iterable[models.PreferenceRecord]
) -> list[models.PreferenceRecord]:
    """Remplace l'ensemble des préférences de l'utilisateur en une transaction."""

    ensure_database_ready()
    unique_records = _deduplicate(records)
    values = []
    for record in unique_records:
        wire = record.to_wire()
        menu_data = {key: wire[key] for key in _MENU_DATA_FIELDS if key in wire}
        menu_data["menuId"] = record.menu_id
        menu_data["visible"] = record.visible
        values.append(
            (
                user_id,
                record.menu_id,
                1 if record.visible else 0,
                record.order,
                json.dumps(menu_data, ensure_ascii=False),
            )
        )
    with db.get_users_connection() as conn:
        conn.execute("DELETE FROM menu_preferences WHERE user_id = ?", (user_id,))
        if values:
            conn.executemany(
                """
                INSERT INTO menu_preferences (user_id, menu_key, visible, display_order, menu_data)
                VALUES (?, ?, ?, ?, ?)
                """,
                values,
            )
    logger.info("Préférences de menu enregistrées pour user_id=%s (%d entrées)", user_id, len(values))
    return get_menu_preferences(user_id)


def reset_menu_preferences(user_id: int) -> None:
    ensure_database_ready()
    with db.get_users_connection() as conn:
        conn.execute("DELETE FROM menu_preferences WHERE user_id = ?", (user_id,))
    logger.info("Préférences de menu réinitialisées pour user_id=%s", user_id)
