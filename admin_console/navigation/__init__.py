"""Moteur de synchronisation des préférences de navigation."""
from admin_console.navigation.errors import (
    CacheParseError,
    NavigationSyncError,
    RemoteFetchError,
    RemoteSaveError,
)
from admin_console.navigation.local_cache import LocalCache, SqliteKeyValueStorage, scoped_key
from admin_console.navigation.reconcile import reconcile
from admin_console.navigation.remote import Identity, RemotePreferenceClient
from admin_console.navigation.roles import filter_by_role, is_visible_for_roles, visible_entries
from admin_console.navigation.session import NavigationSession
from admin_console.navigation.store import PreferenceStore
from admin_console.navigation.writer import DebouncedWriter

__all__ = [
    "CacheParseError",
    "DebouncedWriter",
    "Identity",
    "LocalCache",
    "NavigationSession",
    "NavigationSyncError",
    "PreferenceStore",
    "RemoteFetchError",
    "RemotePreferenceClient",
    "RemoteSaveError",
    "SqliteKeyValueStorage",
    "filter_by_role",
    "is_visible_for_roles",
    "reconcile",
    "scoped_key",
    "visible_entries",
]
