"""Session de navigation : assemblage du cache, du magasin et du distant.

Au démarrage, le cache local est lu de façon synchrone pour alimenter le
magasin, puis les préférences distantes sont récupérées une seule fois par
utilisateur et réconciliées.

Les mutations locales émises avant la fin de cette première réconciliation
sont appliquées immédiatement et journalisées ; elles sont rejouées sur la
liste réconciliée. Pendant ce temps l'envoi distant est suspendu.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Callable, Iterable, Optional, Protocol, Sequence

from admin_console.core.config import Settings, settings as default_settings
from admin_console.core.menu_registry import default_item, default_items
from admin_console.core.models import NavigationItem, PreferenceRecord
from admin_console.navigation.errors import RemoteFetchError
from admin_console.navigation.local_cache import LocalCache, SqliteKeyValueStorage, scoped_key
from admin_console.navigation.reconcile import RegistryLookup, reconcile
from admin_console.navigation.remote import Identity, RemotePreferenceClient, TokenProvider
from admin_console.navigation.roles import filter_by_role
from admin_console.navigation.store import PreferenceStore
from admin_console.navigation.writer import DebouncedWriter, PreferenceSaver

logger = logging.getLogger(__name__)

IdentityProvider = Callable[[], Optional[Identity]]


class PreferenceSource(PreferenceSaver, Protocol):
    async def fetch_preferences(self) -> list[PreferenceRecord]: ...


def matches_remote(items: Iterable[NavigationItem], records: Sequence[PreferenceRecord]) -> bool:
    """Vrai si ordre et visibilité de ``items`` sont déjà ceux du distant."""

    local_state = {item.id: (item.order, item.is_visible) for item in items}
    remote_state = {record.menu_id: (record.order, record.visible) for record in records}
    return local_state == remote_state


class NavigationSession:
    """Possède le magasin de préférences d'un utilisateur et sa synchronisation."""

    def __init__(
        self,
        *,
        identity_provider: IdentityProvider,
        cache: LocalCache,
        remote: PreferenceSource,
        cache_key: str = default_settings.CACHE_KEY,
        delay: float = default_settings.DEBOUNCE_SECONDS,
        defaults: Callable[[], Iterable[NavigationItem]] = default_items,
        registry_lookup: RegistryLookup = default_item,
    ) -> None:
        self._identity_provider = identity_provider
        self._cache = cache
        self._remote = remote
        self._base_cache_key = cache_key
        self._registry_lookup = registry_lookup
        self.store = PreferenceStore(defaults=defaults)
        self.writer = DebouncedWriter(
            cache,
            remote,
            cache_key=self.cache_key,
            is_authenticated=lambda: self.identity is not None,
            delay=delay,
        )
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._sync_task: Optional[asyncio.Task[bool]] = None
        self._synced_user_id: Optional[str] = None
        self._closed = False

    @classmethod
    def from_settings(
        cls,
        identity_provider: IdentityProvider,
        *,
        token: str | TokenProvider | None = None,
        config: Settings = default_settings,
    ) -> NavigationSession:
        cache = LocalCache(SqliteKeyValueStorage(config.CACHE_PATH))
        remote = RemotePreferenceClient(config.API_URL, token=token, timeout=config.REMOTE_TIMEOUT)
        return cls(
            identity_provider=identity_provider,
            cache=cache,
            remote=remote,
            cache_key=config.CACHE_KEY,
            delay=config.DEBOUNCE_SECONDS,
        )

    @property
    def identity(self) -> Optional[Identity]:
        return self._identity_provider()

    @property
    def opened(self) -> bool:
        return self._unsubscribe is not None

    @property
    def synchronizing(self) -> bool:
        return self._sync_task is not None and not self._sync_task.done()

    def cache_key(self) -> str:
        identity = self.identity
        return scoped_key(self._base_cache_key, identity.user_id if identity else None)

    def _seed_snapshot(self) -> list[NavigationItem]:
        cached = self._cache.load(self.cache_key())
        if cached is None:
            return list(self.store.default_snapshot())
        return filter_by_role(cached, self.store.roles)

    def open(self) -> PreferenceStore:
        """Alimente le magasin depuis le cache local (ou les valeurs par défaut)."""

        if self._closed:
            raise RuntimeError("Session de navigation fermée")
        if self.opened:
            return self.store
        identity = self.identity
        self.store.set_roles(identity.roles if identity else ())
        self.store.replace(self._seed_snapshot())
        self._unsubscribe = self.store.subscribe(self.writer)
        logger.info("Navigation initialisée avec %d entrées", len(self.store))
        return self.store

    def start(self) -> Optional[asyncio.Task[bool]]:
        """Ouvre la session puis lance la synchronisation initiale si connecté."""

        self.open()
        return self.identity_changed()

    def identity_changed(self) -> Optional[asyncio.Task[bool]]:
        """À appeler quand l'utilisateur authentifié change (connexion, déconnexion)."""

        if self._closed or not self.opened:
            return None
        identity = self.identity
        if identity is None:
            self._cancel_sync()
            self._synced_user_id = None
            return None
        if identity.user_id == self._synced_user_id:
            return self._sync_task

        previous_user = self._synced_user_id
        self._cancel_sync()
        self._synced_user_id = identity.user_id
        self.writer.hold()
        self.store.set_roles(identity.roles)
        cached = self._cache.load(self.cache_key())
        if cached is not None:
            self.store.replace(filter_by_role(cached, identity.roles))
        elif previous_user is not None:
            self.store.replace(self.store.default_snapshot())
        self.store.start_journal()
        self._sync_task = asyncio.get_running_loop().create_task(self.synchronize())
        return self._sync_task

    def _cancel_sync(self) -> None:
        if self._sync_task is not None and not self._sync_task.done():
            self._sync_task.cancel()
        self._sync_task = None
        self.writer.cancel()
        self.store.discard_journal()
        self.writer.discard_held()
        self.writer.release()

    async def synchronize(self) -> bool:
        """Récupère les préférences distantes et les réconcilie avec le magasin."""

        identity = self.identity
        if identity is None or self._closed:
            return False
        self.writer.hold()
        self.store.start_journal()
        try:
            records = await self._remote.fetch_preferences()
        except RemoteFetchError as exc:
            logger.warning("Préférences distantes indisponibles, état local conservé: %s", exc)
            return self._abandon_sync()
        except Exception:
            logger.exception("Erreur inattendue lors de la lecture des préférences distantes")
            return self._abandon_sync()

        current = self.identity
        if self._closed or current is None or current.user_id != identity.user_id:
            logger.info("Utilisateur changé pendant la synchronisation, résultat ignoré")
            return self._abandon_sync()

        try:
            merged = reconcile(self.store.journal_base, records, self._registry_lookup)
            self.store.rebase(merged)
        except Exception:
            logger.exception("Réconciliation des préférences impossible, état local conservé")
            return self._abandon_sync()
        self.writer.discard_held()
        self.writer.release()
        if records and matches_remote(self.store.items, records):
            self.writer.mark_synced(self.store.items)
        elif self.store.items or records:
            self.writer.on_change(self.store.items)
        logger.info(
            "Navigation synchronisée pour l'utilisateur %s (%d préférences distantes)",
            identity.user_id,
            len(records),
        )
        return True

    def _abandon_sync(self) -> bool:
        self.store.discard_journal()
        self.writer.release()
        return False

    def visible_items(self) -> list[NavigationItem]:
        return self.store.visible_items()

    async def flush(self) -> None:
        if self._sync_task is not None and not self._sync_task.done():
            await asyncio.gather(self._sync_task, return_exceptions=True)
        await self.writer.flush()

    def close(self) -> None:
        """Termine la session : annule la synchronisation et l'envoi planifié."""

        if self._closed:
            return
        if self._sync_task is not None and not self._sync_task.done():
            self._sync_task.cancel()
        self._sync_task = None
        self.writer.close()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.store.discard_journal()
        self._closed = True
        logger.debug("Session de navigation fermée")
