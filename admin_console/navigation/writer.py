"""Écriture différée (debounce) des préférences de navigation."""
from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional, Protocol, Sequence

from admin_console.core.models import NavigationItem
from admin_console.navigation.local_cache import LocalCache

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 1.0


class PreferenceSaver(Protocol):
    async def save_preferences(self, items: Sequence[NavigationItem]) -> None: ...


class DebouncedWriter:
    """Observateur du magasin qui persiste chaque changement.

    Le cache local est écrit immédiatement ; l'enregistrement distant est
    planifié après ``delay`` secondes de calme, un nouveau changement
    annulant la planification précédente. Sans utilisateur authentifié, la
    partie distante est ignorée.
    """

    def __init__(
        self,
        cache: LocalCache,
        remote: PreferenceSaver,
        *,
        cache_key: str | Callable[[], str],
        is_authenticated: Callable[[], bool],
        delay: float = DEFAULT_DEBOUNCE_SECONDS,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        self._cache = cache
        self._remote = remote
        self._cache_key = cache_key
        self._is_authenticated = is_authenticated
        self.delay = delay
        self._loop = loop
        self._timer: Optional[asyncio.TimerHandle] = None
        self._pending: Optional[tuple[NavigationItem, ...]] = None
        self._last_sent: Optional[tuple[NavigationItem, ...]] = None
        self._tasks: set[asyncio.Task[None]] = set()
        self._held = False
        self._held_snapshot: Optional[tuple[NavigationItem, ...]] = None
        self._closed = False
        self._in_flight = 0

    @property
    def saving(self) -> bool:
        return self._in_flight > 0

    @property
    def pending(self) -> bool:
        return self._timer is not None

    @property
    def closed(self) -> bool:
        return self._closed

    def _resolve_cache_key(self) -> str:
        return self._cache_key() if callable(self._cache_key) else self._cache_key

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def __call__(self, items: Sequence[NavigationItem]) -> None:
        self.on_change(items)

    def on_change(self, items: Sequence[NavigationItem]) -> None:
        if self._closed:
            return
        snapshot = tuple(items)
        self._cache.save(self._resolve_cache_key(), snapshot)
        if self._held:
            self._held_snapshot = snapshot
            return
        self._schedule(snapshot)

    def _schedule(self, snapshot: tuple[NavigationItem, ...]) -> None:
        if not self._is_authenticated():
            self.cancel()
            logger.debug("Aucun utilisateur authentifié, enregistrement distant ignoré")
            return
        if snapshot == self._pending and self._timer is not None:
            return
        self.cancel()
        if snapshot == self._last_sent:
            return
        self._pending = snapshot
        self._timer = self._get_loop().call_later(self.delay, self._fire)

    def cancel(self) -> None:
        """Annule l'enregistrement distant planifié, s'il existe."""

        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._pending = None

    def _fire(self) -> None:
        self._timer = None
        snapshot, self._pending = self._pending, None
        if snapshot is None or self._closed:
            return
        task = self._get_loop().create_task(self._send(snapshot))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _send(self, snapshot: tuple[NavigationItem, ...]) -> None:
        if not self._is_authenticated():
            logger.debug("Session terminée avant l'enregistrement distant, envoi annulé")
            return
        self._in_flight += 1
        try:
            await self._remote.save_preferences(list(snapshot))
        except Exception:
            logger.exception("Échec de l'enregistrement distant des préférences de navigation")
        else:
            self._last_sent = snapshot
            logger.info("Préférences de navigation enregistrées (%d entrées)", len(snapshot))
        finally:
            self._in_flight -= 1

    async def flush(self) -> None:
        """Envoie immédiatement l'instantané en attente puis attend les envois."""

        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
            snapshot, self._pending = self._pending, None
            if snapshot is not None and not self._closed:
                await self._send(snapshot)
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def hold(self) -> None:
        """Suspend la partie distante ; le cache local reste écrit."""

        self._held = True

    def release(self) -> None:
        """Reprend la partie distante et planifie le dernier état retenu."""

        if not self._held:
            return
        self._held = False
        snapshot, self._held_snapshot = self._held_snapshot, None
        if snapshot is not None and not self._closed:
            self._schedule(snapshot)

    def discard_held(self) -> None:
        self._held_snapshot = None

    def mark_synced(self, items: Sequence[NavigationItem]) -> None:
        """Déclare ``items`` identique au contenu distant (rien à renvoyer)."""

        self._last_sent = tuple(items)

    def close(self) -> None:
        self.cancel()
        self._held_snapshot = None
        self._closed = True
