"""Client HTTP asynchrone du stockage distant des préférences."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence, Union

import httpx
from pydantic import ValidationError

from admin_console.core.models import MenuPreferenceResponse, NavigationItem, PreferenceRecord
from admin_console.navigation.errors import RemoteFetchError, RemoteSaveError

logger = logging.getLogger(__name__)

MENU_PREFERENCES_PATH = "/api/menu-preferences"
CURRENT_USER_PATH = "/auth/me"

TokenProvider = Callable[[], Optional[str]]


@dataclass(frozen=True)
class Identity:
    """Utilisateur authentifié tel que vu par le moteur de navigation."""

    user_id: str
    roles: frozenset[str] = field(default_factory=frozenset)
    username: Optional[str] = None


def to_records(items: Sequence[NavigationItem]) -> list[PreferenceRecord]:
    return [PreferenceRecord.from_item(item) for item in items]


class RemotePreferenceClient:
    """Lecture et écriture des préférences via l'API REST de la console."""

    def __init__(
        self,
        base_url: str,
        *,
        token: Union[str, TokenProvider, None] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._token = token
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def __aenter__(self) -> RemotePreferenceClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _auth_headers(self) -> dict[str, str]:
        token = self._token() if callable(self._token) else self._token
        if not token:
            return {}
        return {"Authorization": f"Bearer {token}"}

    async def fetch_preferences(self) -> list[PreferenceRecord]:
        """Retourne les préférences enregistrées, ``[]`` si aucune n'existe."""

        try:
            response = await self._client.get(MENU_PREFERENCES_PATH, headers=self._auth_headers())
        except httpx.HTTPError as exc:
            raise RemoteFetchError(f"Préférences distantes injoignables: {exc}") from exc
        if response.status_code in (204, 404):
            return []
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise RemoteFetchError(
                f"Lecture des préférences refusée (HTTP {response.status_code})"
            ) from exc
        if not response.content:
            return []
        try:
            payload = response.json()
            if payload is None:
                return []
            if isinstance(payload, list):
                payload = {"preferences": payload}
            return MenuPreferenceResponse.model_validate(payload).preferences
        except (ValueError, ValidationError) as exc:
            raise RemoteFetchError(f"Réponse de préférences invalide: {exc}") from exc

    async def save_preferences(self, items: Sequence[NavigationItem]) -> None:
        body = {"preferences": [record.to_wire() for record in to_records(items)]}
        try:
            response = await self._client.post(
                MENU_PREFERENCES_PATH, json=body, headers=self._auth_headers()
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            detail = _error_detail(exc.response)
            raise RemoteSaveError(
                f"Enregistrement des préférences refusé (HTTP {exc.response.status_code}): {detail}"
            ) from exc
        except httpx.HTTPError as exc:
            raise RemoteSaveError(f"Préférences distantes injoignables: {exc}") from exc

    async def reset_preferences(self) -> None:
        try:
            response = await self._client.delete(MENU_PREFERENCES_PATH, headers=self._auth_headers())
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise RemoteSaveError(f"Réinitialisation des préférences impossible: {exc}") from exc

    async def fetch_identity(self) -> Identity:
        try:
            response = await self._client.get(CURRENT_USER_PATH, headers=self._auth_headers())
            response.raise_for_status()
            payload = response.json()
            return Identity(
                user_id=str(payload["id"]),
                roles=frozenset(payload.get("roles") or ()),
                username=payload.get("username"),
            )
        except (httpx.HTTPError, ValueError, KeyError, TypeError, AttributeError) as exc:
            raise RemoteFetchError(f"Utilisateur courant indisponible: {exc}") from exc


def _error_detail(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text
    if isinstance(payload, dict) and "detail" in payload:
        return str(payload["detail"])
    return str(payload)
