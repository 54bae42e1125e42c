"""Exceptions du moteur de synchronisation de la navigation."""
from __future__ import annotations


class NavigationSyncError(Exception):
    """Erreur de base, jamais fatale pour le magasin de préférences."""


class CacheParseError(NavigationSyncError):
    """Contenu du cache local illisible ou invalide."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"Cache local '{key}' invalide: {reason}")
        self.key = key
        self.reason = reason


class RemoteFetchError(NavigationSyncError):
    """Échec de lecture des préférences distantes."""


class RemoteSaveError(NavigationSyncError):
    """Échec d'enregistrement des préférences distantes."""
