"""
Taxonomie des erreurs MotoTrack.
Aucune erreur n'est fatale au processus : tout se dégrade en "hors-ligne / on réessaie plus tard".
"""
from typing import Optional


class MotoTrackError(Exception):
    """Erreur de base de l'application"""


class PermissionDeniedError(MotoTrackError):
    """La plateforme refuse l'accès à la localisation (fatal pour démarrer une session)"""


class SignalLostError(MotoTrackError):
    """Position indisponible ou timeout en cours de session (transitoire)"""


class SessionAlreadyActiveError(MotoTrackError):
    """Une session d'enregistrement est déjà en cours"""


class NoActiveSessionError(MotoTrackError):
    """Aucune session d'enregistrement en cours"""


class LocalStoreError(MotoTrackError):
    """Erreur du stockage local (SQLite)"""


class RemoteStoreError(MotoTrackError):
    """Échec d'un appel au service distant (transport ou réponse non-2xx)"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RemoteValidationError(RemoteStoreError):
    """Le service distant a rejeté la requête (400 : id ou corps invalide)"""
