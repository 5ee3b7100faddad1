"""
Service des préférences utilisateur (un seul enregistrement local)
"""
import logging

from mototrack.core.errors import LocalStoreError
from mototrack.domain.entities.user_settings import UserSettingsBase
from mototrack.domain.services.local_store import LocalStore

logger = logging.getLogger(__name__)


class SettingsService:
    """Chargement et mise à jour des préférences, valeurs par défaut au premier lancement."""

    def __init__(self, local_store: LocalStore):
        self.local_store = local_store
        self._current = UserSettingsBase()

    @property
    def current(self) -> UserSettingsBase:
        return self._current

    def load(self) -> UserSettingsBase:
        try:
            stored = self.local_store.get_settings()
            if stored is None:
                logger.info("Aucune préférence enregistrée, valeurs par défaut appliquées")
                stored = self.local_store.save_settings(UserSettingsBase())
        except LocalStoreError as e:
            logger.error(f"Error loading settings: {e}")
            self._current = UserSettingsBase()
            return self._current

        self._current = UserSettingsBase.model_validate(stored.model_dump(include=set(UserSettingsBase.model_fields)))
        return self._current

    def update(self, **changes) -> UserSettingsBase:
        """Valide puis enregistre les changements. Lève ValidationError si une valeur est invalide."""
        unknown = set(changes) - set(UserSettingsBase.model_fields)
        if unknown:
            raise ValueError(f"Préférences inconnues: {', '.join(sorted(unknown))}")

        values = self._current.model_dump()
        values.update(changes)
        updated = UserSettingsBase.model_validate(values)

        self.local_store.save_settings(updated)
        self._current = updated
        logger.info(f"Préférences mises à jour: {', '.join(sorted(changes))}")
        return updated
