"""
Tests pour le SettingsService et la configuration de l'application.
"""
from unittest.mock import MagicMock

import pytest
from pydantic import ValidationError

from mototrack.core.errors import LocalStoreError
from mototrack.core.settings import Settings
from mototrack.domain.entities.user_settings import GpsAccuracy, MapStyle, Units
from mototrack.domain.services.settings_service import SettingsService


class TestSettingsService:
    def test_defaults_persisted_on_first_load(self, local_store):
        service = SettingsService(local_store)
        loaded = service.load()

        assert loaded.units == Units.IMPERIAL
        assert loaded.background_tracking is True
        assert loaded.gps_accuracy == GpsAccuracy.HIGH
        assert loaded.map_style == MapStyle.STANDARD
        assert local_store.get_settings() is not None

    def test_update_persists(self, local_store):
        service = SettingsService(local_store)
        service.load()

        updated = service.update(units="metric", gps_accuracy=GpsAccuracy.LOW)

        assert updated.units == Units.METRIC
        assert updated.gps_accuracy == GpsAccuracy.LOW
        # Un nouveau service relit la valeur enregistrée
        assert SettingsService(local_store).load().units == Units.METRIC

    def test_invalid_value_rejected(self, local_store):
        service = SettingsService(local_store)
        service.load()

        with pytest.raises(ValidationError):
            service.update(units="furlongs")
        assert SettingsService(local_store).load().units == Units.IMPERIAL

    def test_unknown_key_rejected(self, local_store):
        service = SettingsService(local_store)
        with pytest.raises(ValueError):
            service.update(theme="dark")

    def test_store_error_falls_back_to_defaults(self):
        store = MagicMock()
        store.get_settings.side_effect = LocalStoreError("database is locked")

        loaded = SettingsService(store).load()

        assert loaded.units == Units.IMPERIAL
        store.save_settings.assert_not_called()


class TestAppSettings:
    def test_log_level_from_environment(self):
        assert Settings(ENVIRONMENT="production").LOG_LEVEL == "WARNING"
        assert Settings(ENVIRONMENT="development").LOG_LEVEL == "INFO"
        assert Settings(ENVIRONMENT="development", LOG_LEVEL="debug").LOG_LEVEL == "DEBUG"

    def test_production_forces_debug_off(self):
        assert Settings(ENVIRONMENT="production", DEBUG=True).DEBUG is False

    def test_remote_url_trailing_slash_removed(self):
        assert Settings(REMOTE_API_URL="https://rides.example.com/").REMOTE_API_URL == "https://rides.example.com"

    def test_env_vars(self, monkeypatch):
        monkeypatch.setenv("SYNC_MAX_ATTEMPTS", "8")
        monkeypatch.setenv("DATABASE_URL", "sqlite:///rides.db")
        settings = Settings()
        assert settings.SYNC_MAX_ATTEMPTS == 8
        assert settings.DATABASE_URL == "sqlite:///rides.db"

    def test_invalid_value(self):
        with pytest.raises(ValidationError):
            Settings(SYNC_MAX_ATTEMPTS=0)
