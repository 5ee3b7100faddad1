"""
Contexte applicatif : possède l'engine, les stores et les services.

Construit explicitement au démarrage (``AppContext.create``) et fermé à la
sortie (``close``). Aucune connexion n'est portée par un global de module.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.engine import Engine

from mototrack.core.database import build_engine, create_db_and_tables
from mototrack.core.settings import Settings, get_settings
from mototrack.domain.services.connectivity_monitor import ConnectivityMonitor
from mototrack.domain.services.local_store import LocalStore
from mototrack.domain.services.remote_store import RemoteRideStore
from mototrack.domain.services.ride_service import RideService
from mototrack.domain.services.settings_service import SettingsService
from mototrack.domain.services.sync_reconciler import SyncReconciler

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    settings: Settings
    engine: Engine
    local_store: LocalStore
    remote_store: RemoteRideStore
    reconciler: SyncReconciler
    ride_service: RideService
    settings_service: SettingsService

    @classmethod
    def create(cls, settings: Optional[Settings] = None, remote_store: Optional[RemoteRideStore] = None) -> "AppContext":
        """Ouvre la base locale (tables créées si besoin) et assemble les services."""
        settings = settings or get_settings()
        engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)
        create_db_and_tables(engine)

        local_store = LocalStore(engine)
        remote_store = remote_store or RemoteRideStore(settings.REMOTE_API_URL, timeout=settings.REMOTE_TIMEOUT_S)
        reconciler = SyncReconciler(
            local_store,
            remote_store,
            max_attempts=settings.SYNC_MAX_ATTEMPTS,
            backoff_base_s=settings.SYNC_BACKOFF_BASE_S,
        )
        ride_service = RideService(local_store, remote_store, reconciler)
        settings_service = SettingsService(local_store)
        settings_service.load()

        logger.info(f"Contexte initialisé (db={settings.DATABASE_URL}, remote={settings.REMOTE_API_URL})")
        return cls(
            settings=settings,
            engine=engine,
            local_store=local_store,
            remote_store=remote_store,
            reconciler=reconciler,
            ride_service=ride_service,
            settings_service=settings_service,
        )

    def connectivity_monitor(self) -> ConnectivityMonitor:
        return ConnectivityMonitor(
            self.reconciler,
            self.remote_store,
            interval_s=self.settings.CONNECTIVITY_PROBE_INTERVAL_S,
        )

    def close(self) -> None:
        self.remote_store.close()
        self.engine.dispose()
        logger.debug("Contexte fermé")

    def __enter__(self) -> "AppContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
