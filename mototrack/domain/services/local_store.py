"""
Stockage local (SQLite via SQLModel) : cache hors-ligne et tampon d'écriture.

Deux collections : ``ride`` (id entier auto-incrémenté, index sur is_uploaded)
et ``settings`` (un seul enregistrement sous SETTINGS_KEY). Chaque opération
logique ouvre sa propre session/transaction ; la sérialisation des écritures
est laissée au moteur de base de données.
"""
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional
from uuid import UUID

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select, or_

from mototrack.core.errors import LocalStoreError
from mototrack.core.timeutils import utcnow
from mototrack.domain.entities.ride import Ride, RideBase, RideCreate
from mototrack.domain.entities.user_settings import SETTINGS_KEY, UserSettings, UserSettingsBase

logger = logging.getLogger(__name__)


class LocalStore:
    """Accès aux rides et préférences stockées sur l'appareil."""

    def __init__(self, engine: Engine):
        self.engine = engine

    @contextmanager
    def _session(self, operation: str) -> Iterator[Session]:
        """Session d'une opération logique ; les erreurs SQLAlchemy deviennent LocalStoreError."""
        session = Session(self.engine, expire_on_commit=False)
        try:
            yield session
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Erreur base locale ({operation}): {e}")
            raise LocalStoreError(f"Erreur {operation}: {e}") from e
        finally:
            session.close()

    # ------------------------------------------------------------------
    # Rides
    # ------------------------------------------------------------------

    def create_ride(self, ride_data: RideCreate) -> Ride:
        """Enregistre une nouvelle ride, non synchronisée."""
        if not ride_data.route:
            raise ValueError("Une ride sans coordonnées ne peut pas être enregistrée")

        with self._session("saving ride") as session:
            ride = Ride(**ride_data.model_dump(), is_uploaded=False)
            session.add(ride)
            session.commit()
            session.refresh(ride)
            logger.info(f"Ride {ride.id} enregistrée localement (client_id={ride.client_id})")
            return ride

    def get_ride(self, ride_id: int) -> Optional[Ride]:
        with self._session("getting ride") as session:
            return session.get(Ride, ride_id)

    def list_rides(self) -> List[Ride]:
        """Toutes les rides, les plus récentes d'abord"""
        with self._session("getting rides") as session:
            return list(session.exec(select(Ride).order_by(Ride.start_time.desc())).all())

    def save_ride(self, ride: Ride) -> Ride:
        """Écrit l'état complet d'une ride existante (put)."""
        with self._session("updating ride") as session:
            ride.updated_at = utcnow()
            merged = session.merge(ride)
            session.commit()
            session.refresh(merged)
            return merged

    def update_ride(self, ride_id: int, changes: Dict[str, Any]) -> Optional[Ride]:
        """Applique une mise à jour partielle. Retourne None si la ride n'existe pas."""
        with self._session("updating ride") as session:
            ride = session.get(Ride, ride_id)
            if not ride:
                return None
            for key, value in changes.items():
                setattr(ride, key, value)
            ride.updated_at = utcnow()
            session.add(ride)
            session.commit()
            session.refresh(ride)
            return ride

    def delete_ride(self, ride_id: int) -> bool:
        with self._session("deleting ride") as session:
            ride = session.get(Ride, ride_id)
            if not ride:
                return False
            session.delete(ride)
            session.commit()
            logger.info(f"Ride {ride_id} supprimée localement")
            return True

    def list_not_uploaded(self, now: Optional[datetime] = None, include_review: bool = False) -> List[Ride]:
        """
        Rides pas encore acceptées par le service distant.
        Par défaut, seules les rides éligibles à un envoi (backoff écoulé,
        pas marquées pour revue manuelle) sont retournées.
        """
        with self._session("getting not uploaded rides") as session:
            query = select(Ride).where(Ride.is_uploaded == False)  # noqa: E712
            if not include_review:
                now = now or utcnow()
                query = query.where(
                    Ride.needs_review == False,  # noqa: E712
                    or_(
                        Ride.next_sync_at.is_(None),
                        Ride.next_sync_at <= now,
                    ),
                )
            return list(session.exec(query.order_by(Ride.id)).all())

    def mark_uploaded(self, ride_id: int, remote_id: Optional[int] = None) -> Optional[Ride]:
        """Passe is_uploaded à True (une seule fois) et mémorise l'id distant."""
        with self._session("marking ride as uploaded") as session:
            ride = session.get(Ride, ride_id)
            if not ride:
                return None
            if ride.is_uploaded:
                return ride
            ride.is_uploaded = True
            ride.remote_id = remote_id if remote_id is not None else ride.remote_id
            ride.next_sync_at = None
            ride.last_sync_error = None
            ride.updated_at = utcnow()
            session.add(ride)
            session.commit()
            session.refresh(ride)
            return ride

    def get_ride_by_client_id(self, client_id: UUID) -> Optional[Ride]:
        with self._session("getting ride") as session:
            return session.exec(select(Ride).where(Ride.client_id == client_id)).first()

    def cache_remote_ride(self, remote: Ride) -> Ride:
        """
        Rapproche un enregistrement distant d'une ride locale (par client_id,
        sinon par remote_id) et l'écrit en base, synchronisé. La ride locale
        garde son id ; une ride inconnue localement reçoit un nouvel id local.
        """
        values = remote.model_dump(include=set(RideBase.model_fields))
        with self._session("caching remote ride") as session:
            ride = session.exec(select(Ride).where(Ride.client_id == remote.client_id)).first()
            if ride is None and remote.remote_id is not None:
                ride = session.exec(select(Ride).where(Ride.remote_id == remote.remote_id)).first()

            if ride is None:
                ride = Ride(client_id=remote.client_id, route=remote.route or [], **values)
            else:
                for key, value in values.items():
                    setattr(ride, key, value)
                # Les listes distantes peuvent omettre la route
                if remote.route:
                    ride.route = remote.route

            if remote.remote_id is not None:
                ride.remote_id = remote.remote_id
            ride.is_uploaded = True
            ride.next_sync_at = None
            ride.last_sync_error = None
            ride.needs_review = False
            ride.updated_at = utcnow()
            session.add(ride)
            session.commit()
            session.refresh(ride)
            return ride

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def get_settings(self) -> Optional[UserSettings]:
        with self._session("getting settings") as session:
            return session.get(UserSettings, SETTINGS_KEY)

    def save_settings(self, settings: UserSettingsBase) -> UserSettings:
        """Écrit l'unique enregistrement de préférences (put)."""
        with self._session("saving settings") as session:
            record = session.get(UserSettings, SETTINGS_KEY)
            values = settings.model_dump(include=set(UserSettingsBase.model_fields))
            if record is None:
                record = UserSettings(id=SETTINGS_KEY, **values)
            else:
                for key, value in values.items():
                    setattr(record, key, value)
            session.add(record)
            session.commit()
            session.refresh(record)
            return record
