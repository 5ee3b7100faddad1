"""
Réconciliation des rides locales avec le service distant.

Machine à deux états (OFFLINE / ONLINE). Le passage OFFLINE -> ONLINE
déclenche un sweep : chaque ride locale non synchronisée est envoyée
entière, indépendamment des autres (un échec ne bloque pas la suite).

Politique de retry : chaque échec incrémente ``sync_attempts`` et repousse
le prochain essai avec un backoff exponentiel ; après ``max_attempts``
échecs la ride est marquée ``needs_review`` et sort des sweeps jusqu'à une
relance manuelle (``retry_ride``).
"""
import logging
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, List, Optional

from mototrack.core.errors import LocalStoreError, RemoteStoreError
from mototrack.core.timeutils import utcnow
from mototrack.domain.entities.ride import Ride, SyncReport
from mototrack.domain.services.local_store import LocalStore
from mototrack.domain.services.remote_store import RemoteRideStore

logger = logging.getLogger(__name__)

MAX_ERROR_LENGTH = 500


class ConnectivityState(str, Enum):
    OFFLINE = "offline"
    ONLINE = "online"


class SyncReconciler:
    """Pousse les rides non synchronisées au retour de la connectivité."""

    def __init__(
        self,
        local_store: LocalStore,
        remote_store: RemoteRideStore,
        max_attempts: int = 5,
        backoff_base_s: int = 30,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.local_store = local_store
        self.remote_store = remote_store
        self.max_attempts = max_attempts
        self.backoff_base_s = backoff_base_s
        self.clock = clock
        self.state = ConnectivityState.OFFLINE

    @property
    def is_online(self) -> bool:
        return self.state == ConnectivityState.ONLINE

    def set_online(self, online: bool) -> Optional[SyncReport]:
        """Enregistre l'état de connectivité ; OFFLINE -> ONLINE lance un sweep."""
        previous = self.state
        self.state = ConnectivityState.ONLINE if online else ConnectivityState.OFFLINE

        if previous == self.state:
            return None

        logger.info(f"Connectivité: {previous.value} -> {self.state.value}")
        if self.state == ConnectivityState.ONLINE:
            return self.sweep()
        return None

    # ------------------------------------------------------------------
    # Sweep
    # ------------------------------------------------------------------

    def sweep(self) -> SyncReport:
        """Envoie toutes les rides éligibles, chacune avec son propre résultat."""
        report = SyncReport()
        try:
            unsynced = self.local_store.list_not_uploaded(include_review=True)
            pending = self.local_store.list_not_uploaded(now=self.clock())
        except LocalStoreError as e:
            logger.warning(f"Base locale indisponible pour la synchronisation: {e}")
            return report

        report.total = len(unsynced)
        report.skipped = len(unsynced) - len(pending)
        if not pending:
            return report

        logger.info(f"Sweep: {len(pending)} ride(s) à synchroniser ({report.skipped} en attente/revue)")
        for ride in pending:
            if self.push(ride):
                report.uploaded += 1
            elif ride.needs_review:
                report.gave_up += 1
            else:
                report.failed += 1

        logger.info(
            f"Sweep terminé: {report.uploaded} envoyée(s), {report.failed} en échec, "
            f"{report.gave_up} abandonnée(s)"
        )
        return report

    def push(self, ride: Ride, record_failure: bool = True) -> bool:
        """
        Envoie une ride entière au service distant.
        En cas de succès la ride est marquée synchronisée ; en cas d'échec elle
        reste en attente (et le backoff est mis à jour si ``record_failure``).
        """
        try:
            remote_ride = self.remote_store.create_ride(ride)
        except RemoteStoreError as e:
            logger.warning(f"Échec de synchronisation de la ride {ride.id}: {e}")
            if record_failure:
                self._record_failure(ride, str(e))
            return False

        try:
            self.local_store.mark_uploaded(ride.id, remote_id=remote_ride.remote_id)
        except LocalStoreError as e:
            # Acceptée à distance mais non marquée : sera renvoyée (même client_id)
            logger.error(f"Ride {ride.id} envoyée mais non marquée localement: {e}")
            return False

        ride.is_uploaded = True
        ride.remote_id = remote_ride.remote_id
        logger.info(f"Ride {ride.id} synchronisée (remote_id={remote_ride.remote_id})")
        return True

    def _record_failure(self, ride: Ride, error: str) -> None:
        ride.sync_attempts += 1
        ride.last_sync_error = error[:MAX_ERROR_LENGTH]

        if ride.sync_attempts < self.max_attempts:
            # Backoff exponentiel : base, 2*base, 4*base...
            delay_seconds = self.backoff_base_s * (2 ** (ride.sync_attempts - 1))
            ride.next_sync_at = self.clock() + timedelta(seconds=delay_seconds)
            logger.info(
                f"Ride {ride.id} en échec (tentative {ride.sync_attempts}/{self.max_attempts}), "
                f"retry dans {delay_seconds}s"
            )
        else:
            ride.needs_review = True
            ride.next_sync_at = None
            logger.warning(
                f"Ride {ride.id} abandonnée après {ride.sync_attempts} tentatives, "
                f"revue manuelle requise: {error}"
            )

        try:
            self.local_store.save_ride(ride)
        except LocalStoreError as e:
            logger.error(f"Impossible d'enregistrer l'échec de synchronisation de la ride {ride.id}: {e}")

    # ------------------------------------------------------------------
    # Revue manuelle
    # ------------------------------------------------------------------

    def rides_needing_review(self) -> List[Ride]:
        return [ride for ride in self.local_store.list_not_uploaded(include_review=True) if ride.needs_review]

    def retry_ride(self, ride_id: int) -> Optional[Ride]:
        """Remet une ride abandonnée dans le circuit de synchronisation."""
        ride = self.local_store.update_ride(ride_id, {
            "needs_review": False,
            "sync_attempts": 0,
            "next_sync_at": None,
        })
        if ride is None:
            return None
        logger.info(f"Ride {ride_id} remise en file de synchronisation")
        if self.is_online and not ride.is_uploaded:
            self.push(ride)
        return ride
