"""
Enregistreur de ride : contrôles de session (start / pause / resume / stop)
et flux de statistiques live pour l'écran d'enregistrement.

Une seule session active à la fois. L'arrêt construit la Ride à partir de la
route accumulée et l'enregistre via le RideService ; une session sans aucun
fix accepté n'enregistre rien.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from mototrack.adapters.location_providers import LocationProvider
from mototrack.adapters.wake_lock import WakeLock
from mototrack.core.errors import (
    LocalStoreError,
    MotoTrackError,
    NoActiveSessionError,
    SessionAlreadyActiveError,
)
from mototrack.core.timeutils import utcnow
from mototrack.domain.entities.coordinate import SignalQuality
from mototrack.domain.entities.ride import Ride, RideCreate
from mototrack.domain.services.geolocation_sampler import GeolocationSampler, SamplerConfig, SamplerState
from mototrack.domain.services.ride_service import RideService

logger = logging.getLogger(__name__)

DEFAULT_START_LOCATION = "Starting point"
DEFAULT_END_LOCATION = "Ending point"


def default_ride_title(start_time: datetime) -> str:
    return f"Ride on {start_time.strftime('%Y-%m-%d')}"


@dataclass
class LiveStats:
    """Valeurs affichées pendant l'enregistrement"""
    duration: int = 0  # secondes (compteur d'affichage)
    distance: float = 0.0  # mètres
    current_speed: float = 0.0  # m/s
    avg_speed: float = 0.0  # m/s
    max_speed: float = 0.0  # m/s
    gps_signal_quality: SignalQuality = SignalQuality.NONE


@dataclass
class StopResult:
    ride: Optional[Ride] = None
    nothing_recorded: bool = False


class RideRecorder:
    """Pilote une session d'enregistrement au-dessus du GeolocationSampler."""

    def __init__(
        self,
        ride_service: RideService,
        provider: LocationProvider,
        wake_lock: Optional[WakeLock] = None,
        config: Optional[SamplerConfig] = None,
        on_live_update: Optional[Callable[[LiveStats], None]] = None,
        on_error: Optional[Callable[[MotoTrackError], None]] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.ride_service = ride_service
        self.provider = provider
        self.wake_lock = wake_lock
        self.config = config
        self.on_live_update = on_live_update
        self.on_error = on_error
        self.clock = clock
        self.sampler: Optional[GeolocationSampler] = None
        self.started_at: Optional[datetime] = None
        self.pending_ride: Optional[RideCreate] = None

    @property
    def is_active(self) -> bool:
        return self.sampler is not None and self.sampler.is_tracking

    def start(self, config: Optional[SamplerConfig] = None) -> None:
        """Démarre une session. Lève SessionAlreadyActiveError si une session est en cours."""
        if self.is_active:
            raise SessionAlreadyActiveError("Un enregistrement est déjà en cours")
        if self.pending_ride is not None:
            raise SessionAlreadyActiveError("La ride précédente n'a pas encore été enregistrée")

        sampler = GeolocationSampler(
            self.provider,
            config=config or self.config,
            wake_lock=self.wake_lock,
            on_update=lambda _fix: self._publish(),
            on_error=self.on_error,
            on_signal_change=lambda _quality: self._publish(),
        )
        # PermissionDeniedError remonte telle quelle, aucune session n'est créée
        sampler.start()
        self.sampler = sampler
        self.started_at = self.clock()
        logger.info("Enregistrement démarré")

    def pause(self) -> None:
        self._require_session().pause()

    def resume(self) -> None:
        self._require_session().resume()

    def tick(self) -> LiveStats:
        """Seconde écoulée du timer UI (uniquement hors pause)."""
        sampler = self._require_session()
        if sampler.state == SamplerState.TRACKING:
            sampler.accumulator.tick()
        return self._publish()

    def snapshot(self) -> LiveStats:
        if self.sampler is None:
            return LiveStats()
        accumulator = self.sampler.accumulator
        return LiveStats(
            duration=accumulator.display_duration,
            distance=accumulator.distance,
            current_speed=accumulator.current_speed,
            avg_speed=accumulator.avg_speed,
            max_speed=accumulator.max_speed,
            gps_signal_quality=self.sampler.signal_quality,
        )

    def stop(self) -> StopResult:
        """
        Arrête la session et enregistre la ride (sauf si aucun fix n'a été accepté).

        Si l'écriture échoue, l'erreur remonte et la ride construite reste en
        attente dans ``pending_ride`` : un nouvel appel à stop() la réenregistre,
        discard() l'abandonne.
        """
        sampler = self._require_session()
        if self.pending_ride is None:
            coordinates = sampler.stop()
            if not coordinates:
                self._clear()
                logger.info("Enregistrement arrêté sans aucun point, rien n'est enregistré")
                return StopResult(ride=None, nothing_recorded=True)
            self.pending_ride = self._build_ride(sampler)

        try:
            ride = self.ride_service.save_ride(self.pending_ride)
        except LocalStoreError as e:
            logger.error(
                f"Ride de {len(self.pending_ride.route)} points non enregistrée, "
                f"conservée pour une nouvelle tentative: {e}"
            )
            raise

        self._clear()
        logger.info(
            f"Ride {ride.id} enregistrée: {len(ride.route)} points, "
            f"{ride.distance:.0f}m en {ride.duration}s"
        )
        return StopResult(ride=ride, nothing_recorded=False)

    def discard(self) -> None:
        """Abandonne la session en cours ou la ride en attente d'enregistrement."""
        sampler = self._require_session()
        if self.pending_ride is None:
            sampler.stop()
        logger.warning("Enregistrement abandonné")
        self._clear()

    def _build_ride(self, sampler: GeolocationSampler) -> RideCreate:
        accumulator = sampler.accumulator
        accumulator.reconcile_display_duration()
        started_at = self.started_at or self.clock()
        return RideCreate(
            title=default_ride_title(started_at),
            distance=accumulator.distance,
            duration=accumulator.duration,
            start_time=started_at,
            end_time=self.clock(),
            max_speed=accumulator.max_speed,
            avg_speed=accumulator.avg_speed,
            elevation_gain=accumulator.elevation_gain,
            start_location=DEFAULT_START_LOCATION,
            end_location=DEFAULT_END_LOCATION,
            route=[coordinate.to_dict() for coordinate in accumulator.coordinates],
        )

    def _clear(self) -> None:
        self.sampler = None
        self.started_at = None
        self.pending_ride = None

    def _require_session(self) -> GeolocationSampler:
        if self.sampler is None:
            raise NoActiveSessionError("Aucun enregistrement en cours")
        return self.sampler

    def _publish(self) -> LiveStats:
        stats = self.snapshot()
        if self.on_live_update:
            self.on_live_update(stats)
        return stats
