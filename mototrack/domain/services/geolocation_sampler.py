"""
Échantillonneur de géolocalisation.

Enveloppe un LocationProvider (mises à jour continues) et un WakeLock, filtre
et limite les fixes bruts, puis alimente le RouteAccumulator.

Politique de filtrage, appliquée dans l'ordre à chaque fix brut :
  1. throttle  : rejet si moins de ``min_interval_ms`` depuis le dernier fix accepté ;
  2. bruit     : rejet si le rayon de précision dépasse ``accuracy_threshold_m`` ;
  3. immobile  : rejet si la distance au dernier fix accepté est < ``min_distance_m``.

La vitesse moyenne n'est jamais calculée ici à partir des vitesses instantanées :
la seule moyenne de l'application est distance / max(durée, 1) (RouteAccumulator).
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional

from mototrack.adapters.location_providers import LocationProvider
from mototrack.adapters.wake_lock import NullWakeLock, WakeLock
from mototrack.core.errors import (
    MotoTrackError,
    PermissionDeniedError,
    SessionAlreadyActiveError,
    SignalLostError,
)
from mototrack.core.settings import Settings
from mototrack.domain.entities.coordinate import (
    Coordinate,
    PositionError,
    PositionErrorCode,
    SignalQuality,
)
from mototrack.domain.entities.user_settings import GpsAccuracy, UserSettingsBase
from mototrack.domain.services.geo import distance_between
from mototrack.domain.services.route_accumulator import RouteAccumulator

logger = logging.getLogger(__name__)

# Intervalle minimal entre deux fixes selon le préréglage de précision (ms)
GPS_ACCURACY_INTERVALS_MS = {
    GpsAccuracy.HIGH: 1000,
    GpsAccuracy.MEDIUM: 2000,
    GpsAccuracy.LOW: 5000,
}

# Seuils de qualité du signal (rayon de précision en mètres)
STRONG_SIGNAL_MAX_ACCURACY_M = 10
WEAK_SIGNAL_MAX_ACCURACY_M = 30


def signal_quality(accuracy: Optional[float]) -> SignalQuality:
    """Qualité du signal affichée à partir du rayon de précision d'un fix"""
    if accuracy is None:
        return SignalQuality.NONE
    if accuracy <= STRONG_SIGNAL_MAX_ACCURACY_M:
        return SignalQuality.STRONG
    if accuracy <= WEAK_SIGNAL_MAX_ACCURACY_M:
        return SignalQuality.WEAK
    return SignalQuality.NONE


@dataclass
class SamplerConfig:
    """Options reconnues par l'échantillonneur"""
    high_accuracy: bool = True
    min_distance_m: float = 0.0
    min_interval_ms: int = 0
    accuracy_threshold_m: Optional[float] = None

    @classmethod
    def from_settings(cls, user_settings: UserSettingsBase, settings: Settings) -> "SamplerConfig":
        """Préréglage dérivé des préférences utilisateur et de la configuration."""
        return cls(
            high_accuracy=user_settings.gps_accuracy == GpsAccuracy.HIGH,
            min_distance_m=settings.GPS_MIN_DISTANCE_M,
            min_interval_ms=GPS_ACCURACY_INTERVALS_MS[user_settings.gps_accuracy],
            accuracy_threshold_m=settings.GPS_ACCURACY_THRESHOLD_M,
        )


class SamplerState(str, Enum):
    IDLE = "idle"
    TRACKING = "tracking"
    PAUSED = "paused"
    STOPPED = "stopped"


class GeolocationSampler:
    """Échantillonnage continu : start / pause / resume / stop."""

    def __init__(
        self,
        provider: LocationProvider,
        config: Optional[SamplerConfig] = None,
        wake_lock: Optional[WakeLock] = None,
        on_update: Optional[Callable[[Coordinate], None]] = None,
        on_error: Optional[Callable[[MotoTrackError], None]] = None,
        on_signal_change: Optional[Callable[[SignalQuality], None]] = None,
    ):
        self.provider = provider
        self.config = config or SamplerConfig()
        self.wake_lock = wake_lock or NullWakeLock()
        self.on_update = on_update
        self.on_error = on_error
        self.on_signal_change = on_signal_change
        self.accumulator = RouteAccumulator()
        self.state = SamplerState.IDLE
        self.signal_quality = SignalQuality.NONE
        self.rejected: Dict[str, int] = {"throttle": 0, "accuracy": 0, "stationary": 0}
        self._watch_id: Optional[int] = None

    @property
    def is_tracking(self) -> bool:
        return self.state in (SamplerState.TRACKING, SamplerState.PAUSED)

    # ------------------------------------------------------------------
    # Contrôles de session
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Démarre la livraison continue des positions."""
        if self.is_tracking:
            raise SessionAlreadyActiveError("Une session d'échantillonnage est déjà active")

        if self.state == SamplerState.STOPPED:
            self.accumulator = RouteAccumulator()
            self.rejected = {key: 0 for key in self.rejected}

        self.wake_lock.acquire()
        try:
            self._attach()
        except PermissionDeniedError:
            self.wake_lock.release()
            self._set_signal(SignalQuality.NONE)
            logger.warning("Permission de localisation refusée, session non démarrée")
            raise

        self.state = SamplerState.TRACKING
        logger.info(
            f"Échantillonnage démarré (high_accuracy={self.config.high_accuracy}, "
            f"min_interval={self.config.min_interval_ms}ms, min_distance={self.config.min_distance_m}m)"
        )

    def pause(self) -> None:
        """Détache la livraison sans perdre la route accumulée (idempotent)."""
        if self.state != SamplerState.TRACKING:
            return
        self._detach()
        self.state = SamplerState.PAUSED
        logger.info("Échantillonnage en pause")

    def resume(self) -> None:
        """Ré-attache la livraison après une pause (idempotent)."""
        if self.state != SamplerState.PAUSED:
            return
        self._attach()
        self.state = SamplerState.TRACKING
        logger.info("Échantillonnage repris")

    def stop(self) -> List[Coordinate]:
        """Arrête la livraison, libère le wakelock et retourne la route accumulée."""
        was_tracking = self.is_tracking
        self._detach()
        # Libération inconditionnelle, même sans aucun fix enregistré
        self.wake_lock.release()
        if was_tracking:
            self.state = SamplerState.STOPPED
            logger.info(
                f"Échantillonnage arrêté: {len(self.accumulator)} fixes acceptés, "
                f"rejets={self.rejected}"
            )
        return self.accumulator.coordinates

    def _attach(self) -> None:
        self._watch_id = self.provider.watch_position(
            self.handle_fix, self.handle_error, high_accuracy=self.config.high_accuracy
        )

    def _detach(self) -> None:
        if self._watch_id is not None:
            self.provider.clear_watch(self._watch_id)
            self._watch_id = None

    # ------------------------------------------------------------------
    # Callbacks du provider
    # ------------------------------------------------------------------

    def handle_fix(self, fix: Coordinate) -> bool:
        """Filtre un fix brut. Retourne True s'il a été ajouté à la route."""
        if self.state != SamplerState.TRACKING:
            return False

        if fix.accuracy is not None:
            self._set_signal(signal_quality(fix.accuracy))

        last = self.accumulator.last
        config = self.config

        if last is not None and fix.timestamp - last.timestamp < config.min_interval_ms:
            self.rejected["throttle"] += 1
            return False

        if (
            config.accuracy_threshold_m is not None
            and fix.accuracy is not None
            and fix.accuracy > config.accuracy_threshold_m
        ):
            self.rejected["accuracy"] += 1
            return False

        if last is not None and distance_between(last, fix) < config.min_distance_m:
            self.rejected["stationary"] += 1
            return False

        self.accumulator.append(fix)
        if self.on_update:
            self.on_update(fix)
        return True

    def handle_error(self, error: PositionError) -> None:
        """Remonte l'erreur sans arrêter la session : l'appelant décide."""
        if error.code == PositionErrorCode.PERMISSION_DENIED:
            exc: MotoTrackError = PermissionDeniedError(error.message or "Permission de localisation révoquée")
            self._set_signal(SignalQuality.NONE)
        else:
            exc = SignalLostError(error.message or f"Signal GPS perdu ({error.code.name})")
            self._set_signal(SignalQuality.WEAK)

        logger.warning(f"Erreur GPS: {exc}")
        if self.on_error:
            self.on_error(exc)

    def _set_signal(self, quality: SignalQuality) -> None:
        if quality == self.signal_quality:
            return
        self.signal_quality = quality
        if self.on_signal_change:
            self.on_signal_change(quality)
