"""
Accumulateur de route : séquence ordonnée de Coordinates et totaux courants.
Chaque ajout met à jour distance, vitesses et D+ en O(1), sans re-parcourir la route.
"""
import logging
from typing import List, Optional

from mototrack.domain.entities.coordinate import Coordinate
from mototrack.domain.services.geo import distance_between

logger = logging.getLogger(__name__)

# Écart toléré (secondes) entre le compteur d'affichage et la durée réelle
DISPLAY_DRIFT_TOLERANCE_S = 1


class RouteAccumulator:
    """Route en ajout seul avec distance, durée, vitesses et dénivelé incrémentaux."""

    def __init__(self):
        self._coordinates: List[Coordinate] = []
        self.distance = 0.0  # mètres
        self.max_speed = 0.0  # m/s
        self.current_speed = 0.0  # m/s
        self._elevation_gain = 0.0
        self._known_altitudes = 0
        self._last_altitude: Optional[float] = None
        self.display_duration = 0  # compteur d'affichage, en secondes

    def __len__(self) -> int:
        return len(self._coordinates)

    @property
    def coordinates(self) -> List[Coordinate]:
        """Copie de la route accumulée"""
        return list(self._coordinates)

    @property
    def last(self) -> Optional[Coordinate]:
        return self._coordinates[-1] if self._coordinates else None

    def append(self, coordinate: Coordinate) -> float:
        """Ajoute une coordonnée et retourne la distance du segment ajouté."""
        segment = 0.0
        if self._coordinates:
            segment = distance_between(self._coordinates[-1], coordinate)
            self.distance += segment
        self._coordinates.append(coordinate)

        # Vitesse courante : on garde la dernière valeur connue si le fix n'en a pas
        if coordinate.speed is not None:
            self.current_speed = coordinate.speed
            if coordinate.speed > self.max_speed:
                self.max_speed = coordinate.speed

        if coordinate.altitude is not None:
            self._known_altitudes += 1
            if self._last_altitude is not None and coordinate.altitude > self._last_altitude:
                self._elevation_gain += coordinate.altitude - self._last_altitude
            self._last_altitude = coordinate.altitude

        return segment

    @property
    def duration(self) -> int:
        """Secondes entre le premier et le dernier fix, tronquées vers zéro"""
        if len(self._coordinates) < 2:
            return 0
        elapsed_ms = self._coordinates[-1].timestamp - self._coordinates[0].timestamp
        return int(elapsed_ms / 1000)

    @property
    def avg_speed(self) -> float:
        """Vitesse moyenne unique de l'application : distance / max(durée, 1)"""
        return self.distance / max(self.duration, 1)

    @property
    def elevation_gain(self) -> Optional[float]:
        return self._elevation_gain if self._known_altitudes >= 2 else None

    # ------------------------------------------------------------------
    # Compteur d'affichage (timer UI à la seconde)
    # ------------------------------------------------------------------

    def tick(self) -> int:
        """Avance le compteur d'affichage d'une seconde."""
        self.display_duration += 1
        return self.display_duration

    def reconcile_display_duration(self) -> int:
        """Aligne le compteur d'affichage sur la durée des timestamps. Retourne l'écart corrigé."""
        drift = self.display_duration - self.duration
        if abs(drift) > DISPLAY_DRIFT_TOLERANCE_S:
            logger.info(
                f"Compteur d'affichage décalé de {drift}s par rapport aux fixes, "
                f"réaligné sur {self.duration}s"
            )
        self.display_duration = self.duration
        return drift
