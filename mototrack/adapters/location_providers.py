"""
Fournisseurs de localisation continue.

Un LocationProvider livre les fixes bruts par callback (jamais bloquant pour
l'appelant) tant qu'une "watch" est active, à la manière de l'API de
géolocalisation du navigateur :

- ``watch_position(on_fix, on_error, high_accuracy)`` retourne un identifiant
  de watch, ou lève ``PermissionDeniedError`` si la plateforme refuse l'accès ;
- ``clear_watch(watch_id)`` détache la livraison.
"""
import logging
from pathlib import Path
from typing import Callable, Dict, List, Optional, Protocol, Tuple, Union

import gpxpy
import gpxpy.gpx

from mototrack.core.errors import PermissionDeniedError
from mototrack.core.timeutils import datetime_to_ms
from mototrack.domain.entities.coordinate import Coordinate, PositionError

logger = logging.getLogger(__name__)

FixCallback = Callable[[Coordinate], None]
ErrorCallback = Callable[[PositionError], None]


class LocationProvider(Protocol):
    def watch_position(
        self, on_fix: FixCallback, on_error: ErrorCallback, high_accuracy: bool = True
    ) -> int: ...

    def clear_watch(self, watch_id: int) -> None: ...


class ManualLocationProvider:
    """Provider alimenté par l'appelant (pont UI, tests)."""

    def __init__(self, permission_granted: bool = True):
        self.permission_granted = permission_granted
        self._watches: Dict[int, Tuple[FixCallback, ErrorCallback]] = {}
        self._next_watch_id = 0
        self.high_accuracy: Optional[bool] = None

    @property
    def active_watches(self) -> int:
        return len(self._watches)

    def watch_position(
        self, on_fix: FixCallback, on_error: ErrorCallback, high_accuracy: bool = True
    ) -> int:
        if not self.permission_granted:
            raise PermissionDeniedError("Accès à la localisation refusé")
        self._next_watch_id += 1
        self._watches[self._next_watch_id] = (on_fix, on_error)
        self.high_accuracy = high_accuracy
        return self._next_watch_id

    def clear_watch(self, watch_id: int) -> None:
        self._watches.pop(watch_id, None)

    def push_fix(self, fix: Coordinate) -> None:
        """Livre un fix brut à toutes les watches actives."""
        for on_fix, _ in list(self._watches.values()):
            on_fix(fix)

    def push_error(self, error: PositionError) -> None:
        for _, on_error in list(self._watches.values()):
            on_error(error)


def _extension_speed(point: gpxpy.gpx.GPXTrackPoint) -> Optional[float]:
    """Vitesse stockée en extension <speed> (format d'export MotoTrack)"""
    for element in point.extensions or []:
        tag = element.tag.rsplit("}", 1)[-1]
        if tag == "speed" and element.text:
            try:
                return float(element.text)
            except ValueError:
                return None
    return None


def load_gpx_fixes(gpx_content: str) -> List[Coordinate]:
    """
    Parse un GPX et retourne les points de trace sous forme de fixes bruts.
    Les points sans horodatage sont ignorés (un fix a toujours un timestamp).
    """
    try:
        gpx = gpxpy.parse(gpx_content)
    except gpxpy.gpx.GPXException as e:
        raise ValueError(f"Erreur parsing GPX: {str(e)}")

    fixes: List[Coordinate] = []
    for track in gpx.tracks:
        for segment in track.segments:
            previous = None
            for point in segment.points:
                if point.time is None:
                    continue
                speed = point.speed
                if speed is None:
                    speed = _extension_speed(point)
                if speed is None and previous is not None:
                    speed = point.speed_between(previous)
                fixes.append(Coordinate(
                    latitude=point.latitude,
                    longitude=point.longitude,
                    timestamp=datetime_to_ms(point.time),
                    altitude=point.elevation,
                    speed=speed,
                ))
                previous = point
    return fixes


class GpxReplayLocationProvider(ManualLocationProvider):
    """Rejoue une trace GPX comme une suite de fixes (simulation, CLI)."""

    def __init__(self, gpx_content: str):
        super().__init__(permission_granted=True)
        self.fixes = load_gpx_fixes(gpx_content)
        logger.info(f"{len(self.fixes)} fixes chargés depuis la trace GPX")

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "GpxReplayLocationProvider":
        return cls(Path(path).read_text(encoding="utf-8"))

    def replay(self) -> int:
        """Livre tous les fixes aux watches actives. Retourne le nombre de fixes livrés."""
        for fix in self.fixes:
            self.push_fix(fix)
        return len(self.fixes)
