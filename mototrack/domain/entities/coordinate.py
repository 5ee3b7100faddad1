"""
Entité Coordinate - Domain Layer
Un fix GPS accepté (passé par tous les filtres) et devenu partie d'une route
"""
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Dict, Optional


# Correspondance champ Python -> clé JSON (format du service distant)
_JSON_KEYS = {
    "latitude": "latitude",
    "longitude": "longitude",
    "timestamp": "timestamp",
    "altitude": "altitude",
    "speed": "speed",
    "heading": "heading",
    "accuracy": "accuracy",
    "altitude_accuracy": "altitudeAccuracy",
}


@dataclass(frozen=True)
class Coordinate:
    """Point de route immuable. timestamp en ms epoch, speed en m/s, accuracy en mètres."""
    latitude: float
    longitude: float
    timestamp: int
    altitude: Optional[float] = None
    speed: Optional[float] = None
    heading: Optional[float] = None
    accuracy: Optional[float] = None
    altitude_accuracy: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        """Sérialise en dict JSON (clés camelCase, valeurs None omises)."""
        data = {}
        for attr, key in _JSON_KEYS.items():
            value = getattr(self, attr)
            if value is not None:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Coordinate":
        """Construit une Coordinate depuis un dict JSON (camelCase ou snake_case)."""
        values = {}
        for attr, key in _JSON_KEYS.items():
            if key in data:
                values[attr] = data[key]
            elif attr in data:
                values[attr] = data[attr]
        return cls(
            latitude=float(values["latitude"]),
            longitude=float(values["longitude"]),
            timestamp=int(values["timestamp"]),
            altitude=values.get("altitude"),
            speed=values.get("speed"),
            heading=values.get("heading"),
            accuracy=values.get("accuracy"),
            altitude_accuracy=values.get("altitude_accuracy"),
        )


class PositionErrorCode(IntEnum):
    """Codes d'erreur de la plateforme de géolocalisation"""
    PERMISSION_DENIED = 1
    POSITION_UNAVAILABLE = 2
    TIMEOUT = 3


@dataclass(frozen=True)
class PositionError:
    """Erreur remontée par le LocationProvider pendant une session"""
    code: PositionErrorCode
    message: str = ""


class SignalQuality(str, Enum):
    """Qualité du signal GPS affichée à l'utilisateur"""
    STRONG = "strong"
    WEAK = "weak"
    NONE = "none"
