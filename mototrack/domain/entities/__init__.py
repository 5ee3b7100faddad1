"""
Initialisation des entités du domaine
"""

from .coordinate import Coordinate, PositionError, PositionErrorCode, SignalQuality
from .ride import Ride, RideCreate, RideUpdate, SyncReport
from .user_settings import (
    UserSettings, UserSettingsBase,
    Units, GpsAccuracy, MapStyle, SETTINGS_KEY,
)

__all__ = [
    "Coordinate", "PositionError", "PositionErrorCode", "SignalQuality",
    "Ride", "RideCreate", "RideUpdate", "SyncReport",
    "UserSettings", "UserSettingsBase",
    "Units", "GpsAccuracy", "MapStyle", "SETTINGS_KEY",
]
