"""
Formatage des métriques pour l'affichage (métrique / impérial)
Les valeurs internes sont toujours en mètres, secondes et m/s.
"""
from datetime import datetime

from mototrack.domain.entities.user_settings import Units

MPS_TO_KMH = 3.6
MPS_TO_MPH = 2.237
METERS_PER_MILE = 1609.34
METERS_TO_FEET = 3.28084


def format_duration(seconds: int) -> str:
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def format_speed(speed_mps: float, units: Units) -> str:
    if units == Units.METRIC:
        return f"{speed_mps * MPS_TO_KMH:.0f} km/h"
    return f"{speed_mps * MPS_TO_MPH:.0f} mph"


def format_distance(distance_m: float, units: Units) -> str:
    if units == Units.METRIC:
        # Moins d'un kilomètre : en mètres
        if distance_m < 1000:
            return f"{distance_m:.0f} m"
        return f"{distance_m / 1000:.1f} km"
    return f"{distance_m / METERS_PER_MILE:.1f} mi"


def format_elevation(elevation_m: float, units: Units) -> str:
    if units == Units.METRIC:
        return f"{elevation_m:.0f} m"
    return f"{elevation_m * METERS_TO_FEET:.0f} ft"


def format_date(value: datetime) -> str:
    """Ex : 'Mar 5, 2025'"""
    return f"{value.strftime('%b')} {value.day}, {value.year}"
