"""
Calculs géographiques : distance haversine
"""
import math

from mototrack.domain.entities.coordinate import Coordinate

EARTH_RADIUS_M = 6371000  # Rayon de la Terre en mètres, pas de correction ellipsoïdale


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calcule la distance entre deux points en mètres (formule de Haversine)
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = (math.sin(delta_lat / 2) ** 2 +
         math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lon / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_M * c


def distance_between(a: Coordinate, b: Coordinate) -> float:
    """Distance haversine entre deux coordonnées, en mètres"""
    return haversine_distance(a.latitude, a.longitude, b.latitude, b.longitude)
