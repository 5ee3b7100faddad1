"""
Entité UserSettings - Domain Layer
Préférences de l'utilisateur, un seul enregistrement sous une clé fixe
"""
from sqlmodel import SQLModel, Field
from enum import Enum


SETTINGS_KEY = "app-settings"


class Units(str, Enum):
    """Système d'unités d'affichage"""
    IMPERIAL = "imperial"
    METRIC = "metric"


class GpsAccuracy(str, Enum):
    """Préréglage de précision GPS (fréquence d'échantillonnage)"""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class MapStyle(str, Enum):
    """Style de carte"""
    STANDARD = "standard"
    SATELLITE = "satellite"
    HYBRID = "hybrid"


class UserSettingsBase(SQLModel):
    """Modèle de base, valeurs par défaut appliquées au premier chargement"""
    units: Units = Units.IMPERIAL
    background_tracking: bool = True
    gps_accuracy: GpsAccuracy = GpsAccuracy.HIGH
    map_style: MapStyle = MapStyle.STANDARD


class UserSettings(UserSettingsBase, table=True):
    """Table settings : un seul enregistrement, clé SETTINGS_KEY"""
    __tablename__ = "settings"

    id: str = Field(default=SETTINGS_KEY, primary_key=True)
