"""
Entité Ride - Domain Layer
Une ride enregistrée : métriques calculées + route complète + état de synchronisation
"""
from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field, JSON, Column
from typing import Optional, List, Dict, Any
from datetime import datetime
from uuid import UUID, uuid4

from mototrack.core.timeutils import utcnow
from mototrack.domain.entities.coordinate import Coordinate


class RideBase(SQLModel):
    """Modèle de base pour Ride"""
    title: str
    description: Optional[str] = None
    user_id: Optional[int] = None
    distance: float  # en mètres
    duration: int  # en secondes
    # Heures UTC naïves ; le type de colonne est fixé pour que sqlmodel
    # n'exige pas de fuseau horaire
    start_time: datetime = Field(sa_type=DateTime)
    end_time: datetime = Field(sa_type=DateTime)
    max_speed: float = 0.0  # m/s
    avg_speed: float = 0.0  # m/s, distance / max(duration, 1)
    elevation_gain: Optional[float] = None  # en mètres
    start_location: Optional[str] = None
    end_location: Optional[str] = None


class Ride(RideBase, table=True):
    """Entité Ride complète pour la base locale"""
    id: Optional[int] = Field(default=None, primary_key=True)

    # Identifiant généré sur l'appareil, transmis au service distant
    client_id: UUID = Field(default_factory=uuid4, unique=True, index=True)
    # Identifiant attribué par le service distant après création
    remote_id: Optional[int] = Field(default=None, index=True)

    route: List[Dict[str, Any]] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
        description="Coordonnées sérialisées (clés camelCase)"
    )

    # Synchronisation
    is_uploaded: bool = Field(default=False, index=True)
    sync_attempts: int = Field(default=0)
    last_sync_error: Optional[str] = None
    next_sync_at: Optional[datetime] = Field(default=None, sa_type=DateTime)
    needs_review: bool = Field(default=False, index=True)

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)

    def coordinates(self) -> List[Coordinate]:
        """Route désérialisée en Coordinates"""
        return [Coordinate.from_dict(point) for point in self.route or []]


class RideCreate(RideBase):
    """Schéma pour créer une ride (fin de session d'enregistrement)"""
    client_id: UUID = Field(default_factory=uuid4)
    route: List[Dict[str, Any]]


class RideUpdate(SQLModel):
    """Schéma pour mettre à jour une ride (champs éditables par l'utilisateur)"""
    title: Optional[str] = None
    description: Optional[str] = None
    start_location: Optional[str] = None
    end_location: Optional[str] = None


class SyncReport(SQLModel):
    """Résultat d'un sweep de synchronisation"""
    total: int = 0
    uploaded: int = 0
    failed: int = 0
    gave_up: int = 0
    skipped: int = 0
