"""
Configuration centralisée pour MotoTrack
Utilise pydantic-settings pour la gestion des variables d'environnement
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, model_validator


class Settings(BaseSettings):
    """Configuration de l'application"""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Base locale (cache hors-ligne + tampon d'écriture)
    DATABASE_URL: str = Field(
        default="sqlite:///mototrack.db",
        description="URL de la base locale (SQLite par défaut)"
    )

    # Remote store
    REMOTE_API_URL: str = Field(
        default="http://localhost:5000",
        description="URL de base du service REST des rides"
    )
    REMOTE_TIMEOUT_S: float = Field(default=10.0, gt=0)

    # Synchronisation
    SYNC_MAX_ATTEMPTS: int = Field(
        default=5,
        ge=1,
        description="Nombre d'échecs avant de marquer une ride pour revue manuelle"
    )
    SYNC_BACKOFF_BASE_S: int = Field(
        default=30,
        ge=0,
        description="Délai de base du backoff exponentiel entre deux tentatives"
    )
    CONNECTIVITY_PROBE_INTERVAL_S: float = Field(default=15.0, gt=0)

    # GPS
    GPS_MIN_DISTANCE_M: float = Field(
        default=2.0,
        ge=0,
        description="Distance minimale entre deux fixes acceptés (suppression stationnaire)"
    )
    GPS_ACCURACY_THRESHOLD_M: float = Field(
        default=30.0,
        gt=0,
        description="Rayon de précision au-delà duquel un fix est rejeté"
    )

    # Monitoring (Sentry)
    SENTRY_DSN: str = Field(
        default="",
        description="DSN Sentry pour le error tracking (vide = Sentry desactive)"
    )

    # Application
    DEBUG: bool = Field(default=False)
    ENVIRONMENT: str = Field(default="development")
    LOG_LEVEL: str = Field(
        default="",
        description="Niveau de logging (auto-configuré selon ENVIRONMENT si vide)"
    )

    @model_validator(mode="after")
    def _configure_environment(self) -> "Settings":
        """Configure DEBUG et LOG_LEVEL selon ENVIRONMENT."""
        is_prod = self.ENVIRONMENT == "production"
        # En production, forcer DEBUG=False
        if is_prod:
            self.DEBUG = False
        if not self.LOG_LEVEL:
            self.LOG_LEVEL = "WARNING" if is_prod else "INFO"
        self.LOG_LEVEL = self.LOG_LEVEL.upper()
        self.REMOTE_API_URL = self.REMOTE_API_URL.rstrip("/")
        return self


def get_settings() -> Settings:
    """Récupère la configuration"""
    return Settings()
