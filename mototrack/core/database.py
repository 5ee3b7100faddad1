"""
Configuration de la base de données locale avec SQLModel
L'engine est construit explicitement et porté par l'AppContext (pas d'engine global).
"""
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import create_engine, SQLModel


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """Créer l'engine de base de données"""
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
        # Base en mémoire : une seule connexion partagée, sinon chaque session voit une base vide
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            return create_engine(
                database_url,
                echo=echo,
                connect_args=connect_args,
                poolclass=StaticPool,
            )
        return create_engine(database_url, echo=echo, connect_args=connect_args)

    return create_engine(database_url, echo=echo, pool_pre_ping=True)


def create_db_and_tables(engine: Engine) -> None:
    """Créer toutes les tables de la base de données"""
    # Import des entités pour enregistrer les tables dans la metadata
    from mototrack.domain import entities  # noqa: F401

    SQLModel.metadata.create_all(engine)

