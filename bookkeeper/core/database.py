"""
Configuration de la connexion a la base de donnees
"""
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from bookkeeper.core.config import get_settings

# Importer Base depuis models pour coherence
from bookkeeper.models.base import Base

settings = get_settings()


def _enable_sqlite_savepoints(engine: Engine) -> None:
    """
    Laisse SQLAlchemy piloter BEGIN/SAVEPOINT sur SQLite.

    Le driver pysqlite gere ses transactions lui-meme et casse
    begin_nested(); on desactive ce comportement et on emet BEGIN.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def build_engine(database_url: str) -> Engine:
    """
    Cree le moteur SQLAlchemy adapte au dialecte.

    SQLite en memoire partage une connexion unique (StaticPool) pour
    que toutes les sessions voient les memes tables.
    """
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        sqlite_engine = create_engine(database_url, **kwargs)
        _enable_sqlite_savepoints(sqlite_engine)
        return sqlite_engine

    return create_engine(
        database_url,
        pool_pre_ping=True,  # Verifie la connexion avant utilisation
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=settings.DATABASE_MAX_OVERFLOW,
        pool_timeout=settings.DATABASE_POOL_TIMEOUT,
        pool_recycle=settings.DATABASE_POOL_RECYCLE,
    )


engine = build_engine(settings.DATABASE_URL)

# Session locale
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """
    Fournit une session DB avec commit/rollback automatique.
    Utilise comme dependance FastAPI.
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


__all__ = ["Base", "engine", "SessionLocal", "build_engine", "get_db"]
