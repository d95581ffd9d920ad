"""Database session management for the embedded shop database"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

from majubersama_pos.config import settings
from majubersama_pos.infrastructure.database.models import Base


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """SQLite needs cross-thread access since FastAPI runs sync endpoints in a thread pool"""
    if database_url.startswith("sqlite"):
        return create_engine(database_url, echo=echo, connect_args={"check_same_thread": False})
    return create_engine(
        database_url,
        echo=echo,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=10,
        pool_recycle=3600,
    )


engine = build_engine(settings.database_url, settings.sqlalchemy_echo)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind: Engine | None = None) -> None:
    """Create missing tables"""
    Base.metadata.create_all(bind=bind or engine)


def get_db() -> Session:
    """Dependency injection for database sessions"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
