from sqlalchemy import create_engine
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from vidtube.config import settings


def _engine_kwargs(database_url: str) -> dict:
    """Pick pool settings for the configured database."""
    if database_url.startswith("sqlite"):
        # SQLite is used for local runs and tests; one shared connection for in-memory DBs
        kwargs = {"connect_args": {"check_same_thread": False}, "echo": settings.debug}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return kwargs

    if settings.is_production:
        # Production - smaller pool, recycled connections
        return {
            "pool_pre_ping": True,
            "pool_size": 5,
            "max_overflow": 10,
            "pool_timeout": 30,
            "pool_recycle": 1800,
            "echo": False,
        }

    # Local development - Larger pool
    return {
        "pool_pre_ping": True,
        "pool_size": 10,
        "max_overflow": 20,
        "echo": settings.debug,
    }


engine = create_engine(settings.database_url, **_engine_kwargs(settings.database_url))

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for models
Base = declarative_base()


def get_db():
    """Dependency for getting database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
