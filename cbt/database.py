"""Database utilities and setup."""
from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy.pool import StaticPool

from cbt.config import DATABASE_URL


def make_engine(url: str):
    """Create an engine, sharing one connection for in-memory SQLite."""
    if not url.startswith("sqlite"):
        return create_engine(url)
    if ":memory:" in url:
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(url, connect_args={"check_same_thread": False})


# Create engine
engine = make_engine(DATABASE_URL)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# Base class for models
class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


def get_db():
    """Dependency to get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None):
    """Initialize database (create all tables)."""
    # Register models on Base.metadata
    import cbt.models.db  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
