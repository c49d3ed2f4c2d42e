import logging
from collections.abc import Generator

from sqlalchemy import Engine, create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from taskflow.config import settings

logger = logging.getLogger(__name__)

def make_engine(database_url: str) -> Engine:
    if database_url.startswith("sqlite"):
        # one shared in-memory connection across threads (tests, local runs)
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(database_url, pool_pre_ping=True)

engine = make_engine(settings.database_url)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)

def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def db_ping() -> str | None:
    """Run a trivial query; returns an error description, or None when healthy."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning("database ping failed: %s", e.__class__.__name__)
        return e.__class__.__name__
    return None
