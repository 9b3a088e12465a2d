"""
Database connection and session management
"""
from contextlib import contextmanager

from loguru import logger
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from procurement.config import settings
from procurement.exceptions import PersistenceError, ReconciliationRequired


def _connect_args(url: str) -> dict:
    # SQLite connections are shared with the request threadpool
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    settings.database_url,
    pool_pre_ping=True,
    connect_args=_connect_args(settings.database_url),
    echo=settings.DATABASE_ECHO,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """
    Dependency for FastAPI to get database session
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def atomic(db: Session, operation: str):
    """
    Run one business operation as a single transaction.

    Commits once on success. Any exception rolls everything back; store
    failures surface as PersistenceError and a failed rollback surfaces as
    ReconciliationRequired.
    """
    try:
        yield db
        db.commit()
    except Exception as exc:
        try:
            db.rollback()
        except SQLAlchemyError as rollback_exc:
            logger.critical(f"Rollback failed during {operation}: {rollback_exc}")
            raise ReconciliationRequired(
                f"Could not undo a partially applied {operation}."
            ) from rollback_exc

        if isinstance(exc, SQLAlchemyError):
            logger.error(f"{operation} rolled back after store failure: {exc}")
            raise PersistenceError(
                f"Could not save {operation}; nothing was applied. Retry the whole operation."
            ) from exc
        raise
