"""
SQLite engine and session handling for Vaultfolio.

One engine per process, created lazily from ``config.db_path``. Every unit
of work goes through ``get_session()``, which commits or rolls back as a
whole.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Generator

from sqlmodel import Session, SQLModel, create_engine

from vaultfolio.config import config

logger = logging.getLogger(__name__)

_engine = None
_engine_lock = threading.Lock()


def get_engine():
    """
    Return the process-wide engine, creating it on first use.

    The database directory is created if missing.

    Returns:
        SQLAlchemy Engine instance.
    """
    global _engine

    if _engine is None:
        with _engine_lock:
            # Another thread may have won the race while we waited
            if _engine is None:
                db_path = config.db_path
                db_path.parent.mkdir(parents=True, exist_ok=True)

                _engine = create_engine(
                    f"sqlite:///{db_path}",
                    connect_args={"check_same_thread": False},
                )
                logger.info(f"Opened collection database at {db_path}")

    return _engine


def init_db() -> None:
    """Create any missing tables. Existing tables and rows are left alone."""
    # Table classes register themselves on SQLModel.metadata when imported
    from vaultfolio.db.models import (  # noqa: F401
        AlertHistory,
        HoldingRow,
        LotRow,
        PriceSnapshotRow,
        SaleRow,
        Spot,
    )

    SQLModel.metadata.create_all(get_engine())
    logger.info("Collection schema ready")


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """
    Open a session that commits on success and rolls back on any exception.

    Usage:
        with get_session() as session:
            session.add(Spot(name="Gamemania"))

    Yields:
        SQLModel Session instance (closed on exit).
    """
    session = Session(get_engine())

    try:
        yield session
        session.commit()
    except Exception as e:
        logger.error("Rolling back collection changes: %s", e, exc_info=True)
        session.rollback()
        raise
    finally:
        session.close()


def reset_engine() -> None:
    """Dispose of the engine so the next get_engine() reopens config.db_path."""
    global _engine

    with _engine_lock:
        if _engine is not None:
            _engine.dispose()
            _engine = None
            logger.info("Collection database closed")
