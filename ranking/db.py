from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Callable, Iterator, TypeVar

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker

from ranking.config import get_settings
from ranking.models import Base

logger = logging.getLogger(__name__)

T = TypeVar("T")

_engine: Engine | None = None
_SessionLocal: sessionmaker | None = None


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = create_engine(get_settings().database_url, pool_pre_ping=True)
    return _engine


def get_session_factory() -> sessionmaker:
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(bind=get_engine(), autoflush=False, autocommit=False)
    return _SessionLocal


def reset_engine() -> None:
    """Drop the cached engine and session factory (used when DATABASE_URL changes)."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None


def create_schema() -> None:
    Base.metadata.create_all(bind=get_engine())


@contextmanager
def session_scope(factory: Callable[[], Session] | None = None) -> Iterator[Session]:
    session = (factory or get_session_factory())()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def with_retry(operation: Callable[[], T], attempts: int = 3, delay_s: float = 0.5, label: str = "store") -> T:
    """Run `operation`, retrying transient OperationalErrors with exponential backoff.

    Any other exception propagates immediately. The last OperationalError is
    re-raised once `attempts` is exhausted.
    """
    attempts = max(1, attempts)
    for attempt in range(attempts):
        try:
            return operation()
        except OperationalError as exc:
            if attempt == attempts - 1:
                logger.error("%s failed after %d attempts: %s", label, attempts, exc)
                raise
            logger.warning("%s attempt %d failed, retrying: %s", label, attempt + 1, exc)
            time.sleep(delay_s * (2**attempt))
    raise AssertionError("unreachable")
