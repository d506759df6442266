"""Database session utilities."""
from contextlib import contextmanager
import time
from typing import Callable, ContextManager, Iterator, Optional

import structlog
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel, Session

from ..config import get_settings
from ..domain import models  # noqa: F401  registers tables on SQLModel.metadata

logger = structlog.get_logger(__name__)

SessionFactory = Callable[[], ContextManager[Session]]


def make_engine(database_url: str) -> Engine:
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    return create_engine(database_url, echo=False, future=True, connect_args=connect_args)


engine = make_engine(get_settings().database_url)


def session_scope(bind: Engine) -> SessionFactory:
    """Return a factory of commit-on-success session scopes bound to ``bind``."""
    maker = sessionmaker(bind=bind, autoflush=False, autocommit=False, class_=Session)

    @contextmanager
    def scope() -> Iterator[Session]:
        session = maker()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    return scope


get_session = session_scope(engine)


def init_db(bind_engine: Optional[Engine] = None, attempts: int = 30) -> None:
    """Create tables if they do not exist.

    Retries on startup to wait for the database service in Docker.
    """
    target = bind_engine or engine
    last_err: Exception | None = None
    for attempt in range(1, attempts + 1):
        try:
            SQLModel.metadata.create_all(target)
            return
        except Exception as exc:  # pragma: no cover
            last_err = exc
            logger.warning("database not ready", attempt=attempt, attempts=attempts, error=str(exc))
            time.sleep(1)
    if last_err:
        raise last_err
