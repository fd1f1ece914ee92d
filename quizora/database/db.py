from contextlib import contextmanager
from typing import Generator

from quizora.database.session import SQLALCHEMY_DATABASE_URL, get_local_session
from quizora.log import get_logger

log = get_logger(__name__)

SessionLocal = get_local_session(SQLALCHEMY_DATABASE_URL)


def get_db() -> Generator:  # pragma: no cover
    """
    Returns a generator that yields a database session

    Yields:
        Session: A database session object.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_ctx_db() -> Generator:
    """
    Context manager that creates a database session and yields
    it for use in a 'with' statement. Used by background tasks,
    which run outside the request cycle.

    Yields:
        Session: A database session.

    Raises:
        Exception: Re-raised after rolling back the session.
    """
    db = SessionLocal()
    try:
        yield db
    except Exception as e:
        log.error("Rolling back background session. Error: %s", e)
        db.rollback()
        raise
    finally:
        db.close()


def escape_like(value: str, escape: str = "\\") -> str:
    """Escape LIKE wildcards so user input matches literally; pair with ``like(..., escape=escape)``."""
    return value.replace(escape, escape * 2).replace("%", escape + "%").replace("_", escape + "_")
