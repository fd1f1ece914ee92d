from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from quizora.config import Settings, settings


def build_sqlalchemy_database_url_from_settings(_settings: Settings) -> str:
    """
    Builds a SQLAlchemy URL based on the provided settings.

    DATABASE_URL wins when it is set, otherwise the URL is assembled
    from the POSTGRES_* values.

    Parameters:
        _settings (Settings): An instance of the Settings class
        containing the PostgreSQL connection details.

    Returns:
        str: The generated SQLAlchemy URL.
    """
    if _settings.DATABASE_URL:
        return _settings.DATABASE_URL
    return (
        f"postgresql+psycopg://{_settings.POSTGRES_USER}:{_settings.POSTGRES_PASSWORD}"
        f"@{_settings.POSTGRES_HOST}:{_settings.POSTGRES_PORT}/{_settings.POSTGRES_DB}"
    )


def get_engine(database_url: str, echo=False) -> Engine:
    """
    Creates and returns a SQLAlchemy Engine object for connecting to a database.

    Parameters:
        database_url (str): The URL of the database to connect to.
        echo (bool): Whether or not to enable echoing of SQL statements.
        Defaults to False.

    Returns:
        Engine: A SQLAlchemy Engine object representing the database connection.
    """
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            future=True,
        )
    return create_engine(
        database_url,
        echo=echo,
        pool_size=5,          # max number of persistent connections in the pool
        max_overflow=0,       # 0 means never open more than pool_size
        pool_timeout=30,      # seconds to wait for a connection before raising
        pool_recycle=1800,    # recycle connections periodically (helps stale conns)
        pool_pre_ping=True,   # validates connections before using
        future=True,
    )


def get_local_session(database_url: str, echo=False) -> sessionmaker:
    """
    Create and return a sessionmaker object for a local database session.

    Parameters:
        database_url (str): The URL of the local database.
        echo (bool): Whether to echo SQL statements to the console.
        Defaults to `False`.

    Returns:
        sessionmaker: A sessionmaker object configured for the local database session.
    """
    engine = get_engine(database_url, echo)
    return sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        future=True,
    )


SQLALCHEMY_DATABASE_URL = build_sqlalchemy_database_url_from_settings(settings)
