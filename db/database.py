"""
LinguaSRS – Database initialisation & session management
=========================================================
Resolves where the SQLite file lives and provides engine / session
factories for the rest of the app.

Environment overrides:

* ``LINGUASRS_DATA_DIR``      – directory holding ``linguasrs.db``
* ``LINGUASRS_DATABASE_URL``  – full SQLAlchemy URL (wins over the data dir)
"""

import os
import sys
from pathlib import Path
from typing import Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from db.models import Base

DATA_DIR_ENV = "LINGUASRS_DATA_DIR"
DATABASE_URL_ENV = "LINGUASRS_DATABASE_URL"
DB_FILENAME = "linguasrs.db"


# ---------------------------------------------------------------------------
# Resolve a user-data directory that survives packaging with PyInstaller.
# ---------------------------------------------------------------------------

def app_data_dir() -> Path:
    """Return a stable directory for the SQLite file."""
    override = os.environ.get(DATA_DIR_ENV)
    if override:
        data_dir = Path(override).expanduser()
    else:
        if getattr(sys, "frozen", False):
            # Running as a PyInstaller bundle
            base = Path(sys.executable).parent
        else:
            base = Path(__file__).resolve().parent.parent
        data_dir = base / "data"
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


def database_url() -> str:
    return os.environ.get(DATABASE_URL_ENV) or f"sqlite:///{app_data_dir() / DB_FILENAME}"


def create_db_engine(url: Optional[str] = None) -> Engine:
    """Create an engine; SQLite connections get foreign keys enabled."""
    url = url or database_url()
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise each session sees an empty database
            kwargs["poolclass"] = StaticPool
        engine = create_engine(url, echo=False, **kwargs)

        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()
    else:
        engine = create_engine(url, echo=False)
    return engine


def init_db(engine: Engine) -> None:
    """Create all tables if they do not exist yet."""
    Base.metadata.create_all(bind=engine)


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, expire_on_commit=False)

