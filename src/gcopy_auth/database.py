"""Database engine for the session store."""

from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine

from gcopy_auth import models  # noqa: F401  registers the session table
from gcopy_auth.config import settings


def build_engine(url: str) -> Engine:
    """Create an engine; SQLite connections are shared across worker threads."""
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, echo=False, connect_args=connect_args)


engine = build_engine(settings.database_url)


def init_db(bind: Engine = engine) -> None:
    """Create the data directory and all tables."""
    if bind.url.get_backend_name() == "sqlite":
        settings.data_dir.mkdir(parents=True, exist_ok=True)
    SQLModel.metadata.create_all(bind)
