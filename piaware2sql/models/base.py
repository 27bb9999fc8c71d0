"""
SQLAlchemy base configuration and engine construction.

Uses SQLAlchemy 2.0 style with type hints and declarative base.
Production sinks are SQL Server databases reached through pyodbc; SQLite
URLs are accepted for development and tests.

Unlike a typical web app there is no session factory here: each sink owns
one long-lived Connection (see `piaware2sql.storage.sink`), so all that is
needed is one Engine per sink.
"""

from typing import Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase

from piaware2sql.config import SinkConfig, config


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def make_engine(sink: SinkConfig, echo: Optional[bool] = None) -> Engine:
    """
    Create the engine for one sink.

    Pooling is irrelevant for a single long-lived connection, but
    pool_pre_ping lets a reopened connection skip a dead socket.
    """
    engine_kwargs = {
        'echo': config.sql_echo if echo is None else echo,  # Log SQL in debug mode
        'pool_pre_ping': True,
    }

    if sink.is_sqlite:
        engine_kwargs['connect_args'] = {'check_same_thread': False}

    engine = create_engine(sink.sqlalchemy_url, **engine_kwargs)

    if sink.is_sqlite:
        @event.listens_for(engine, 'connect')
        def set_sqlite_pragma(dbapi_connection, connection_record):
            """
            Configure SQLite for append-heavy writes.
            """
            cursor = dbapi_connection.cursor()
            # Write-Ahead Logging for concurrent access
            cursor.execute('PRAGMA journal_mode=WAL')
            # Synchronous=NORMAL balances safety and speed
            cursor.execute('PRAGMA synchronous=NORMAL')
            cursor.close()

    return engine


def init_db(engine: Engine) -> None:
    """
    Create the destination table if it doesn't exist.

    Development convenience only (CREATE_TABLES=1). Production tables are
    provisioned by the database owners.
    """
    Base.metadata.create_all(bind=engine)
