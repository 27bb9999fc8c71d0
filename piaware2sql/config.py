"""
Configuration management for PiAware2SQL.

Loads settings from environment variables with sensible defaults.
All configuration is centralized here to avoid magic strings scattered
throughout the codebase. Values are read once at startup; there is no
runtime reconfiguration.
"""

import math
import os
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from dotenv import load_dotenv
from sqlalchemy.engine import URL

load_dotenv()


DEFAULT_FEED_URL = 'http://192.168.0.129/dump1090-fa/data/aircraft.json'
DEFAULT_REFERENCE = '33.076153,-97.10859'
DEFAULT_ODBC_DRIVER = 'ODBC Driver 18 for SQL Server'


def _parse_location(value: str) -> Optional[Tuple[float, float]]:
    """Parse 'lat,lon' string into tuple, or None if empty/invalid."""
    if not value:
        return None
    try:
        lat, lon = value.split(',')
        location = (float(lat.strip()), float(lon.strip()))
    except (ValueError, AttributeError):
        return None
    if not all(math.isfinite(v) for v in location):
        return None
    return location


def _parse_bool(value: Optional[str]) -> bool:
    return (value or '').strip().lower() in ('1', 'true', 'yes', 'on')


@dataclass(frozen=True)
class FeedConfig:
    """dump1090 feed endpoint settings."""
    url: str = os.getenv('FEED_URL', DEFAULT_FEED_URL)
    timeout_seconds: float = float(os.getenv('FEED_TIMEOUT_SECONDS', '30'))


@dataclass(frozen=True)
class SinkConfig:
    """
    Connection settings for one SQL Server sink.

    Either `url` (a complete SQLAlchemy URL, handy for SQLite during
    development) or `server` + `database` must be set. `auth` is
    'integrated' (Windows/Kerberos trusted connection) or 'sql'
    (username/password).
    """
    name: str
    url: Optional[str] = None
    server: Optional[str] = None
    database: str = 'PiAwaredb'
    auth: str = 'integrated'
    username: Optional[str] = None
    password: Optional[str] = None
    driver: str = DEFAULT_ODBC_DRIVER

    @classmethod
    def from_env(cls, prefix: str, name: str) -> 'SinkConfig':
        """Build a sink config from `<prefix>_*` environment variables."""
        def env(key: str, default: Optional[str] = None) -> Optional[str]:
            return os.getenv(f'{prefix}_{key}') or default

        return cls(
            name=env('NAME', name),
            url=env('URL'),
            server=env('SERVER'),
            database=env('DATABASE', 'PiAwaredb'),
            auth=(env('AUTH', 'integrated') or 'integrated').lower(),
            username=env('USERNAME'),
            password=env('PASSWORD'),
            driver=env('DRIVER', DEFAULT_ODBC_DRIVER),
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.url or self.server)

    @property
    def uses_integrated_auth(self) -> bool:
        return self.auth == 'integrated'

    @property
    def sqlalchemy_url(self) -> Union[str, URL]:
        """
        SQLAlchemy URL for this sink.

        Raises ValueError when the sink is not configured or the auth mode
        is unknown.
        """
        if self.url:
            return self.url
        if not self.server:
            raise ValueError(f'Sink {self.name} has neither a URL nor a server configured')

        query = {'driver': self.driver}
        if self.uses_integrated_auth:
            query['trusted_connection'] = 'yes'
            return URL.create(
                'mssql+pyodbc',
                host=self.server,
                database=self.database,
                query=query,
            )

        if self.auth != 'sql':
            raise ValueError(f"Sink {self.name} has unknown auth mode '{self.auth}'")
        return URL.create(
            'mssql+pyodbc',
            username=self.username,
            password=self.password,
            host=self.server,
            database=self.database,
            query=query,
        )

    @property
    def is_sqlite(self) -> bool:
        return bool(self.url and self.url.startswith('sqlite'))


@dataclass(frozen=True)
class IngestionConfig:
    """Poll loop settings."""
    poll_interval: float = float(os.getenv('POLL_INTERVAL_SECONDS', '1'))
    # Both sinks share the same destination table
    table_name: str = 'KDFW'


@dataclass(frozen=True)
class AppConfig:
    """Main application configuration."""
    feed: FeedConfig
    primary: SinkConfig
    secondary: SinkConfig
    ingestion: IngestionConfig

    # Reference point for distance calculations (None = unset or unparseable)
    reference_location: Optional[Tuple[float, float]]
    # REFERENCE_LOCATION as written; blank means auto-detect via IP
    reference_location_setting: str

    log_level: str
    sql_echo: bool
    create_tables: bool


def load_config() -> AppConfig:
    """Load and validate all configuration."""
    reference = os.getenv('REFERENCE_LOCATION', DEFAULT_REFERENCE)
    return AppConfig(
        feed=FeedConfig(),
        primary=SinkConfig.from_env('SINK1', 'sink1'),
        secondary=SinkConfig.from_env('SINK2', 'sink2'),
        ingestion=IngestionConfig(),
        reference_location=_parse_location(reference),
        reference_location_setting=reference,
        log_level=os.getenv('LOG_LEVEL', 'INFO').upper(),
        sql_echo=_parse_bool(os.getenv('SQL_ECHO')),
        create_tables=_parse_bool(os.getenv('CREATE_TABLES')),
    )


# Singleton instance
config = load_config()
