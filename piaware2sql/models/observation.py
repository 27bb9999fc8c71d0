"""
Observation model - one row per aircraft per poll cycle.

Maps the KDFW table that both sinks share. The table is append-only:
re-polling an unchanged aircraft writes another row, there is no
deduplication key.

Column names predate this codebase and some are misleading:
- nucp holds the emergency status, not a NUCp value
- altitude is the barometric altitude (ft)
- vr is the barometric vertical rate (ft/min)
- speed is ground speed (kt)
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import String, Float, Integer, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from piaware2sql.config import config
from piaware2sql.models.base import Base

# Column order of the insert statement
INSERT_COLUMNS = (
    'dt', 'hex', 'squawk', 'flight', 'lat', 'lon', 'distance', 'nucp',
    'seen_pos', 'altitude', 'vr', 'track', 'speed', 'category', 'messages',
    'seen', 'rssi', 'acode',
)


class Observation(Base):
    """
    Historical telemetry record as written by the poll loop.

    The surrogate key exists for the ORM only; inserts never supply it.
    """

    __tablename__ = config.ingestion.table_name

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
        comment='Surrogate key'
    )

    dt: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        index=True,
        comment='Capture time (local clock)'
    )

    hex: Mapped[str] = mapped_column(
        String(6),
        nullable=False,
        index=True,
        comment='ICAO24 hex address'
    )

    squawk: Mapped[Optional[str]] = mapped_column(String(4), nullable=True)

    flight: Mapped[str] = mapped_column(
        String(8),
        nullable=False,
        comment='Callsign as filed'
    )

    lat: Mapped[float] = mapped_column(Float, nullable=False)
    lon: Mapped[float] = mapped_column(Float, nullable=False)

    distance: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        comment='Distance from reference point in miles'
    )

    nucp: Mapped[Optional[str]] = mapped_column(
        String(20),
        nullable=True,
        comment='Emergency status'
    )

    seen_pos: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    altitude: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        comment='Barometric altitude in feet'
    )

    vr: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        comment='Barometric vertical rate in ft/min'
    )

    track: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        comment='True track in degrees'
    )

    speed: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        comment='Ground speed in knots'
    )

    category: Mapped[Optional[str]] = mapped_column(String(2), nullable=True)
    messages: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    seen: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    rssi: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    acode: Mapped[str] = mapped_column(
        String(3),
        nullable=False,
        index=True,
        comment='Airline code (first three characters of flight)'
    )

    def __repr__(self) -> str:
        return f'<Observation {self.flight} {self.hex} @ {self.dt}>'
