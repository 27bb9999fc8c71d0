"""
Console status table.

One banner per cycle, one row per written record, one closing rule. The
layout is for humans watching a terminal and is not a stable format.
"""

from typing import Optional

import typer

from piaware2sql.records import FlightRecord

RULE = '-' * 88
TITLE = '|' + '--  Write to two SQL Databases'.center(86) + '|'
HEADER = (
    'Flight     |    Lat     |    Lon     |  Altitude  |   Speed    |'
    '  Vertical  | Emergency|'
)
HEADER_RULE = '-----------+------------+------------+------------+------------+------------+-----------'


def _cell(value: Optional[object], width: int) -> str:
    return ('' if value is None else str(value)).rjust(width)


def format_banner() -> str:
    return '\n'.join([RULE, TITLE, RULE, HEADER, HEADER_RULE])


def format_record(record: FlightRecord) -> str:
    """Render one status row: flight, position, altitude, speed, rate, emergency."""
    return ' | '.join([
        record.flight.ljust(10),
        _cell(record.lat, 10),
        _cell(record.lon, 10),
        _cell(record.alt_baro, 10),
        _cell(record.gs, 10),
        _cell(record.baro_rate, 10),
        _cell(record.emergency, 7),
    ]) + '  |'


def format_footer() -> str:
    return RULE


class ConsoleReporter:
    """Writes the status table to stdout."""

    def __init__(self, enabled: bool = True):
        self.enabled = enabled

    def banner(self) -> None:
        if self.enabled:
            typer.echo(format_banner())

    def record(self, record: FlightRecord) -> None:
        if self.enabled:
            typer.echo(format_record(record))

    def footer(self) -> None:
        if self.enabled:
            typer.echo(format_footer())
            typer.echo()
