"""
PiAware2SQL command line entry point.

Wires the feed client, both database sinks and the poll loop together.

Usage:
    piaware2sql run            # poll forever
    piaware2sql run --once     # one cycle, then exit
    piaware2sql check          # test both databases and the feed

Or:
    python -m piaware2sql.app run
"""

import logging
from typing import Optional, Tuple

import typer

from piaware2sql.config import AppConfig, config
from piaware2sql.display import ConsoleReporter
from piaware2sql.errors import IngestionError
from piaware2sql.ingestion import FeedClient, PollLoop
from piaware2sql.ingestion.feed_client import parse_aircraft
from piaware2sql.models import init_db
from piaware2sql.records import ReferencePoint
from piaware2sql.storage import DualWriteSink, StoreSink

# Configure logging
logging.basicConfig(
    level=config.log_level,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S',
)
logger = logging.getLogger(__name__)

cli = typer.Typer(
    help='Poll a PiAware receiver and write every aircraft to two SQL databases.',
    context_settings={'help_option_names': ['-h', '--help']},
)


def resolve_reference_location(settings: Optional[AppConfig] = None) -> Optional[Tuple[float, float]]:
    """
    Configured reference point, or an IP-based guess when left blank.

    A REFERENCE_LOCATION that is set but not a valid 'lat,lon' pair
    returns None instead of guessing.
    """
    settings = settings or config
    location = settings.reference_location
    if location:
        return location

    if settings.reference_location_setting.strip():
        logger.error(
            f'REFERENCE_LOCATION={settings.reference_location_setting!r} is not a valid '
            f'"lat,lon" pair; not falling back to IP geolocation'
        )
        return None

    try:
        import geocoder
        g = geocoder.ip('me')
        if g.ok and g.latlng:
            location = tuple(g.latlng)
            logger.info(f'Auto-detected location: {location} ({g.city}, {g.country})')
    except Exception as e:
        logger.warning(f'Location auto-detect failed: {e}')

    return location


def build_stores() -> Tuple[StoreSink, StoreSink]:
    """Create both stores from configuration, opening nothing yet."""
    for sink in (config.primary, config.secondary):
        if not sink.is_configured:
            logger.error(
                f'{sink.name} is not configured; set the {sink.name.upper()}_URL '
                f'or {sink.name.upper()}_SERVER environment variables'
            )
            raise typer.Exit(code=1)

    primary = StoreSink.from_config(config.primary)
    secondary = StoreSink.from_config(config.secondary)

    if config.create_tables:
        for store in (primary, secondary):
            logger.info(f'[{store.name}] creating tables if missing')
            init_db(store.engine)

    return primary, secondary


@cli.command()
def run(
    once: bool = typer.Option(False, '--once', help='Run a single cycle and exit.'),
    interval: Optional[float] = typer.Option(
        None, '--interval', '-i', help='Seconds between cycles (default POLL_INTERVAL_SECONDS).'
    ),
    quiet: bool = typer.Option(False, '--quiet', '-q', help='Suppress the console status table.'),
) -> None:
    """Poll the feed and write to both databases until terminated."""
    location = resolve_reference_location()
    if not location:
        logger.error('No usable reference location. Set REFERENCE_LOCATION=lat,lon in .env')
        raise typer.Exit(code=1)

    primary, secondary = build_stores()
    loop = PollLoop(
        client=FeedClient.from_config(),
        primary=primary,
        secondary=secondary,
        reference=ReferencePoint.from_tuple(location),
        interval=interval,
        reporter=ConsoleReporter(enabled=not quiet),
    )

    # Connections stay open across cycles
    loop.sink.open()
    try:
        loop.run_forever(max_cycles=1 if once else None)
    except KeyboardInterrupt:
        logger.info('Interrupted')
    finally:
        loop.sink.close()
        loop.client.close()
        logger.info(f'Final stats: {loop.stats}')


@cli.command()
def check() -> None:
    """Open both databases and fetch the feed once, without writing."""
    primary, secondary = build_stores()
    sink = DualWriteSink(primary, secondary)
    failed = False

    sink.open()
    for store in sink.stores:
        status = 'ok' if store.is_open else 'UNREACHABLE'
        failed = failed or not store.is_open
        typer.echo(f'{store.name}: {status}')
    sink.close()

    client = FeedClient.from_config()
    try:
        aircraft = parse_aircraft(client.fetch())
        typer.echo(f'feed: ok ({len(aircraft)} aircraft)')
    except IngestionError as e:
        failed = True
        typer.echo(f'feed: FAILED ({e})')
    finally:
        client.close()

    if failed:
        raise typer.Exit(code=1)


if __name__ == '__main__':
    cli()
