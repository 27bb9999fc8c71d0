"""
Poll loop - orchestrates data flow from the feed to both databases.

Pipeline stages, once per interval:
1. Fetch: download aircraft.json from the receiver
2. Parse: decode JSON and pull out the aircraft list
3. Sort: order entries by flight identifier
4. Filter/Map/Write: validate, build FlightRecords, dual-write each one
5. Report: print a status row per written record
6. Sleep: wait the fixed interval and start over

Failures are absorbed at the narrowest scope that can hold them:
- a bad field skips its entry (MappingError)
- a dead store loses the record for that store only (WriteError)
- a bad fetch or document aborts the cycle (FetchError, ParseError)
- anything else raised by one entry is logged and the entry skipped
- anything else is logged and swallowed at the cycle boundary

The loop never stops on its own; polling continues no matter what a
single cycle ran into.
"""

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional

from piaware2sql.config import config
from piaware2sql.display import ConsoleReporter
from piaware2sql.errors import FetchError, MappingError, ParseError
from piaware2sql.ingestion.feed_client import FeedClient, parse_aircraft, sort_by_flight
from piaware2sql.records import RawEntry, ReferencePoint, is_ingestible, map_record
from piaware2sql.storage.sink import DualWriteSink, StoreSink

logger = logging.getLogger(__name__)


@dataclass
class CycleResult:
    """Counters for one poll cycle."""
    received: int = 0
    skipped: int = 0
    mapping_errors: int = 0
    written: int = 0
    write_errors: int = 0
    entry_errors: int = 0
    aborted: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.aborted is None


class PollLoop:
    """
    Manages the ingestion lifecycle.

    Takes the two stores explicitly; the loop itself holds no connections.
    Single-threaded: run_forever blocks the caller.
    """

    def __init__(
        self,
        client: FeedClient,
        primary: StoreSink,
        secondary: StoreSink,
        reference: ReferencePoint,
        interval: Optional[float] = None,
        reporter: Optional[ConsoleReporter] = None,
        clock: Callable[[], datetime] = datetime.now,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize the poll loop.

        Args:
            client: feed client for aircraft.json
            primary, secondary: the two destination stores
            reference: fixed point for distance calculations
            interval: seconds between cycles (config default if None)
            reporter: console status output
            clock: capture timestamp source
            sleep: delay function between cycles
        """
        self.client = client
        self.sink = DualWriteSink(primary, secondary)
        self.reference = reference
        self.interval = config.ingestion.poll_interval if interval is None else interval
        self.reporter = reporter or ConsoleReporter()
        self._clock = clock
        self._sleep = sleep

        # State tracking
        self._cycle_count: int = 0
        self._aborted_count: int = 0
        self._written_count: int = 0
        self._mapping_error_count: int = 0
        self._write_error_count: int = 0
        self._entry_error_count: int = 0
        self._last_cycle_time: float = 0

    def _process_entry(self, raw: Any, result: CycleResult) -> None:
        """Validate, map and write one feed entry, never raising."""
        try:
            self._ingest_entry(raw, result)
        except Exception:
            result.entry_errors += 1
            flight = raw.get('flight') if isinstance(raw, dict) else None
            logger.exception(f'Unexpected error processing entry {flight!r}, skipping')

    def _ingest_entry(self, raw: Any, result: CycleResult) -> None:
        entry = RawEntry.from_dict(raw)
        if not is_ingestible(entry):
            result.skipped += 1
            return

        try:
            record = map_record(entry, self.reference, self._clock())
        except MappingError as e:
            result.mapping_errors += 1
            logger.warning(f'Skipping {entry.hex}: cannot map {e}')
            return

        outcome = self.sink.write(record)
        result.write_errors += len(outcome.errors)
        if outcome.any_stored:
            result.written += 1
            self.reporter.record(record)

    def run_cycle(self) -> CycleResult:
        """
        Execute one fetch-parse-write cycle.

        Never raises for feed or data problems; the returned CycleResult
        says what happened.
        """
        result = CycleResult()
        self._cycle_count += 1
        self._last_cycle_time = time.time()

        try:
            # Stage 1-2: Fetch and parse
            document = self.client.fetch()
            aircraft = parse_aircraft(document)
        except (FetchError, ParseError) as e:
            result.aborted = str(e)
            self._aborted_count += 1
            logger.warning(f'Cycle {self._cycle_count} aborted: {e}')
            return result

        result.received = len(aircraft)

        # Stage 3-5: Sort, then process entries in order
        self.reporter.banner()
        for raw in sort_by_flight(aircraft):
            self._process_entry(raw, result)
        self.reporter.footer()

        self._written_count += result.written
        self._mapping_error_count += result.mapping_errors
        self._write_error_count += result.write_errors
        self._entry_error_count += result.entry_errors

        logger.debug(
            f'Cycle {self._cycle_count}: {result.received} received, '
            f'{result.written} written, {result.skipped} skipped, '
            f'{result.mapping_errors} unmappable, {result.write_errors} store failures, {result.entry_errors} entry errors'
        )
        return result

    def run_forever(self, max_cycles: Optional[int] = None) -> None:
        """
        Run cycles back to back with a fixed delay.

        Blocks. max_cycles bounds the run (None = until the process is
        terminated).
        """
        logger.info(f'Starting poll loop (interval={self.interval}s)')

        cycles = 0
        while max_cycles is None or cycles < max_cycles:
            try:
                self.run_cycle()
            except Exception:
                self._aborted_count += 1
                logger.exception('Unexpected error in poll cycle, continuing')
            cycles += 1
            if max_cycles is None or cycles < max_cycles:
                self._sleep(self.interval)

        logger.info('Poll loop stopped')

    @property
    def stats(self) -> dict:
        """Get ingestion statistics."""
        return {
            'cycle_count': self._cycle_count,
            'aborted_count': self._aborted_count,
            'written_count': self._written_count,
            'mapping_error_count': self._mapping_error_count,
            'write_error_count': self._write_error_count,
            'entry_error_count': self._entry_error_count,
            'last_cycle_time': self._last_cycle_time,
            'stores': self.sink.stats,
        }
