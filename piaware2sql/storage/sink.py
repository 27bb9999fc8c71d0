"""
Redundant persistence of flight records.

Every record is written to two independently owned databases with the
same KDFW table. The stores never see each other: a broken connection on
one side costs that side the record and nothing else.

Write policy per store:
1. Make sure the connection is open (already-open is fine)
2. Insert the row and commit
3. On failure: log, close and reopen the connection, retry once
4. If the retry fails too, raise WriteError for that store

Connections are opened once at startup and kept for the life of the
process. There is one thread, so nothing here is locked; a reconnect
always finishes before the retry starts.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import Table
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from piaware2sql.config import SinkConfig
from piaware2sql.errors import WriteError
from piaware2sql.records import FlightRecord
from piaware2sql.models import Observation, make_engine

logger = logging.getLogger(__name__)


class StoreSink:
    """
    One database destination with its long-lived connection.

    The raw Connection never leaves this class; callers only see
    `write(record)`.
    """

    def __init__(
        self,
        name: str,
        engine: Engine,
        table: Optional[Table] = None,
    ):
        self.name = name
        self.engine = engine
        self.table = table if table is not None else Observation.__table__
        self._connection: Optional[Connection] = None

        # Single-row insert with exactly the KDFW column list
        self._statement = self.table.insert()

        self._attempts = 0
        self._writes = 0
        self._failures = 0
        self._reconnects = 0

    @classmethod
    def from_config(cls, sink: SinkConfig) -> 'StoreSink':
        """Create a store from sink configuration."""
        return cls(name=sink.name, engine=make_engine(sink))

    @property
    def is_open(self) -> bool:
        return self._connection is not None and not self._connection.closed

    def open(self) -> None:
        """Open the connection unless it is already open."""
        if self.is_open:
            return
        self._connection = self.engine.connect()
        logger.info(f'[{self.name}] connection opened')

    def close(self) -> None:
        """Close the connection, discarding any uncommitted work."""
        connection, self._connection = self._connection, None
        if connection is None:
            return
        try:
            connection.close()
        except SQLAlchemyError as e:
            logger.warning(f'[{self.name}] error while closing connection: {e}')

    def ensure_open(self) -> None:
        """
        Best-effort open before a write.

        A failure here is only logged: the insert attempt that follows
        fails too and goes through the normal reconnect-and-retry path.
        """
        try:
            self.open()
        except SQLAlchemyError as e:
            logger.debug(f'[{self.name}] could not open connection: {e}')

    def reconnect(self) -> None:
        """Close, then reopen the connection."""
        self.close()
        self._reconnects += 1
        self.open()

    def _insert(self, row: Dict[str, Any]) -> None:
        if self._connection is None:
            self.open()
        self._connection.execute(self._statement, row)
        self._connection.commit()

    def write(self, record: FlightRecord) -> None:
        """
        Insert one record, reconnecting and retrying once on failure.

        Raises:
            WriteError if the retry fails as well
        """
        row = record.to_row()
        self.ensure_open()

        try:
            self._attempts += 1
            self._insert(row)
        except SQLAlchemyError as first:
            logger.warning(
                f'{datetime.now():%Y-%m-%d %H:%M:%S}: [{self.name}] insert failed for '
                f'{record.flight}, reconnecting and retrying: {first}'
            )
            try:
                self.reconnect()
                self._attempts += 1
                self._insert(row)
            except SQLAlchemyError as second:
                self._failures += 1
                raise WriteError(self.name, record, second) from second

        self._writes += 1

    @property
    def stats(self) -> dict:
        """Get write statistics."""
        return {
            'attempts': self._attempts,
            'writes': self._writes,
            'failures': self._failures,
            'reconnects': self._reconnects,
            'open': self.is_open,
        }


@dataclass
class WriteOutcome:
    """Result of writing one record to both stores."""
    record: FlightRecord
    stored: List[str] = field(default_factory=list)
    errors: List[WriteError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def any_stored(self) -> bool:
        return bool(self.stored)


class DualWriteSink:
    """
    Writes each record to a primary and a secondary store.

    Both stores receive the identical insert. Store failures are isolated
    and reported in the returned WriteOutcome rather than raised.
    """

    def __init__(self, primary: StoreSink, secondary: StoreSink):
        if primary is secondary:
            raise ValueError('primary and secondary must be distinct stores')
        self.primary = primary
        self.secondary = secondary

    @property
    def stores(self) -> List[StoreSink]:
        return [self.primary, self.secondary]

    def open(self) -> None:
        """
        Open both connections at startup.

        A store that cannot be reached is logged and left closed; its
        writes will keep trying to reconnect.
        """
        for store in self.stores:
            try:
                store.open()
            except SQLAlchemyError as e:
                logger.error(f'[{store.name}] initial connection failed: {e}')

    def close(self) -> None:
        for store in self.stores:
            store.close()

    def write(self, record: FlightRecord) -> WriteOutcome:
        """Persist one record to every store, independently."""
        outcome = WriteOutcome(record=record)
        for store in self.stores:
            try:
                store.write(record)
            except WriteError as e:
                logger.error(
                    f'{datetime.now():%Y-%m-%d %H:%M:%S}: [{e.store}] record for '
                    f'{record.flight} lost after retry: {e.cause}'
                )
                outcome.errors.append(e)
            else:
                outcome.stored.append(store.name)
        return outcome

    @property
    def stats(self) -> dict:
        return {store.name: store.stats for store in self.stores}
