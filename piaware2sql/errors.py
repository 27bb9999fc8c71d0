"""
Exception hierarchy for the ingestion loop.

Each exception is handled at the narrowest scope that can absorb it:
    FetchError, ParseError  - abort one poll cycle
    MappingError            - skip one feed entry
    WriteError              - lose one record for one store only

Entries missing mandatory fields are not errors; they are filtered by
`is_ingestible` before mapping.
"""

from typing import Any, Optional


class IngestionError(Exception):
    """Base class for all pipeline errors."""


class FetchError(IngestionError):
    """Feed unreachable, non-200 response, or broken transport."""


class ParseError(IngestionError):
    """Feed document is not valid JSON or lacks the aircraft list."""


class MappingError(IngestionError):
    """A present field could not be coerced to its declared type."""

    def __init__(self, field: str, value: Any, reason: Optional[str] = None):
        self.field = field
        self.value = value
        self.reason = reason or 'conversion failed'
        super().__init__(f'{field}={value!r}: {self.reason}')


class WriteError(IngestionError):
    """Insert into one store failed even after reconnecting and retrying."""

    def __init__(self, store: str, record: Any, cause: BaseException):
        self.store = store
        self.record = record
        self.cause = cause
        flight = getattr(record, 'flight', '?')
        super().__init__(f'[{store}] write failed for {flight}: {cause}')
