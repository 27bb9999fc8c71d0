"""
Database sinks for flight records.
"""

from piaware2sql.storage.sink import StoreSink, DualWriteSink, WriteOutcome

__all__ = ['StoreSink', 'DualWriteSink', 'WriteOutcome']
