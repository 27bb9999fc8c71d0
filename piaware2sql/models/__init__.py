"""
Database models for PiAware2SQL.

Both sinks share one schema: a single append-only KDFW table written one
row at a time by the poll loop.
"""

from piaware2sql.models.base import Base, make_engine, init_db
from piaware2sql.models.observation import Observation, INSERT_COLUMNS

__all__ = [
    'Base',
    'make_engine',
    'init_db',
    'Observation',
    'INSERT_COLUMNS',
]
