"""
Data ingestion module for PiAware2SQL.

Handles polling the dump1090 feed, decoding aircraft entries, and handing
records to the dual-write sink.
"""

from piaware2sql.ingestion.feed_client import FeedClient
from piaware2sql.ingestion.pipeline import PollLoop, CycleResult

__all__ = ['FeedClient', 'PollLoop', 'CycleResult']
