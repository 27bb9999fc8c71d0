"""
PiAware2SQL Package.

Polls a PiAware/dump1090 receiver and writes every aircraft it reports to
two independent SQL databases, built on requests and SQLAlchemy.

Modules:
    ingestion/   Feed client and the poll loop
    storage/     Dual-write sink with reconnect-and-retry per store
    models/      SQLAlchemy model for the shared KDFW table
    records.py   Feed entry decoding, validation and mapping
    geo.py       Haversine distance in miles
    display.py   Console status table
    errors.py    Exception hierarchy
    config.py    Centralized configuration from environment variables
    app.py       Command line entry point
"""

__version__ = '4.0.0'
