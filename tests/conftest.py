import copy
from datetime import datetime
from typing import Callable, List, Union

import pytest
from sqlalchemy import func, select

from piaware2sql.config import SinkConfig
from piaware2sql.models import Observation, init_db, make_engine
from piaware2sql.records import ReferencePoint
from piaware2sql.storage import StoreSink

CAPTURED_AT = datetime(2021, 1, 17, 14, 30, 0)
HOME = ReferencePoint(lat=33.076153, lon=-97.10859)

SAMPLE_ENTRY = {
    'hex': 'a1b2c3',
    'flight': 'AAL123  ',
    'alt_baro': 35000,
    'alt_geom': 35575,
    'gs': 452.3,
    'track': 271.4,
    'mach': 0.784,
    'baro_rate': -64,
    'squawk': '4521',
    'emergency': 'none',
    'category': 'A3',
    'nav_qnh': 1013.6,
    'nav_altitude_mcp': 35008,
    'nav_heading': 270.0,
    'nav_modes': ['autopilot', 'vnav', 'tcas'],
    'lat': 33.412,
    'lon': -96.874,
    'nic': 8,
    'rc': 186,
    'seen_pos': 0.4,
    'version': 2,
    'nic_baro': 1,
    'nac_p': 9,
    'sil': 3,
    'sil_type': 'perhour',
    'gva': 2,
    'sda': 2,
    'mlat': [],
    'tisb': [],
    'messages': 1234,
    'seen': 0.1,
    'rssi': -21.5,
}


def make_entry(**overrides) -> dict:
    entry = copy.deepcopy(SAMPLE_ENTRY)
    for key, value in overrides.items():
        if value is ...:
            entry.pop(key, None)
        else:
            entry[key] = value
    return entry


class FakeFeedClient:
    """Returns queued documents; exceptions in the queue are raised."""

    def __init__(self, documents: List[Union[str, Exception]]):
        self.documents = list(documents)
        self.fetch_count = 0
        self.closed = False

    def fetch(self) -> str:
        self.fetch_count += 1
        item = self.documents.pop(0) if len(self.documents) > 1 else self.documents[0]
        if isinstance(item, Exception):
            raise item
        return item

    def close(self) -> None:
        self.closed = True


class RecordingReporter:
    def __init__(self):
        self.flights: List[str] = []
        self.banners = 0
        self.footers = 0

    def banner(self) -> None:
        self.banners += 1

    def record(self, record) -> None:
        self.flights.append(record.flight)

    def footer(self) -> None:
        self.footers += 1


def count_rows(store: StoreSink) -> int:
    with store.engine.connect() as connection:
        return connection.execute(
            select(func.count()).select_from(Observation.__table__)
        ).scalar_one()


@pytest.fixture
def store_factory(tmp_path) -> Callable[[str], StoreSink]:
    created: List[StoreSink] = []

    def factory(name: str) -> StoreSink:
        sink = SinkConfig(name=name, url=f'sqlite:///{tmp_path / name}.db')
        engine = make_engine(sink, echo=False)
        init_db(engine)
        store = StoreSink(name=name, engine=engine)
        created.append(store)
        return store

    yield factory

    for store in created:
        store.close()
        store.engine.dispose()
