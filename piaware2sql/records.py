"""
Feed entry decoding, validation and mapping.

dump1090 aircraft.json entries are loosely typed: any key may be missing,
and an aircraft that has only just appeared usually reports a handful of
fields. Processing an entry happens in three explicit steps:

1. Decode: `RawEntry.from_dict` keeps the known keys, untyped
2. Validate: `is_ingestible` checks the mandatory fields are present
3. Map: `map_record` coerces every field and derives acode/distance

dump1090 field reference (subset we persist):
    hex        - 24-bit ICAO transponder address
    flight     - callsign as filed, space padded to 8 chars
    alt_baro   - barometric altitude (ft), or the string 'ground'
    alt_geom   - geometric altitude (ft)
    gs         - ground speed (kt)
    track      - true track over ground (degrees)
    mach       - Mach number
    baro_rate  - barometric rate of climb/descent (ft/min)
    nic, rc    - navigation integrity category, containment radius
    sil, gva,
    sda        - source integrity / vertical accuracy / design assurance
    mlat, tisb - lists of fields derived from MLAT / TIS-B
    messages   - Mode S messages received
    seen       - seconds since the last message
    seen_pos   - seconds since the last position update
    rssi       - recent average signal power (dBFS)
"""

import math
from dataclasses import dataclass, fields
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from piaware2sql.errors import MappingError
from piaware2sql.geo import distance_miles

MANDATORY_FIELDS: Tuple[str, ...] = (
    'hex', 'flight', 'lat', 'lon', 'alt_baro', 'baro_rate', 'track', 'gs',
)

AIRLINE_CODE_LENGTH = 3


@dataclass(frozen=True)
class ReferencePoint:
    """Fixed observer location used for distance calculations."""
    lat: float
    lon: float

    @classmethod
    def from_tuple(cls, location: Tuple[float, float]) -> 'ReferencePoint':
        return cls(lat=location[0], lon=location[1])


@dataclass(frozen=True)
class RawEntry:
    """
    One decoded feed entry.

    Values are kept exactly as the feed sent them; `None` means the key
    was absent or null.
    """
    hex: Any = None
    flight: Any = None
    lat: Any = None
    lon: Any = None
    alt_baro: Any = None
    alt_geom: Any = None
    gs: Any = None
    track: Any = None
    mach: Any = None
    baro_rate: Any = None
    squawk: Any = None
    emergency: Any = None
    category: Any = None
    nav_qnh: Any = None
    nav_altitude_mcp: Any = None
    nav_heading: Any = None
    nav_modes: Any = None
    nic: Any = None
    rc: Any = None
    seen_pos: Any = None
    version: Any = None
    sil: Any = None
    gva: Any = None
    sda: Any = None
    mlat: Any = None
    tisb: Any = None
    messages: Any = None
    seen: Any = None
    rssi: Any = None

    @classmethod
    def from_dict(cls, data: Any) -> Optional['RawEntry']:
        """
        Decode one feed entry.

        Returns None if the entry is not a JSON object. Unknown keys are
        ignored.
        """
        if not isinstance(data, dict):
            return None
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})

    def get(self, name: str) -> Any:
        return getattr(self, name)


@dataclass(frozen=True)
class FlightRecord:
    """
    Canonical snapshot of one aircraft at capture time.

    Built only by `map_record`. Optional telemetry the aircraft did not
    report stays None.
    """
    captured_at: datetime
    hex: str
    flight: str
    lat: float
    lon: float
    alt_baro: float
    baro_rate: float
    track: float
    gs: float
    acode: str
    distance: float

    alt_geom: Optional[float] = None
    mach: Optional[float] = None
    squawk: Optional[str] = None
    emergency: Optional[str] = None
    category: Optional[str] = None
    nav_qnh: Optional[float] = None
    nav_altitude_mcp: Optional[float] = None
    nav_heading: Optional[float] = None
    nav_modes: Optional[str] = None
    nic: Optional[float] = None
    rc: Optional[float] = None
    seen_pos: Optional[float] = None
    version: Optional[int] = None
    sil: Optional[str] = None
    gva: Optional[int] = None
    sda: Optional[str] = None
    mlat: Optional[str] = None
    tisb: Optional[str] = None
    messages: Optional[float] = None
    seen: Optional[float] = None
    rssi: Optional[float] = None

    def to_row(self) -> Dict[str, Any]:
        """
        Column mapping for the KDFW insert.

        Column names are historical: `nucp` holds the emergency status,
        `altitude` the barometric altitude, `vr` the baro rate and
        `speed` the ground speed.
        """
        return {
            'dt': self.captured_at,
            'hex': self.hex,
            'squawk': self.squawk,
            'flight': self.flight,
            'lat': self.lat,
            'lon': self.lon,
            'distance': self.distance,
            'nucp': self.emergency,
            'seen_pos': self.seen_pos,
            'altitude': self.alt_baro,
            'vr': self.baro_rate,
            'track': self.track,
            'speed': self.gs,
            'category': self.category,
            'messages': self.messages,
            'seen': self.seen,
            'rssi': self.rssi,
            'acode': self.acode,
        }


def is_ingestible(entry: Optional[RawEntry]) -> bool:
    """Check that every mandatory field is present (non-null)."""
    if entry is None:
        return False
    return all(entry.get(name) is not None for name in MANDATORY_FIELDS)


# -------------------------------------------------------------------------
# Field coercion
# -------------------------------------------------------------------------

def _to_float(name: str, value: Any) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise MappingError(name, value, 'expected a number, got a boolean')
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise MappingError(name, value, 'expected a number') from None
    # json.loads accepts bare NaN/Infinity literals
    if not math.isfinite(number):
        raise MappingError(name, value, 'expected a finite number')
    return number


def _to_int(name: str, value: Any) -> Optional[int]:
    number = _to_float(name, value)
    if number is None:
        return None
    if not number.is_integer():
        raise MappingError(name, value, 'expected an integer')
    return int(number)


def _to_str(name: str, value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        # mlat, tisb and nav_modes arrive as lists of names
        return ','.join(str(item) for item in value)
    if isinstance(value, dict):
        raise MappingError(name, value, 'expected a string')
    return str(value)


_NUMERIC_FIELDS = (
    'lat', 'lon', 'alt_baro', 'baro_rate', 'track', 'gs',
    'alt_geom', 'mach', 'nav_qnh', 'nav_altitude_mcp', 'nav_heading',
    'nic', 'rc', 'seen_pos', 'messages', 'seen', 'rssi',
)
_INTEGER_FIELDS = ('version', 'gva')
_STRING_FIELDS = (
    'hex', 'squawk', 'emergency', 'category', 'nav_modes',
    'sil', 'sda', 'mlat', 'tisb',
)


def map_record(
    entry: RawEntry,
    reference: ReferencePoint,
    captured_at: datetime,
) -> FlightRecord:
    """
    Convert a validated entry into a FlightRecord.

    Raises MappingError naming the first field that fails to convert, or
    'flight' when the callsign is too short to carry an airline code.
    """
    values: Dict[str, Any] = {}
    for name in _NUMERIC_FIELDS:
        values[name] = _to_float(name, entry.get(name))
    for name in _INTEGER_FIELDS:
        values[name] = _to_int(name, entry.get(name))
    for name in _STRING_FIELDS:
        values[name] = _to_str(name, entry.get(name))

    # dump1090 pads callsigns to eight characters
    flight = (_to_str('flight', entry.flight) or '').rstrip()
    if len(flight) < AIRLINE_CODE_LENGTH:
        raise MappingError('flight', entry.flight, 'too short for an airline code')

    for name in MANDATORY_FIELDS:
        if name != 'flight' and values[name] is None:
            raise MappingError(name, None, 'mandatory field missing')

    distance = distance_miles(values['lat'], reference.lat, values['lon'], reference.lon)

    return FlightRecord(
        captured_at=captured_at,
        flight=flight,
        acode=flight[:AIRLINE_CODE_LENGTH],
        distance=distance,
        **values,
    )
