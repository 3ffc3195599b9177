from collections import Counter
from datetime import datetime

import pytest
from pytz import utc

from naturaltime.cache import LruCache
from naturaltime.celestial import CelestialEventProjector
from naturaltime.engine import NaturalDateEngine
from naturaltime.models import MILLISECONDS_PER_DAY, Culmination, Seasons
from naturaltime.validators import UnsupportedEraError, parse_instant, utc_datetime

# (December solstice, June solstice) in UTC, minute precision.
_SOLSTICES = {
    2009: ((12, 21, 17, 47), (6, 21, 5, 45)),
    2010: ((12, 21, 23, 38), (6, 21, 11, 28)),
    2011: ((12, 22, 5, 30), (6, 21, 17, 16)),
    2012: ((12, 21, 11, 12), (6, 20, 23, 9)),
    2013: ((12, 21, 17, 11), (6, 21, 5, 4)),
    2014: ((12, 22, 0, 3), (6, 21, 10, 51)),
    2015: ((12, 22, 4, 48), (6, 21, 16, 38)),
    2016: ((12, 21, 10, 44), (6, 20, 22, 34)),
    2017: ((12, 21, 16, 28), (6, 21, 4, 24)),
    2018: ((12, 21, 22, 23), (6, 21, 10, 7)),
    2019: ((12, 22, 4, 19), (6, 21, 15, 54)),
    2020: ((12, 21, 10, 2), (6, 20, 21, 43)),
    2021: ((12, 21, 15, 59), (6, 21, 3, 32)),
    2022: ((12, 21, 21, 48), (6, 21, 9, 13)),
    2023: ((12, 22, 3, 27), (6, 21, 14, 57)),
    2024: ((12, 21, 9, 20), (6, 20, 20, 51)),
    2025: ((12, 21, 15, 3), (6, 21, 2, 42)),
    2026: ((12, 21, 20, 50), (6, 21, 8, 24)),
    2027: ((12, 22, 2, 42), (6, 21, 14, 11)),
    2028: ((12, 21, 8, 19), (6, 20, 20, 2)),
    2029: ((12, 21, 14, 14), (6, 21, 1, 48)),
    2030: ((12, 21, 20, 9), (6, 21, 7, 31)),
    2031: ((12, 22, 1, 55), (6, 21, 13, 17)),
}


def _ms(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> int:
    return parse_instant(datetime(year, month, day, hour, minute, tzinfo=utc))


class FakeOracle:
    """Deterministic stand-in for SkyfieldOracle.

    The sun rises at 06:00 and sets at 18:00 local mean time, shifted
    toward longer summer days by up to 72 minutes at the poles' edge.
    Beyond 66° of latitude nothing rises or sets. The moon rises at
    0.4 day and sets at 0.9 day after the search start, except beyond
    80° of latitude.
    """

    def __init__(self) -> None:
        self.calls: Counter[str] = Counter()
        self.current_altitude = 20.0
        self.culmination_altitude: float | None = None
        self.phase = 90.0
        self.fail = False

    def _check(self, name: str) -> None:
        self.calls[name] += 1
        if self.fail:
            raise RuntimeError(f"{name} failed")

    def solstices(self, year: int) -> Seasons:
        self._check("solstices")
        if year not in _SOLSTICES:
            raise UnsupportedEraError(year)
        december, june = _SOLSTICES[year]
        return Seasons(
            march_equinox=_ms(year, 3, 20, 12),
            june_solstice=_ms(year, *june),
            september_equinox=_ms(year, 9, 22, 12),
            december_solstice=_ms(year, *december),
        )

    def _day_shift(self, latitude: float, start: int) -> float:
        season = 1 if 4 <= utc_datetime(start).month <= 9 else -1
        return season * 0.05 * latitude / 90

    def _at(self, start: int, fraction: float) -> int:
        return start + round(fraction * MILLISECONDS_PER_DAY)

    def search_rise_or_set(self, body, latitude, longitude, direction, start, max_days):
        self._check(f"rise_set_{body}")
        if body == "moon":
            if abs(latitude) > 80:
                return None
            return self._at(start, 0.4 if direction > 0 else 0.9)
        if abs(latitude) > 66:
            return None
        shift = self._day_shift(latitude, start)
        return self._at(start, 0.25 - shift if direction > 0 else 0.75 + shift)

    def search_altitude_crossing(
        self, body, latitude, longitude, direction, start, max_days, threshold
    ):
        self._check(f"crossing_{body}")
        if abs(latitude) > 66:
            return None
        shift = self._day_shift(latitude, start)
        margin = threshold / 240  # -12° is 0.05 day away from sunrise
        if direction > 0:
            return self._at(start, 0.25 - shift + margin)
        return self._at(start, 0.75 + shift - margin)

    def search_culmination(self, body, latitude, longitude, start):
        self._check(f"culmination_{body}")
        altitude = self.culmination_altitude
        if altitude is None:
            altitude = 90.0 - abs(latitude)
        return Culmination(instant=self._at(start, 0.5), altitude=altitude)

    def equatorial_position(self, body, instant, latitude, longitude):
        self._check(f"equatorial_{body}")
        return 6.0, 0.0

    def horizon_altitude(self, instant, latitude, longitude, ra, dec):
        self._check("horizon")
        return self.current_altitude

    def moon_phase(self, instant):
        self._check("moon_phase")
        return self.phase


@pytest.fixture
def oracle() -> FakeOracle:
    return FakeOracle()


@pytest.fixture
def engine(oracle) -> NaturalDateEngine:
    return NaturalDateEngine(oracle=oracle, cache=LruCache(None))


@pytest.fixture
def projector(engine) -> CelestialEventProjector:
    return CelestialEventProjector(engine=engine, cache=LruCache(None))


@pytest.fixture
def ms():
    return _ms
