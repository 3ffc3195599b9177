"""Astronomy oracle — solstices, rise/set searches, altitudes and moon phase via skyfield."""

import logging
import math

import numpy as np
from skyfield import almanac
from skyfield.api import Loader, wgs84
from skyfield.errors import EphemerisRangeError

from naturaltime.config import Settings
from naturaltime.models import Culmination, Seasons
from naturaltime.validators import UnsupportedEraError, utc_datetime

log = logging.getLogger(__name__)

BODIES = ("sun", "moon")

# Standard refraction at the horizon and apparent radii, in degrees.
_REFRACTION_HORIZON = -34.0 / 60.0
_APPARENT_RADIUS = {"sun": 16.0 / 60.0, "moon": 15.5 / 60.0}

_CULMINATION_WINDOW_DAYS = 2.0

# almanac.seasons event codes
_MARCH_EQUINOX, _JUNE_SOLSTICE, _SEPTEMBER_EQUINOX, _DECEMBER_SOLSTICE = range(4)


class SkyfieldOracle:
    """Solar and lunar computations for the natural time engine.

    Every instant crossing this boundary is an integer number of
    milliseconds since the Unix epoch (UTC). The kernel is loaded on
    first use; skyfield downloads it into ``data_dir`` when missing.
    """

    def __init__(
        self, ephemeris: str = "de421.bsp", data_dir=None, loader: Loader | None = None
    ) -> None:
        if loader is None:
            loader = Loader(str(data_dir)) if data_dir is not None else Loader(".")
        self._loader = loader
        self._ephemeris_name = ephemeris
        self._eph = None
        self._ts = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "SkyfieldOracle":
        return cls(ephemeris=settings.ephemeris, data_dir=settings.data_dir)

    def _load(self) -> None:
        if self._eph is None:
            log.debug("Loading ephemeris %s", self._ephemeris_name)
            self._ts = self._loader.timescale()
            self._eph = self._loader(self._ephemeris_name)

    @property
    def ephemeris(self):
        self._load()
        return self._eph

    @property
    def timescale(self):
        self._load()
        return self._ts

    def _time(self, milliseconds: int):
        return self.timescale.from_datetime(utc_datetime(milliseconds))

    @staticmethod
    def _milliseconds(t) -> int:
        dt = t.utc_datetime()
        return round(dt.timestamp() * 1000)

    def _target(self, body: str):
        if body not in BODIES:
            raise ValueError(f"Unknown body {body!r}, expected one of {BODIES}")
        return self.ephemeris[body]

    @staticmethod
    def _topos(latitude: float, longitude: float):
        return wgs84.latlon(latitude_degrees=latitude, longitude_degrees=longitude)

    def solstices(self, year: int) -> Seasons:
        """Return the equinoxes and solstices of a Gregorian year.

        Raises:
            UnsupportedEraError: When the ephemeris does not cover the year.
        """
        if not 1 <= year < 9999:
            raise UnsupportedEraError(year)
        ts = self.timescale
        t0 = ts.utc(year, 1, 1)
        t1 = ts.utc(year + 1, 1, 1)
        try:
            times, events = almanac.find_discrete(t0, t1, almanac.seasons(self.ephemeris))
        except EphemerisRangeError as e:
            raise UnsupportedEraError(year, str(e)) from e

        found = {int(code): self._milliseconds(t) for t, code in zip(times, events)}
        if len(found) != 4:
            raise UnsupportedEraError(year, f"found only {len(found)} season events")
        return Seasons(
            march_equinox=found[_MARCH_EQUINOX],
            june_solstice=found[_JUNE_SOLSTICE],
            september_equinox=found[_SEPTEMBER_EQUINOX],
            december_solstice=found[_DECEMBER_SOLSTICE],
        )

    def equatorial_position(
        self, body: str, instant: int, latitude: float, longitude: float
    ) -> tuple[float, float]:
        """Apparent right ascension (hours) and declination (degrees) of date."""
        target = self._target(body)
        t = self._time(instant)
        observer = self.ephemeris["earth"] + self._topos(latitude, longitude)
        ra, dec, _ = observer.at(t).observe(target).apparent().radec(epoch="date")
        return float(ra.hours), float(dec.degrees)

    def horizon_altitude(
        self,
        instant: int,
        latitude: float,
        longitude: float,
        right_ascension: float,
        declination: float,
    ) -> float:
        """Altitude in degrees of an equatorial position above the observer's horizon."""
        t = self._time(instant)
        hour_angle = math.radians((float(t.gast) + longitude / 15.0 - right_ascension) * 15.0)
        lat = math.radians(latitude)
        dec = math.radians(declination)
        sin_alt = math.sin(lat) * math.sin(dec) + math.cos(lat) * math.cos(dec) * math.cos(
            hour_angle
        )
        return math.degrees(math.asin(float(np.clip(sin_alt, -1.0, 1.0))))

    def _search(self, f, direction: int, start: int, max_days: float) -> int | None:
        t0 = self._time(start)
        t1 = self._time(start + round(max_days * 86_400_000))
        times, events = almanac.find_discrete(t0, t1, f)
        wanted = 1 if direction > 0 else 0
        for t, event in zip(times, events):
            if int(event) == wanted:
                return self._milliseconds(t)
        return None

    def search_rise_or_set(
        self,
        body: str,
        latitude: float,
        longitude: float,
        direction: int,
        start: int,
        max_days: float,
    ) -> int | None:
        """First rise (direction +1) or set (-1) of the body's upper limb after start."""
        f = almanac.risings_and_settings(
            self.ephemeris,
            self._target(body),
            self._topos(latitude, longitude),
            horizon_degrees=_REFRACTION_HORIZON,
            radius_degrees=_APPARENT_RADIUS[body],
        )
        return self._search(f, direction, start, max_days)

    def search_altitude_crossing(
        self,
        body: str,
        latitude: float,
        longitude: float,
        direction: int,
        start: int,
        max_days: float,
        threshold: float,
    ) -> int | None:
        """First time the body's centre ascends (+1) or descends (-1) through threshold."""
        f = almanac.risings_and_settings(
            self.ephemeris,
            self._target(body),
            self._topos(latitude, longitude),
            horizon_degrees=threshold,
            radius_degrees=0,
        )
        return self._search(f, direction, start, max_days)

    def search_culmination(
        self, body: str, latitude: float, longitude: float, start: int
    ) -> Culmination:
        """Upper meridian transit (hour angle 0) following start."""
        target = self._target(body)
        topos = self._topos(latitude, longitude)
        f = almanac.meridian_transits(self.ephemeris, target, topos)
        instant = self._search(f, +1, start, _CULMINATION_WINDOW_DAYS)
        if instant is None:
            raise RuntimeError(f"No meridian transit of the {body} found after {start}")
        observer = self.ephemeris["earth"] + topos
        alt, _, _ = observer.at(self._time(instant)).observe(target).apparent().altaz()
        return Culmination(instant=instant, altitude=float(alt.degrees))

    def moon_phase(self, instant: int) -> float:
        """Ecliptic longitude difference moon - sun in degrees, 0 <= phase < 360."""
        phase = almanac.moon_phase(self.ephemeris, self._time(instant))
        return float(phase.degrees) % 360.0

