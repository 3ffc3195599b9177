"""Sun and moon events projected onto the natural day's 0-360° scale."""

import logging
import math

from naturaltime.cache import LruCache
from naturaltime.config import Settings
from naturaltime.engine import NaturalDateEngine
from naturaltime.models import (
    DOES_NOT_OCCUR,
    EventTime,
    MoonEvents,
    MoonPosition,
    MustachesRange,
    NaturalDate,
    Occurs,
    SunAltitude,
    SunEvents,
)
from naturaltime.validators import check_latitude, check_natural_date, utc_datetime

log = logging.getLogger(__name__)

# Day of the natural year bounding the northern summer (about the equinoxes).
SUMMER_START_DAY = 91
SUMMER_END_DAY = 273

NIGHT_ALTITUDE = -12
GOLDEN_HOUR_ALTITUDE = 6

RISE = +1
SET = -1

# Degrees used when an event does not happen during the natural day.
_ALWAYS_DAY_MORNING = 0.0
_ALWAYS_DAY_EVENING = 360.0
_NO_DAYLIGHT = 180.0


def is_summer(day_of_year: int, latitude: float) -> bool:
    """Rough local summer test from the natural day of year.

    The 91/273 thresholds approximate the equinoxes rather than using the
    actual equinox instants.
    """
    if latitude >= 0:
        return SUMMER_START_DAY <= day_of_year <= SUMMER_END_DAY
    return day_of_year <= SUMMER_START_DAY or day_of_year >= SUMMER_END_DAY


class CelestialEventProjector:
    """Sun and moon events for a NaturalDate and latitude.

    Event sets are cached per natural calendar day and location, so every
    instant of the same day shares one set of oracle searches.

    Args:
        engine: NaturalDateEngine used to build solstice dates; its oracle
            answers every astronomical query.
        cache: Event cache; a fresh ``LruCache`` when omitted.
    """

    def __init__(
        self, engine: NaturalDateEngine | None = None, cache: LruCache | None = None
    ) -> None:
        self.engine = engine if engine is not None else NaturalDateEngine()
        self.cache = cache if cache is not None else LruCache()

    @classmethod
    def from_settings(cls, settings: Settings, oracle=None) -> "CelestialEventProjector":
        engine = NaturalDateEngine.from_settings(settings, oracle=oracle)
        return cls(engine=engine, cache=LruCache(settings.cache_size))

    @property
    def oracle(self):
        return self.engine.oracle

    def clear_cache(self) -> None:
        self.cache.clear()

    def _project(self, natural_date: NaturalDate, instant: int | None) -> EventTime:
        if instant is None:
            return DOES_NOT_OCCUR
        return natural_date.time_of_event(instant)

    def sun_events(self, natural_date: NaturalDate, latitude: float) -> SunEvents:
        """Sunrise, sunset, night and golden hour limits of the natural day.

        Args:
            natural_date: Day to search, starting at its nadir.
            latitude: Observer latitude in degrees (-90..90).

        Returns:
            SunEvents in natural degrees. During polar day the morning events
            fall back to 0 and the evening ones to 360; when there is no
            daylight they all fall back to 180.

        Raises:
            InvalidNaturalDateError: When natural_date is malformed.
            InvalidLatitudeError: When latitude is outside [-90, 90].
        """
        natural_date = check_natural_date(natural_date)
        latitude = check_latitude(latitude)
        key = ("sun", natural_date.date_string(), latitude, natural_date.longitude)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        summer = is_summer(natural_date.day_of_year, latitude)
        morning_default = _ALWAYS_DAY_MORNING if summer else _NO_DAYLIGHT
        evening_default = _ALWAYS_DAY_EVENING if summer else _NO_DAYLIGHT
        oracle = self.oracle
        lon = natural_date.longitude
        nadir = natural_date.nadir

        def degrees(instant: int | None, default: float) -> float:
            event = self._project(natural_date, instant)
            return event.degrees if isinstance(event, Occurs) else default

        def crossing(direction: int, threshold: float) -> int | None:
            return oracle.search_altitude_crossing(
                "sun", latitude, lon, direction, nadir, 2, threshold
            )

        try:
            events = SunEvents(
                sunrise=degrees(
                    oracle.search_rise_or_set("sun", latitude, lon, RISE, nadir, 1),
                    morning_default,
                ),
                sunset=degrees(
                    oracle.search_rise_or_set("sun", latitude, lon, SET, nadir, 1),
                    evening_default,
                ),
                night_start=degrees(crossing(SET, NIGHT_ALTITUDE), evening_default),
                night_end=degrees(crossing(RISE, NIGHT_ALTITUDE), morning_default),
                morning_golden_hour=degrees(
                    crossing(RISE, GOLDEN_HOUR_ALTITUDE), morning_default
                ),
                evening_golden_hour=degrees(
                    crossing(SET, GOLDEN_HOUR_ALTITUDE), evening_default
                ),
            )
        except Exception:
            log.exception("Sun events failed for %s at latitude %s", natural_date, latitude)
            raise

        self.cache.put(key, events)
        return events

    def _altitudes(
        self, body: str, natural_date: NaturalDate, latitude: float
    ) -> tuple[float, float]:
        oracle = self.oracle
        lon = natural_date.longitude
        ra, dec = oracle.equatorial_position(body, natural_date.unix_time, latitude, lon)
        altitude = oracle.horizon_altitude(natural_date.unix_time, latitude, lon, ra, dec)
        culmination = oracle.search_culmination(body, latitude, lon, natural_date.nadir)
        return max(altitude, 0.0), culmination.altitude

    def sun_altitude(self, natural_date: NaturalDate, latitude: float) -> SunAltitude:
        """Current sun altitude (clamped at 0) and the day's highest altitude."""
        natural_date = check_natural_date(natural_date)
        latitude = check_latitude(latitude)
        try:
            altitude, highest = self._altitudes("sun", natural_date, latitude)
        except Exception:
            log.exception("Sun altitude failed for %s at latitude %s", natural_date, latitude)
            raise
        return SunAltitude(altitude=altitude, highest_altitude=highest)

    def moon_position(self, natural_date: NaturalDate, latitude: float) -> MoonPosition:
        """Moon phase, illuminated fraction, current and highest altitude.

        The phase does not depend on the observer: 0 new, 90 first quarter,
        180 full, 270 last quarter.
        """
        natural_date = check_natural_date(natural_date)
        latitude = check_latitude(latitude)
        try:
            phase = self.oracle.moon_phase(natural_date.unix_time)
            altitude, highest = self._altitudes("moon", natural_date, latitude)
        except Exception:
            log.exception("Moon position failed for %s at latitude %s", natural_date, latitude)
            raise
        return MoonPosition(
            phase=phase,
            illumination=(1 - math.cos(math.radians(phase))) / 2,
            altitude=altitude,
            highest_altitude=highest,
        )

    def moon_events(self, natural_date: NaturalDate, latitude: float) -> MoonEvents:
        """Moonrise and moonset of the natural day, and the moon's highest altitude.

        A rise or set that does not happen during the day is DOES_NOT_OCCUR;
        no default is substituted.
        """
        natural_date = check_natural_date(natural_date)
        latitude = check_latitude(latitude)
        key = ("moon", natural_date.date_string(), latitude, natural_date.longitude)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        oracle = self.oracle
        lon = natural_date.longitude
        nadir = natural_date.nadir
        try:
            rise = oracle.search_rise_or_set("moon", latitude, lon, RISE, nadir, 1)
            set_ = oracle.search_rise_or_set("moon", latitude, lon, SET, nadir, 1)
            culmination = oracle.search_culmination("moon", latitude, lon, nadir)
        except Exception:
            log.exception("Moon events failed for %s at latitude %s", natural_date, latitude)
            raise

        events = MoonEvents(
            moonrise=self._project(natural_date, rise),
            moonset=self._project(natural_date, set_),
            highest_altitude=culmination.altitude,
        )
        self.cache.put(key, events)
        return events

    def mustaches_range(self, natural_date: NaturalDate, latitude: float) -> MustachesRange:
        """Solstice sunrise/sunset extremes at a latitude and their mean spread.

        Both solstice days are evaluated at longitude 0, so the result only
        depends on the Gregorian year of natural_date and on latitude.

        Raises:
            InvalidNaturalDateError: When natural_date is malformed.
            InvalidLatitudeError: When latitude is outside [-90, 90].
            UnsupportedEraError: When the solstices cannot be computed.
        """
        natural_date = check_natural_date(natural_date)
        latitude = check_latitude(latitude)
        year = utc_datetime(natural_date.unix_time).year
        key = ("mustaches", year, latitude)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        try:
            seasons = self.oracle.solstices(year)
            winter_day = self.engine.compute(seasons.december_solstice, 0.0)
            summer_day = self.engine.compute(seasons.june_solstice, 0.0)
        except Exception:
            log.exception("Mustaches range failed for year %s at latitude %s", year, latitude)
            raise
        # sun_events logs its own failures.
        winter = self.sun_events(winter_day, latitude)
        summer = self.sun_events(summer_day, latitude)

        if latitude >= 0:
            spread = (
                winter.sunrise - summer.sunrise + summer.sunset - winter.sunset
            ) / 4
        else:
            spread = (
                summer.sunrise - winter.sunrise + winter.sunset - summer.sunset
            ) / 4

        result = MustachesRange(
            winter_sunrise=winter.sunrise,
            winter_sunset=winter.sunset,
            summer_sunrise=summer.sunrise,
            summer_sunset=summer.sunset,
            average_mustache_angle=min(max(spread, 0.0), 90.0),
        )
        self.cache.put(key, result)
        return result
