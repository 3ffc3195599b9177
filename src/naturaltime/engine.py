"""Natural date computation — solstice-anchored years, 13 moons of 28 days, 360° days."""

import logging
from datetime import datetime, timedelta

from pytz import utc

from naturaltime.cache import LruCache
from naturaltime.config import Settings
from naturaltime.ephemeris import SkyfieldOracle
from naturaltime.models import (
    DAYS_PER_MOON,
    DAYS_PER_WEEK,
    END_OF_ARTIFICIAL_TIME,
    MILLISECONDS_PER_DAY,
    RAINBOW_THRESHOLD,
    EventTime,
    NaturalDate,
    YearContext,
)
from naturaltime.validators import (
    check_gregorian_year,
    check_longitude,
    check_natural_date,
    parse_instant,
    utc_datetime,
)

log = logging.getLogger(__name__)

_EPOCH_YEAR = utc_datetime(END_OF_ARTIFICIAL_TIME).year


def antimeridian_noon(instant: int) -> int:
    """Noon UTC of the instant's day, or of the following day from 12:00 UTC on.

    Noon UTC is midnight at the 180th meridian, the reference frame every
    natural year start is expressed in before the longitude shift.
    """
    dt = utc_datetime(instant)
    day = dt.date()
    if dt.hour >= 12:
        day += timedelta(days=1)
    return parse_instant(datetime(day.year, day.month, day.day, 12, tzinfo=utc))


def longitude_offset(longitude: float) -> float:
    """Milliseconds between midnight at the 180th meridian and midnight at longitude."""
    return (-longitude + 180) * MILLISECONDS_PER_DAY / 360


class NaturalDateEngine:
    """Converts (instant, longitude) pairs to NaturalDate values.

    Year contexts are memoized per ``(gregorian_year, longitude)`` in the
    engine's own cache. Pass a shared ``LruCache`` to let several engines
    reuse each other's solstice searches.

    Args:
        oracle: Object providing ``solstices(year)``; defaults to a
            ``SkyfieldOracle`` with the default kernel.
        cache: Year context cache; a fresh ``LruCache`` when omitted.
    """

    def __init__(self, oracle=None, cache: LruCache | None = None) -> None:
        self.oracle = oracle if oracle is not None else SkyfieldOracle()
        self.cache = cache if cache is not None else LruCache()

    @classmethod
    def from_settings(cls, settings: Settings, oracle=None) -> "NaturalDateEngine":
        if oracle is None:
            oracle = SkyfieldOracle.from_settings(settings)
        return cls(oracle=oracle, cache=LruCache(settings.cache_size))

    def clear_cache(self) -> None:
        self.cache.clear()

    def resolve_year_context(self, gregorian_year: int, longitude: float) -> YearContext:
        """Return the natural year starting at the December solstice of gregorian_year.

        Args:
            gregorian_year: Year whose December solstice opens the natural year.
            longitude: Observer longitude in degrees (-180..180).

        Returns:
            YearContext with the first local nadir and the length in days.

        Raises:
            ValidationError: When gregorian_year is not an integer.
            InvalidLongitudeError: When longitude is outside [-180, 180].
            UnsupportedEraError: When the oracle cannot compute the solstices.
        """
        gregorian_year = check_gregorian_year(gregorian_year)
        longitude = check_longitude(longitude)
        key = (gregorian_year, longitude)
        context = self.cache.get(key)
        if context is not None:
            return context

        log.debug("Resolving natural year context %s at longitude %s", gregorian_year, longitude)
        start_solstice = self.oracle.solstices(gregorian_year).december_solstice
        end_solstice = self.oracle.solstices(gregorian_year + 1).december_solstice
        start_noon = antimeridian_noon(start_solstice)
        end_noon = antimeridian_noon(end_solstice)

        context = YearContext(
            start=int(start_noon + longitude_offset(longitude)),
            duration=(end_noon - start_noon) // MILLISECONDS_PER_DAY,
        )
        self.cache.put(key, context)
        return context

    def _year_context_for(self, instant: int, longitude: float) -> YearContext:
        # The natural year opens around December 22, so first guess the one
        # that began in the previous Gregorian year, then move forward when
        # the instant is already past its end.
        gregorian_year = utc_datetime(instant).year
        context = self.resolve_year_context(gregorian_year - 1, longitude)
        if instant - context.start >= context.duration * MILLISECONDS_PER_DAY:
            context = self.resolve_year_context(gregorian_year, longitude)
        return context

    def compute(self, instant=None, longitude: float = 0.0) -> NaturalDate:
        """Express an instant at a longitude in natural time.

        Args:
            instant: datetime, epoch milliseconds or ISO-8601 string; None for now.
            longitude: Observer longitude in degrees (-180..180).

        Returns:
            A new NaturalDate.

        Raises:
            InvalidLongitudeError: When longitude is outside [-180, 180].
            InvalidInstantError: When instant is not a finite absolute time.
            UnsupportedEraError: When the year is outside the ephemeris range.
        """
        longitude = check_longitude(longitude)
        unix_time = parse_instant(instant)

        context = self._year_context_for(unix_time, longitude)
        elapsed = unix_time - context.start
        days = elapsed // MILLISECONDS_PER_DAY
        nadir = context.start + days * MILLISECONDS_PER_DAY
        weeks = days // DAYS_PER_WEEK
        day_of_year = days + 1

        return NaturalDate(
            unix_time=unix_time,
            longitude=longitude,
            year=utc_datetime(context.start).year - _EPOCH_YEAR + 1,
            moon=days // DAYS_PER_MOON + 1,
            week=weeks + 1,
            week_of_moon=weeks % 4 + 1,
            day=int(
                (unix_time - (END_OF_ARTIFICIAL_TIME + longitude_offset(longitude)))
                // MILLISECONDS_PER_DAY
            ),
            day_of_year=day_of_year,
            day_of_moon=days % DAYS_PER_MOON + 1,
            day_of_week=days % DAYS_PER_WEEK + 1,
            is_rainbow_day=day_of_year > RAINBOW_THRESHOLD,
            time=(unix_time - nadir) * 360 / MILLISECONDS_PER_DAY,
            year_start=context.start,
            year_duration=context.duration,
            nadir=nadir,
        )

    def project_event(self, natural_date: NaturalDate, event) -> EventTime:
        """Map an event instant onto the natural day of natural_date (0-360°).

        Raises:
            InvalidNaturalDateError: When natural_date is malformed.
            InvalidInstantError: When event is not a finite absolute time.
        """
        return check_natural_date(natural_date).time_of_event(event)
