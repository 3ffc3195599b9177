"""Data model definitions — the values passed between the engine, the projector and callers."""

from dataclasses import dataclass

MILLISECONDS_PER_DAY = 86_400_000  # 24 * 60 * 60 * 1000

# 2012-12-21 12:00 UTC, i.e. 2012-12-22 00:00 at the 180th meridian.
# Natural year 1 begins here.
END_OF_ARTIFICIAL_TIME = 1_356_091_200_000

MOONS_PER_YEAR = 13
DAYS_PER_MOON = 28
DAYS_PER_WEEK = 7
RAINBOW_THRESHOLD = MOONS_PER_YEAR * DAYS_PER_MOON  # 364


@dataclass(frozen=True)
class YearContext:
    """One natural year as observed from one longitude."""

    start: int  # First nadir of the year (epoch ms)
    duration: int  # Days until the next year's start (365 or 366)


@dataclass(frozen=True)
class NaturalDate:
    """An instant at a longitude, expressed in natural time.

    Built by ``NaturalDateEngine.compute``; never mutated afterwards.
    """

    unix_time: int  # Artificial instant (epoch ms, UTC)
    longitude: float  # -180..+180

    year: int  # Year 1: winter solstice 2012 > winter solstice 2013
    moon: int  # 1-14 (14 only on rainbow days)
    week: int  # 1-53
    week_of_moon: int  # 1-4
    day: int  # Days since END_OF_ARTIFICIAL_TIME at this longitude
    day_of_year: int  # 1-366
    day_of_moon: int  # 1-28
    day_of_week: int  # 1-7
    is_rainbow_day: bool
    time: float  # Degrees since nadir, 0 <= time < 360

    year_start: int  # Start of the natural year at this longitude (epoch ms)
    year_duration: int  # 365 or 366
    nadir: int  # Start of the natural day at this longitude (epoch ms)

    def time_of_event(self, event) -> "EventTime":
        """Project an event instant onto this natural day's 0-360° scale.

        Args:
            event: Event instant (datetime, epoch ms or ISO-8601 string).

        Returns:
            ``Occurs(degrees)`` when the event falls within
            ``[nadir, nadir + 1 day]``, otherwise ``DOES_NOT_OCCUR``.
        """
        from naturaltime.validators import parse_instant

        event_time = parse_instant(event, parameter="event")
        if event_time < self.nadir or event_time > self.nadir + MILLISECONDS_PER_DAY:
            return DOES_NOT_OCCUR
        return Occurs((event_time - self.nadir) * 360 / MILLISECONDS_PER_DAY)

    def date_string(self, separator: str = ")") -> str:
        """Return the calendar-day identity, e.g. ``012)05)17`` or ``013)RAINBOW+``.

        Every instant of the same natural day at the same longitude yields
        the same string.
        """
        sign = "-" if self.year < 0 else ""
        year = f"{sign}{abs(self.year):03d}"
        if self.is_rainbow_day:
            second = "+" if self.day_of_year == 366 else ""
            return f"{year}{separator}RAINBOW{second}"
        return f"{year}{separator}{self.moon:02d}{separator}{self.day_of_moon:02d}"


@dataclass(frozen=True)
class Occurs:
    """An event that happens within the natural day."""

    degrees: float  # 0..360


@dataclass(frozen=True)
class DoesNotOccur:
    """An event that does not happen within the natural day."""

    def __bool__(self) -> bool:
        return False


DOES_NOT_OCCUR = DoesNotOccur()

EventTime = Occurs | DoesNotOccur


@dataclass(frozen=True)
class Seasons:
    """Equinox and solstice instants of one Gregorian year (epoch ms)."""

    march_equinox: int
    june_solstice: int
    september_equinox: int
    december_solstice: int


@dataclass(frozen=True)
class Culmination:
    """Upper meridian transit of a body."""

    instant: int  # epoch ms
    altitude: float  # Apparent altitude at transit (degrees, may be negative)


@dataclass(frozen=True)
class SunAltitude:
    altitude: float  # Current altitude, clamped at 0
    highest_altitude: float  # Altitude at culmination, unclamped


@dataclass(frozen=True)
class SunEvents:
    """Sun events of one natural day, in natural degrees.

    Events that do not happen carry the polar fallback: 0/360 on a
    summer day without sunset, 180 on a day without sunrise.
    """

    sunrise: float
    sunset: float
    night_start: float  # Sun descends below -12°
    night_end: float  # Sun rises above -12°
    morning_golden_hour: float  # Sun rises above +6°
    evening_golden_hour: float  # Sun descends below +6°


@dataclass(frozen=True)
class MoonPosition:
    phase: float  # 0 new, 90 first quarter, 180 full, 270 last quarter
    illumination: float  # Illuminated fraction of the disc, 0..1
    altitude: float  # Current altitude, clamped at 0
    highest_altitude: float  # Altitude at culmination, unclamped


@dataclass(frozen=True)
class MoonEvents:
    moonrise: EventTime
    moonset: EventTime
    highest_altitude: float


@dataclass(frozen=True)
class MustachesRange:
    """Solstice sunrise/sunset extremes at one latitude (natural degrees)."""

    winter_sunrise: float
    winter_sunset: float
    summer_sunrise: float
    summer_sunset: float
    average_mustache_angle: float  # 0..90
