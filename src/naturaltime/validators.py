"""Input validation and the error taxonomy shared by the engine and the projector."""

import math
import time
from datetime import date, datetime, timedelta
from numbers import Integral, Real

from pytz import utc

from naturaltime.models import (
    DAYS_PER_MOON,
    DAYS_PER_WEEK,
    NaturalDate,
)

_EPOCH = datetime(1970, 1, 1, tzinfo=utc)
_ONE_MILLISECOND = timedelta(milliseconds=1)

# Range representable as a datetime (years 1..9999), one day of slack each side.
_MIN_INSTANT = (utc.localize(datetime.min) - _EPOCH) // _ONE_MILLISECOND + 86_400_000
_MAX_INSTANT = (utc.localize(datetime.max) - _EPOCH) // _ONE_MILLISECOND - 86_400_000


class NaturalTimeError(Exception):
    """Base class for natural time failures."""


class ValidationError(NaturalTimeError, ValueError):
    """A public operation received an argument outside its domain."""

    def __init__(self, parameter: str, value: object, expected: str) -> None:
        self.parameter = parameter
        self.value = value
        self.expected = expected
        super().__init__(f"Invalid {parameter}: {value!r}. Expected {expected}")


class InvalidLongitudeError(ValidationError):
    """Longitude outside [-180, 180] or not a number."""


class InvalidLatitudeError(ValidationError):
    """Latitude outside [-90, 90] or not a number."""


class InvalidInstantError(ValidationError):
    """Instant cannot be turned into a finite absolute time."""


class InvalidNaturalDateError(ValidationError):
    """Value presented as a NaturalDate fails structural validation."""


class UnsupportedEraError(NaturalTimeError):
    """The ephemeris cannot resolve seasons for the requested year."""

    def __init__(self, year: int, reason: str | None = None) -> None:
        self.year = year
        message = f"Seasons of year {year} are outside the supported ephemeris range"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


def is_valid_number(value: object) -> bool:
    """True for finite real numbers. Booleans are not numbers here."""
    return (
        isinstance(value, Real)
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def is_valid_longitude(longitude: object) -> bool:
    return is_valid_number(longitude) and -180 <= longitude <= 180


def is_valid_latitude(latitude: object) -> bool:
    return is_valid_number(latitude) and -90 <= latitude <= 90


def _in_range(value: object, low: int, high: int) -> bool:
    return is_valid_number(value) and low <= value <= high


def is_valid_natural_date(natural_date: object) -> bool:
    """Check that a NaturalDate's derived fields are present and in range."""
    if not isinstance(natural_date, NaturalDate):
        return False
    d = natural_date
    if not (
        is_valid_number(d.unix_time)
        and is_valid_longitude(d.longitude)
        and is_valid_number(d.year)
        and is_valid_number(d.year_duration)
        and is_valid_number(d.year_start)
        and is_valid_number(d.nadir)
    ):
        return False
    return (
        _in_range(d.moon, 1, 14)
        and _in_range(d.week, 1, 53)
        and _in_range(d.week_of_moon, 1, 4)
        and _in_range(d.day_of_moon, 1, DAYS_PER_MOON)
        and _in_range(d.day_of_week, 1, DAYS_PER_WEEK)
        and _in_range(d.day_of_year, 1, d.year_duration)
        and isinstance(d.is_rainbow_day, bool)
        and is_valid_number(d.time)
        and 0 <= d.time < 360
        and d.nadir <= d.unix_time
    )


def check_longitude(longitude: object) -> float:
    if not is_valid_longitude(longitude):
        raise InvalidLongitudeError(
            "longitude", longitude, "number between -180 and 180"
        )
    return float(longitude)


def check_latitude(latitude: object) -> float:
    if not is_valid_latitude(latitude):
        raise InvalidLatitudeError("latitude", latitude, "number between -90 and 90")
    return float(latitude)


def check_gregorian_year(year: object) -> int:
    if not isinstance(year, Integral) or isinstance(year, bool):
        raise ValidationError("gregorianYear", year, "integer year")
    return int(year)


def check_natural_date(natural_date: object) -> NaturalDate:
    if not is_valid_natural_date(natural_date):
        raise InvalidNaturalDateError(
            "naturalDate", natural_date, "NaturalDate built by NaturalDateEngine"
        )
    return natural_date


def parse_instant(instant: object, parameter: str = "instant") -> int:
    """Convert an instant to integer epoch milliseconds (UTC).

    Accepts aware or naive (taken as UTC) datetimes, dates (UTC midnight),
    epoch milliseconds (truncated toward zero) and ISO-8601 strings.
    ``None`` means now.

    Raises:
        InvalidInstantError: When the value is not a finite absolute time.
    """
    expected = "datetime, epoch milliseconds or ISO-8601 string within years 1-9999"
    if instant is None:
        return time.time_ns() // 1_000_000
    value = instant
    if isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            value = datetime.fromisoformat(text)
        except ValueError:
            raise InvalidInstantError(parameter, instant, expected) from None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = utc.localize(value)
        value = (value - _EPOCH) // _ONE_MILLISECOND
    elif isinstance(value, date):
        midnight = utc.localize(datetime(value.year, value.month, value.day))
        value = (midnight - _EPOCH) // _ONE_MILLISECOND
    # Outside this range the UTC instant has no datetime representation.
    if is_valid_number(value) and _MIN_INSTANT <= value <= _MAX_INSTANT:
        return int(value)
    raise InvalidInstantError(parameter, instant, expected)


def utc_datetime(milliseconds: int) -> datetime:
    """Epoch milliseconds to an aware UTC datetime."""
    return _EPOCH + timedelta(milliseconds=milliseconds)
