from dataclasses import replace
from datetime import date, datetime

import numpy as np
import pytest
from pytz import FixedOffset, timezone

from naturaltime.validators import (
    InvalidInstantError,
    InvalidNaturalDateError,
    NaturalTimeError,
    UnsupportedEraError,
    ValidationError,
    check_natural_date,
    is_valid_latitude,
    is_valid_longitude,
    is_valid_natural_date,
    is_valid_number,
    parse_instant,
    utc_datetime,
)


def test_numbers():
    assert is_valid_number(0)
    assert is_valid_number(-3.5)
    assert is_valid_number(np.float64(1.25))
    assert not is_valid_number(True)
    assert not is_valid_number("1")
    assert not is_valid_number(float("nan"))
    assert not is_valid_number(float("-inf"))
    assert not is_valid_number(None)


def test_ranges():
    assert is_valid_longitude(-180) and is_valid_longitude(180)
    assert not is_valid_longitude(180.0001)
    assert is_valid_latitude(-90) and is_valid_latitude(90)
    assert not is_valid_latitude(-90.5)


def test_error_messages_name_parameter_value_and_constraint():
    error = InvalidInstantError("instant", "soon", "ISO-8601 string")
    assert str(error) == "Invalid instant: 'soon'. Expected ISO-8601 string"
    assert isinstance(error, ValidationError)
    assert isinstance(error, ValueError)
    assert isinstance(error, NaturalTimeError)


def test_unsupported_era_error():
    error = UnsupportedEraError(3000, "ephemeris ends in 2050")
    assert error.year == 3000
    assert "3000" in str(error)
    assert "ephemeris ends in 2050" in str(error)
    assert not isinstance(error, ValueError)


def test_parse_instant():
    assert parse_instant(0) == 0
    assert parse_instant(-1.9) == -1
    assert parse_instant("1970-01-01T00:00:01Z") == 1000
    assert parse_instant("1970-01-01T01:00:00+01:00") == 0
    assert parse_instant(datetime(1970, 1, 1, 0, 0, 0, 1500)) == 1
    assert parse_instant(date(1970, 1, 2)) == 86_400_000
    paris = timezone("Europe/Paris")
    assert parse_instant(paris.localize(datetime(2023, 7, 1, 14))) == parse_instant(
        "2023-07-01T12:00:00Z"
    )


def test_parse_instant_names_the_parameter():
    with pytest.raises(InvalidInstantError) as excinfo:
        parse_instant("yesterday", parameter="event")
    assert excinfo.value.parameter == "event"
    assert excinfo.value.value == "yesterday"


def test_utc_datetime():
    assert utc_datetime(1_356_091_200_000) == datetime.fromisoformat("2012-12-21T12:00:00+00:00")


def test_natural_date_validation(engine):
    d = engine.compute("2020-02-02T02:02:02Z", 10)
    assert is_valid_natural_date(d)
    assert check_natural_date(d) is d
    assert not is_valid_natural_date(replace(d, week=54))
    assert not is_valid_natural_date(replace(d, week_of_moon=0))
    assert not is_valid_natural_date(replace(d, day_of_week=8))
    assert not is_valid_natural_date(replace(d, is_rainbow_day=1))
    assert not is_valid_natural_date(replace(d, nadir=d.unix_time + 1))
    assert not is_valid_natural_date(replace(d, year=float("nan")))
    with pytest.raises(InvalidNaturalDateError) as excinfo:
        check_natural_date(replace(d, moon=0))
    assert excinfo.value.parameter == "naturalDate"


def test_parse_instant_rejects_instants_outside_the_datetime_range():
    east_of_utc = datetime(1, 1, 1, 1, tzinfo=FixedOffset(300))
    with pytest.raises(InvalidInstantError) as excinfo:
        parse_instant(east_of_utc, parameter="event")
    assert excinfo.value.parameter == "event"
    assert excinfo.value.value is east_of_utc
    with pytest.raises(InvalidInstantError):
        parse_instant(date(1, 1, 1))
    assert parse_instant(date(1, 1, 3)) < 0
