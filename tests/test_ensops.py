from datetime import datetime, timedelta

import pytest

from ethereal.ensops import extended_expiry, format_expiry, rental_duration


@pytest.mark.parametrize(
    "value, cost", [(10**18, 10**9), (10**17 + 7, 3_170_979), (5, 7), (0, 1)]
)
def test_rental_duration_bounds(value, cost):
    duration = rental_duration(value, cost)
    assert duration * cost <= value < (duration + 1) * cost


def test_rental_duration_zero_cost():
    with pytest.raises(ValueError):
        rental_duration(100, 0)


def test_rental_duration_negative_value():
    with pytest.raises(ValueError):
        rental_duration(-1, 10)


def test_extended_expiry_from_datetime():
    base = datetime(2020, 1, 2, 3, 4)
    assert extended_expiry(base, 3600) - base == timedelta(seconds=3600)


def test_extended_expiry_from_timestamp():
    ts = 1_600_000_000
    assert extended_expiry(ts, 0).timestamp() == ts
    assert extended_expiry(ts, 60) - extended_expiry(ts, 0) == timedelta(minutes=1)


def test_format_expiry():
    assert format_expiry(datetime(2020, 1, 2, 3, 4, 59)) == "2020-01-02 03:04"


def test_format_expiry_timestamp_matches_datetime():
    ts = 1_600_000_000
    assert format_expiry(ts) == format_expiry(datetime.fromtimestamp(ts))