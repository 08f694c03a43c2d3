"""Calculations behind extending ENS registrations."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Union

__all__ = ["rental_duration", "extended_expiry", "format_expiry"]

_EXPIRY_FORMAT = "%Y-%m-%d %H:%M"

Moment = Union[datetime, int]


def rental_duration(value: int, cost_per_second: int) -> int:
    """Whole seconds of registration that ``value`` Wei pays for."""
    if cost_per_second <= 0:
        raise ValueError("rental cost per second must be greater than 0")
    if value < 0:
        raise ValueError("value must not be negative")
    return value // cost_per_second


def _moment(value: Moment) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromtimestamp(int(value))


def extended_expiry(expiry: Moment, duration: int) -> datetime:
    """The expiry after adding ``duration`` seconds to the current one."""
    return _moment(expiry) + timedelta(seconds=int(duration))


def format_expiry(moment: Moment) -> str:
    """Render an expiry as ``YYYY-MM-DD HH:MM``."""
    return _moment(moment).strftime(_EXPIRY_FORMAT)