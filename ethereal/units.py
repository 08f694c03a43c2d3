"""Conversion between Wei amounts and human-readable Ether strings."""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation, localcontext

__all__ = ["UnitError", "wei_to_string", "string_to_wei", "format_balance"]


class UnitError(ValueError):
    """Raised when an amount of Ether cannot be understood."""


# Power of ten for every unit name that is accepted on input.
_UNIT_EXPONENTS = {
    "wei": 0,
    "kwei": 3,
    "babbage": 3,
    "femtoether": 3,
    "mwei": 6,
    "lovelace": 6,
    "picoether": 6,
    "gwei": 9,
    "shannon": 9,
    "nanoether": 9,
    "nano": 9,
    "microether": 12,
    "szabo": 12,
    "micro": 12,
    "milliether": 15,
    "finney": 15,
    "milli": 15,
    "ether": 18,
    "eth": 18,
    "kiloether": 21,
    "kether": 21,
    "grand": 21,
    "megaether": 24,
    "mether": 24,
    "gigaether": 27,
    "gether": 27,
    "teraether": 30,
    "tether": 30,
}

# Unit names used on output, by power of ten.
_FULL_LADDER = {
    0: "Wei",
    3: "KWei",
    6: "MWei",
    9: "GWei",
    12: "Microether",
    15: "Milliether",
    18: "Ether",
}
_STANDARD_LADDER = {exp: _FULL_LADDER[exp] for exp in (0, 9, 18)}

_AMOUNT = re.compile(r"^\s*(\d+(?:\.\d*)?|\.\d+)\s*([A-Za-z]*)\s*$")


def _plain(value: Decimal) -> str:
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def wei_to_string(wei: int, standard: bool = True) -> str:
    """Render a Wei amount in the largest unit that keeps the value at least 1.

    With ``standard`` only Wei, GWei and Ether are used; otherwise every
    thousand-step unit up to Ether is available.
    """
    wei = int(wei)
    if wei == 0:
        return "0"
    sign = "-" if wei < 0 else ""
    magnitude = abs(wei)
    ladder = _STANDARD_LADDER if standard else _FULL_LADDER
    exponent = max(exp for exp in ladder if magnitude >= 10**exp)
    with localcontext() as ctx:
        ctx.prec = len(str(magnitude)) + 40
        value = Decimal(magnitude).scaleb(-exponent)
    return f"{sign}{_plain(value)} {ladder[exponent]}"


def string_to_wei(value: str) -> int:
    """Parse an amount such as ``"1.5 ether"`` or ``"20gwei"`` into Wei.

    A bare number is taken to be in Wei.
    """
    if not isinstance(value, str):
        raise UnitError(f"amount must be a string, not {type(value).__name__}")
    match = _AMOUNT.match(value)
    if match is None:
        raise UnitError(f"failed to parse amount {value!r}")
    number, unit = match.groups()
    unit = unit.lower() or "wei"
    try:
        exponent = _UNIT_EXPONENTS[unit]
    except KeyError:
        raise UnitError(f"unknown unit {unit!r}") from None
    try:
        with localcontext() as ctx:
            ctx.prec = len(number) + exponent + 10
            amount = Decimal(number).scaleb(exponent)
    except InvalidOperation as exc:
        raise UnitError(f"failed to parse amount {value!r}") from exc
    if amount != amount.to_integral_value():
        raise UnitError(f"amount {value!r} is not a whole number of Wei")
    return int(amount)


def format_balance(balance: int, wei: bool = False) -> str:
    """Format a balance for display, either as raw Wei or in standard units."""
    if balance == 0:
        return "0"
    if wei:
        return str(balance)
    return wei_to_string(balance, True)