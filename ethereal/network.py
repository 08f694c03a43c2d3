"""Network statistics gathered from recent blocks."""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from datetime import timedelta
from fractions import Fraction
from typing import Callable, List, Optional, Protocol, Tuple, Union

from .rpc import Block

__all__ = [
    "BlockStat",
    "gas_per_second",
    "transactions_per_second",
    "gas_usage",
    "block_time_over_blocks",
    "block_time_over_period",
    "truncate_block_time",
]

_NANOSECONDS = 10**9
_TRUNCATION_NS = 10_000_000  # block times are reported to 10ms
_GUESS_SECONDS_PER_BLOCK = 15
_INITIAL_INTERVAL = 14

Seconds = Union[int, float, Fraction, timedelta]


class _BlockSource(Protocol):
    def block_by_number(self, number: Optional[int] = None) -> Block:
        ...


@dataclass(frozen=True)
class BlockStat:
    """Per-block figure: an amount (gas or transactions) over a span of time.

    ``limit`` is the block gas limit, filled in for usage statistics only.
    """

    number: int
    amount: int
    seconds: float = 0.0
    limit: int = 0

    @property
    def percent(self) -> float:
        """The amount as a percentage of the limit."""
        return _ratio(100 * self.amount, self.limit)


def _ratio(numerator: float, denominator: float) -> float:
    if denominator == 0:
        if numerator == 0:
            return math.nan
        return math.copysign(math.inf, numerator)
    return numerator / denominator


def _as_seconds(value: Seconds) -> float:
    if isinstance(value, timedelta):
        return value.total_seconds()
    return float(value)


def _trunc_div(numerator: int, denominator: int) -> int:
    quotient = abs(numerator) // abs(denominator)
    return quotient if (numerator >= 0) == (denominator > 0) else -quotient


def _rate(
    client: _BlockSource, blocks: int, measure: Callable[[Block], int]
) -> Tuple[float, List[BlockStat]]:
    stats: List[BlockStat] = []
    total = 0
    duration = 0.0
    later: Optional[Block] = None
    number: Optional[int] = None
    for _ in range(max(blocks + 1, 0)):
        block = client.block_by_number(number)
        if later is not None:
            seconds = float(later.timestamp - block.timestamp)
            amount = measure(later)
            total += amount
            duration += seconds
            stats.append(BlockStat(number=number + 1, amount=amount, seconds=seconds))
        number = block.number - 1
        later = block
    return _ratio(float(total), duration), stats


def gas_per_second(client: _BlockSource, blocks: int = 5) -> Tuple[float, List[BlockStat]]:
    """Gas used per second over the most recent ``blocks`` blocks.

    Returns the rate and one statistic per block, latest first.
    """
    return _rate(client, blocks, lambda block: block.gas_used)


def transactions_per_second(
    client: _BlockSource, blocks: int = 5
) -> Tuple[float, List[BlockStat]]:
    """Transactions processed per second over the most recent ``blocks`` blocks.

    Returns the rate and one statistic per block, latest first.
    """
    return _rate(client, blocks, lambda block: len(block.transactions))


def gas_usage(client: _BlockSource, blocks: int = 5) -> Tuple[float, List[BlockStat]]:
    """Percentage of the gas limit used over the most recent ``blocks`` blocks.

    Returns the overall percentage and one statistic per block, latest first.
    """
    if blocks < 1:
        raise ValueError("--blocks must be at least 1")
    stats: List[BlockStat] = []
    number: Optional[int] = None
    for _ in range(blocks):
        block = client.block_by_number(number)
        stats.append(BlockStat(number=block.number, amount=block.gas_used, limit=block.gas_limit))
        number = block.number - 1
    gas = sum(stat.amount for stat in stats)
    limit = sum(stat.limit for stat in stats)
    if gas == 0 and limit == 0:
        raise ValueError("blocks have no gas limit")
    return _ratio(100 * gas, limit), stats


def _gap(last: Tuple[int, int], old: Tuple[int, int]) -> float:
    last_number, last_time = last
    old_number, old_time = old
    span = last_number - old_number
    if span == 0:
        raise ValueError("no blocks between the chosen points")
    gap_ns = _trunc_div((last_time - old_time) * _NANOSECONDS, span)
    return gap_ns / _NANOSECONDS


def block_time_over_blocks(client: _BlockSource, blocks: int = 72) -> float:
    """Average time in seconds between the latest block and the one ``blocks`` before it."""
    if blocks == 0:
        raise ValueError("--blocks must not be 0")
    latest = client.block_by_number(None)
    old_number = latest.number - blocks
    old = client.block_by_number(old_number)
    return _gap((latest.number, latest.timestamp), (old_number, old.timestamp))


def block_time_over_period(
    client: _BlockSource, period: Seconds, now: Optional[float] = None
) -> float:
    """Average time in seconds between blocks over roughly the last ``period``.

    The block at the start of the period is hunted for by guessing from the
    time differences of blocks already seen.
    """
    period_seconds = _as_seconds(period)
    if period_seconds <= 0:
        raise ValueError("period must be greater than 0")
    if now is None:
        now = time.time()
    required_time = now - period_seconds

    latest = client.block_by_number(None)
    last_number, last_time = latest.number, latest.timestamp

    guess = last_number - int(period_seconds / _GUESS_SECONDS_PER_BLOCK)
    interval = _INITIAL_INTERVAL
    checked = {last_number}
    old_number = last_number
    old_time: Optional[int] = None
    while True:
        block = client.block_by_number(guess)
        hunt_number, hunt_time = block.number, block.timestamp
        checked.add(hunt_number)
        if abs(hunt_number - old_number) <= 1:
            break

        delta = hunt_time - required_time
        guess -= int(delta / interval)
        if guess in checked:
            interval *= 2
            guess += int(delta / interval)

        old_time, old_number = hunt_time, hunt_number
        if guess == old_number:
            break

    if old_time is None or old_number == last_number:
        raise ValueError("period too short to span more than one block")
    return _gap((last_number, last_time), (old_number, old_time))


def truncate_block_time(seconds: Seconds) -> float:
    """Truncate a block time towards zero to a whole number of 10ms steps."""
    if isinstance(seconds, timedelta):
        exact = Fraction(seconds.days * 86400 + seconds.seconds) + Fraction(
            seconds.microseconds, 10**6
        )
    else:
        exact = Fraction(seconds)
    nanoseconds = math.trunc(exact * _NANOSECONDS)
    truncated = _trunc_div(nanoseconds, _TRUNCATION_NS) * _TRUNCATION_NS
    return truncated / _NANOSECONDS