"""Estimation of the gas price needed for inclusion, based on recent blocks."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, List, Optional, Protocol

from .rpc import Block
from .units import wei_to_string

__all__ = [
    "NoTransactionsError",
    "valid_prices",
    "ninth_decile",
    "lowest_price",
    "expected_gas_price",
]

_log = logging.getLogger(__name__)


class NoTransactionsError(LookupError):
    """Raised when the examined blocks hold no priced transactions."""


class _BlockSource(Protocol):
    def block_by_number(self, number: Optional[int] = None) -> Block:
        ...


def valid_prices(prices: Iterable[int]) -> List[int]:
    """Gas prices ordered highest first, with zero-priced entries removed."""
    return sorted((price for price in prices if price != 0), reverse=True)


def ninth_decile(prices: List[int]) -> List[int]:
    """The prices in the ninth decile of a list ordered highest first."""
    count = len(prices)
    if count == 0:
        return []
    return prices[(count * 8) // 10 : (count * 9) // 10 + 1]


def lowest_price(prices: Iterable[int]) -> Optional[int]:
    """The lowest non-zero gas price, or None if there is none."""
    valid = valid_prices(prices)
    return valid[-1] if valid else None


def _block_time(block: Block) -> str:
    return datetime.fromtimestamp(block.timestamp).strftime("%y/%m/%d %H:%M:%S")


def expected_gas_price(client: _BlockSource, blocks: int = 5, lowest: bool = False) -> int:
    """Expected inclusion gas price in Wei over the latest ``blocks`` blocks.

    By default this is the average price of the ninth-decile transactions
    across all blocks; with ``lowest`` it is the lowest price seen in any block
    (0 if no priced transaction was found).
    """
    if blocks <= 0:
        raise ValueError("--blocks must be greater than 0")

    lowest_seen = 0
    total_price = 0
    total_txs = 0
    number: Optional[int] = None
    for _ in range(blocks):
        block = client.block_by_number(number)
        number = block.number
        prices = valid_prices(tx.gas_price for tx in block.transactions)
        if prices:
            if lowest:
                block_lowest = prices[-1]
                _log.info(
                    "Lowest inclusion price for block %d (%s) is %s",
                    number,
                    _block_time(block),
                    wei_to_string(block_lowest, True),
                )
                if lowest_seen == 0 or block_lowest < lowest_seen:
                    lowest_seen = block_lowest
            else:
                decile = ninth_decile(prices)
                block_total = sum(decile)
                total_price += block_total
                total_txs += len(decile)
                _log.info(
                    "Expected inclusion price for block %d (%s) over %d transactions is %s",
                    number,
                    _block_time(block),
                    len(decile),
                    wei_to_string(block_total // len(decile), True),
                )
        number -= 1
        if number < 0:
            break

    if lowest:
        return lowest_seen
    if total_txs == 0:
        raise NoTransactionsError("No transactions obtained")
    return total_price // total_txs