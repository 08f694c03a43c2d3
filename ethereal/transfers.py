"""Calculations behind Ether transfers and sweeps."""

from __future__ import annotations

import binascii
from typing import Optional

from .units import wei_to_string

__all__ = [
    "TransferError",
    "parse_data",
    "check_transfer_balance",
    "sweep_fee",
    "sweep_amount",
    "gas_limit_option",
]


class TransferError(ValueError):
    """Raised when a transfer or sweep cannot be made as requested."""


def parse_data(data: str) -> bytes:
    """Decode transaction data given as a hex string, with or without ``0x``.

    An odd number of digits is padded with a leading zero.
    """
    if data.startswith("0x"):
        data = data[2:]
    if len(data) % 2 == 1:
        data = "0" + data
    try:
        return binascii.unhexlify(data)
    except (binascii.Error, ValueError) as exc:
        raise TransferError("Failed to parse data") from exc


def check_transfer_balance(balance: int, amount: int) -> None:
    """Ensure a balance is strictly greater than the amount to transfer."""
    if balance <= amount:
        raise TransferError(
            f"Balance of {wei_to_string(balance, True)} insufficient for transfer"
        )


def sweep_fee(base_fee: int) -> int:
    """Fee per gas used for a sweep: 150% of the current base fee."""
    return (base_fee * 3) // 2


def sweep_amount(balance: int, gas: int, base_fee: int) -> int:
    """Amount left to send once the gas for a sweep is paid for."""
    if balance <= 0:
        raise TransferError("Balance is 0; nothing to sweep")
    gas_cost = gas * sweep_fee(base_fee)
    amount = balance - gas_cost
    if amount < 0:
        raise TransferError(
            f"Balance of {wei_to_string(balance, True)} does not cover gas cost of "
            f"{wei_to_string(gas_cost, True)}"
        )
    return amount


def gas_limit_option(limit: Optional[int]) -> Optional[int]:
    """The gas limit to use, or None to let it be estimated."""
    if limit is None or limit <= 0:
        return None
    return int(limit)