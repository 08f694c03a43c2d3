"""A small JSON-RPC client for an Ethereum execution node."""

from __future__ import annotations

import itertools
import json
import re
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Union

__all__ = [
    "RpcError",
    "Transaction",
    "Block",
    "SyncProgress",
    "Client",
    "parse_block_spec",
    "describe_sync",
]

Transport = Callable[[dict], dict]

_BLOCK_NUMBER = re.compile(r"^[0-9]+$")
_MISSING_STATE_MESSAGE = (
    "Connection does not have information on that block, please change the "
    "connection parameter to point to a full synced node"
)


class RpcError(RuntimeError):
    """Raised when the node reports an error or returns an unusable reply."""

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.code = code


def _quantity(value: Any, default: int = 0) -> int:
    if value is None:
        return default
    if isinstance(value, int):
        return value
    try:
        return int(value, 16)
    except (TypeError, ValueError) as exc:
        raise RpcError(f"invalid quantity {value!r}") from exc


def _to_hex(number: int) -> str:
    return hex(number)


@dataclass(frozen=True)
class Transaction:
    """A transaction as it appears in a block."""

    hash: str
    sender: Optional[str] = None
    to: Optional[str] = None
    value: int = 0
    gas: int = 0
    gas_price: int = 0
    max_fee_per_gas: Optional[int] = None
    max_priority_fee_per_gas: Optional[int] = None

    @classmethod
    def from_json(cls, data: Union[str, dict]) -> "Transaction":
        if isinstance(data, str):
            return cls(hash=data)
        max_fee = data.get("maxFeePerGas")
        max_priority = data.get("maxPriorityFeePerGas")
        return cls(
            hash=data.get("hash", ""),
            sender=data.get("from"),
            to=data.get("to"),
            value=_quantity(data.get("value")),
            gas=_quantity(data.get("gas")),
            gas_price=_quantity(data.get("gasPrice")),
            max_fee_per_gas=None if max_fee is None else _quantity(max_fee),
            max_priority_fee_per_gas=None if max_priority is None else _quantity(max_priority),
        )


@dataclass(frozen=True)
class Block:
    """The parts of a block that the commands use."""

    number: int
    hash: str
    timestamp: int
    gas_used: int
    gas_limit: int
    miner: Optional[str] = None
    base_fee: Optional[int] = None
    transactions: tuple = field(default_factory=tuple)

    @classmethod
    def from_json(cls, data: dict) -> "Block":
        base_fee = data.get("baseFeePerGas")
        return cls(
            number=_quantity(data.get("number")),
            hash=data.get("hash", ""),
            timestamp=_quantity(data.get("timestamp")),
            gas_used=_quantity(data.get("gasUsed")),
            gas_limit=_quantity(data.get("gasLimit")),
            miner=data.get("miner"),
            base_fee=None if base_fee is None else _quantity(base_fee),
            transactions=tuple(Transaction.from_json(tx) for tx in data.get("transactions", ())),
        )


@dataclass(frozen=True)
class SyncProgress:
    """Synchronisation state of a node that is still catching up."""

    current_block: int
    highest_block: int
    pulled_states: int = 0
    known_states: int = 0

    @classmethod
    def from_json(cls, data: dict) -> "SyncProgress":
        return cls(
            current_block=_quantity(data.get("currentBlock")),
            highest_block=_quantity(data.get("highestBlock")),
            pulled_states=_quantity(data.get("pulledStates")),
            known_states=_quantity(data.get("knownStates")),
        )


def _http_transport(url: str, timeout: float) -> Transport:
    def send(payload: dict) -> dict:
        request = urllib.request.Request(
            url,
            data=json.dumps(payload).encode(),
            headers={"Content-Type": "application/json"},
            method="POST",
        )
        try:
            with urllib.request.urlopen(request, timeout=timeout) as response:
                return json.loads(response.read())
        except (urllib.error.URLError, OSError, ValueError) as exc:
            raise RpcError(f"failed to contact node at {url}: {exc}") from exc

    return send


class Client:
    """JSON-RPC access to a node; the transport may be replaced."""

    def __init__(
        self,
        url: str = "http://localhost:8545",
        *,
        transport: Optional[Transport] = None,
        timeout: float = 30.0,
    ):
        self.url = url
        self._transport = transport or _http_transport(url, timeout)
        self._ids = itertools.count(1)

    def call(self, method: str, *args: Any) -> Any:
        """Invoke an RPC method and return its result."""
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": list(args)}
        response = self._transport(payload)
        if not isinstance(response, dict):
            raise RpcError(f"malformed response to {method}")
        error = response.get("error")
        if error:
            if isinstance(error, dict):
                raise RpcError(str(error.get("message", "unknown error")), error.get("code"))
            raise RpcError(str(error))
        if "result" not in response:
            raise RpcError(f"no result in response to {method}")
        return response["result"]

    def _block(self, method: str, selector: str) -> Block:
        result = self.call(method, selector, True)
        if result is None:
            raise RpcError(f"block {selector} not found")
        return Block.from_json(result)

    def block_by_number(self, number: Optional[int] = None) -> Block:
        """Fetch a block by number, or the latest block if none is given."""
        selector = "latest" if number is None else _to_hex(number)
        return self._block("eth_getBlockByNumber", selector)

    def block_by_hash(self, block_hash: str) -> Block:
        """Fetch a block by its hash."""
        return self._block("eth_getBlockByHash", block_hash)

    def balance_at(self, address: str, block_number: Optional[int] = None) -> int:
        """Balance in Wei of an address, at a block or at the latest block."""
        selector = "latest" if block_number is None else _to_hex(block_number)
        try:
            result = self.call("eth_getBalance", address, selector)
        except RpcError as exc:
            if str(exc).startswith("missing trie node"):
                raise RpcError(_MISSING_STATE_MESSAGE, exc.code) from exc
            raise
        return _quantity(result)

    def network_id(self) -> int:
        """The network ID reported by the node."""
        result = self.call("net_version")
        try:
            return int(result, 0) if isinstance(result, str) else int(result)
        except ValueError as exc:
            raise RpcError(f"invalid network ID {result!r}") from exc

    def chain_id(self) -> int:
        """The chain ID reported by the node."""
        return _quantity(self.call("eth_chainId"))

    def sync_progress(self) -> Optional[SyncProgress]:
        """Sync state, or None when the node is synchronised."""
        result = self.call("eth_syncing")
        if not result:
            return None
        return SyncProgress.from_json(result)

    def eth_call(self, to: str, data: bytes) -> bytes:
        """Run a read-only contract call against the latest block."""
        result = self.call("eth_call", {"to": to, "data": "0x" + bytes(data).hex()}, "latest")
        if not isinstance(result, str):
            raise RpcError("malformed eth_call result")
        try:
            return bytes.fromhex(result[2:] if result.startswith("0x") else result)
        except ValueError as exc:
            raise RpcError(f"malformed eth_call result {result!r}") from exc


def parse_block_spec(spec: Optional[str]) -> Union[int, str, None]:
    """Interpret a block given as a decimal number or as a hash.

    Returns None for an empty spec, an int for a number, otherwise the hash
    as a 32-byte 0x-prefixed hex string.
    """
    if not spec:
        return None
    if _BLOCK_NUMBER.match(spec):
        return int(spec, 10)
    digits = spec[2:] if spec[:2].lower() == "0x" else spec
    if len(digits) % 2:
        digits = "0" + digits
    try:
        raw = bytes.fromhex(digits)
    except ValueError as exc:
        raise ValueError(f"Failed to parse block {spec}") from exc
    return "0x" + raw[-32:].rjust(32, b"\x00").hex()


def describe_sync(progress: Optional[SyncProgress], verbose: bool = False) -> str:
    """Human-readable description of a node's sync state."""
    if progress is None:
        return "Node is synchronised"
    lines = [f"Node is at block {progress.current_block}, syncing to block {progress.highest_block}"]
    if verbose:
        lines.append(
            f"Pulled states is {progress.pulled_states}, known states is {progress.known_states}"
        )
    return "\n".join(lines)