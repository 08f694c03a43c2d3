"""Read-only access to the ENS registry, resolvers and the base registrar."""

from __future__ import annotations

import re
import time
from typing import List, Optional, Protocol, Tuple

from Crypto.Hash import keccak

from .ensname import EnsNameError, label_hash, name_hash, normalise

__all__ = [
    "EnsError",
    "Registry",
    "Resolver",
    "BaseRegistrar",
    "REGISTRY_ADDRESS",
    "UNKNOWN_ADDRESS",
    "function_selector",
    "encode_call",
    "expiry_status",
]

REGISTRY_ADDRESS = "0x00000000000C2E074eC69A0dFb2997BA6C7d2e1e"
UNKNOWN_ADDRESS = "0x" + "00" * 20

_WORD = 32
_EMPTY_RESULT = "abi: attempting to unmarshall an empty string while arguments are expected"
_SIGNATURE = re.compile(r"([A-Za-z_$][\w$]*)\((.*)\)")
_UINT = re.compile(r"uint(\d*)")
_FIXED_BYTES = re.compile(r"bytes(\d+)")


class EnsError(RuntimeError):
    """Raised when an ENS lookup fails or returns an unusable result."""


class _CallClient(Protocol):
    def eth_call(self, to: str, data: bytes) -> bytes:
        ...


def _keccak(data: bytes) -> bytes:
    return keccak.new(digest_bits=256, data=data).digest()


def _canonical(signature: str) -> Tuple[str, List[str]]:
    compact = "".join(signature.split())
    match = _SIGNATURE.fullmatch(compact)
    if match is None:
        raise EnsError(f"invalid function signature {signature!r}")
    name, inner = match.groups()
    types = inner.split(",") if inner else []
    if any(not kind for kind in types):
        raise EnsError(f"invalid function signature {signature!r}")
    return f"{name}({','.join(types)})", types


def function_selector(signature: str) -> bytes:
    """The four-byte selector of a function signature such as ``owner(bytes32)``."""
    canonical, _ = _canonical(signature)
    return _keccak(canonical.encode("ascii"))[:4]


def _address_bytes(address: str) -> bytes:
    if not isinstance(address, str):
        raise EnsError(f"invalid address {address!r}")
    digits = address[2:] if address[:2].lower() == "0x" else address
    if len(digits) != 40:
        raise EnsError(f"invalid address {address!r}")
    try:
        return bytes.fromhex(digits)
    except ValueError as exc:
        raise EnsError(f"invalid address {address!r}") from exc


def _checksum(raw: bytes) -> str:
    digits = raw.hex()
    digest = _keccak(digits.encode("ascii")).hex()
    return "0x" + "".join(
        char.upper() if int(nibble, 16) >= 8 else char for char, nibble in zip(digits, digest)
    )


def _encode_static(kind: str, value) -> bytes:
    if kind == "address":
        return _address_bytes(value).rjust(_WORD, b"\x00")
    if kind == "bool":
        return int(bool(value)).to_bytes(_WORD, "big")
    uint = _UINT.fullmatch(kind)
    if uint:
        bits = int(uint.group(1) or 256)
        if isinstance(value, (bytes, bytearray)):
            value = int.from_bytes(value, "big")
        if not isinstance(value, int) or not 0 <= value < 1 << bits:
            raise EnsError(f"value {value!r} out of range for {kind}")
        return value.to_bytes(_WORD, "big")
    fixed = _FIXED_BYTES.fullmatch(kind)
    if fixed and 1 <= int(fixed.group(1)) <= _WORD:
        size = int(fixed.group(1))
        if not isinstance(value, (bytes, bytearray)) or len(value) > size:
            raise EnsError(f"value {value!r} does not fit {kind}")
        return bytes(value).ljust(_WORD, b"\x00")
    raise EnsError(f"unsupported type {kind}")


def _encode_dynamic(kind: str, value) -> bytes:
    if kind == "string":
        if not isinstance(value, str):
            raise EnsError(f"value {value!r} is not a string")
        payload = value.encode("utf-8")
    else:
        if not isinstance(value, (bytes, bytearray)):
            raise EnsError(f"value {value!r} is not bytes")
        payload = bytes(value)
    padding = -len(payload) % _WORD
    return len(payload).to_bytes(_WORD, "big") + payload + bytes(padding)


def encode_call(signature: str, *args) -> bytes:
    """ABI-encode a call: selector followed by the encoded arguments."""
    canonical, types = _canonical(signature)
    if len(args) != len(types):
        raise EnsError(f"{canonical} takes {len(types)} arguments, {len(args)} given")
    head_size = _WORD * len(types)
    heads = []
    tails = []
    tail_size = 0
    for kind, value in zip(types, args):
        if kind in ("string", "bytes"):
            tail = _encode_dynamic(kind, value)
            heads.append((head_size + tail_size).to_bytes(_WORD, "big"))
            tails.append(tail)
            tail_size += len(tail)
        else:
            heads.append(_encode_static(kind, value))
    return _keccak(canonical.encode("ascii"))[:4] + b"".join(heads) + b"".join(tails)


def _word(data: bytes, index: int) -> bytes:
    if not data:
        raise EnsError(_EMPTY_RESULT)
    start = index * _WORD
    if len(data) < start + _WORD:
        raise EnsError("contract result too short")
    return data[start : start + _WORD]


def _decode_uint(data: bytes, index: int = 0) -> int:
    return int.from_bytes(_word(data, index), "big")


def _decode_address(data: bytes) -> str:
    return _checksum(_word(data, 0)[-20:])


def _decode_string(data: bytes) -> str:
    offset = _decode_uint(data, 0)
    if len(data) < offset + _WORD:
        raise EnsError("contract result too short")
    length = int.from_bytes(data[offset : offset + _WORD], "big")
    end = offset + _WORD + length
    if len(data) < end:
        raise EnsError("contract result too short")
    try:
        return data[offset + _WORD : end].decode("utf-8")
    except UnicodeDecodeError as exc:
        raise EnsError("contract returned invalid text") from exc


def _node(domain: str) -> bytes:
    try:
        return name_hash(domain)
    except EnsNameError as exc:
        raise EnsError(str(exc)) from exc


class Registry:
    """The ENS registry contract."""

    def __init__(self, client: _CallClient, address: str = REGISTRY_ADDRESS):
        self.client = client
        self.address = _checksum(_address_bytes(address))

    def _call(self, signature: str, *args) -> bytes:
        return self.client.eth_call(self.address, encode_call(signature, *args))

    def owner(self, domain: str) -> str:
        """The controller of a domain, or the zero address if it has none."""
        return _decode_address(self._call("owner(bytes32)", _node(domain)))

    def resolver_address(self, domain: str) -> str:
        """The resolver configured for a domain, or the zero address."""
        return _decode_address(self._call("resolver(bytes32)", _node(domain)))


class Resolver:
    """The resolver contract configured for a domain."""

    def __init__(
        self,
        client: _CallClient,
        domain: str,
        address: Optional[str] = None,
        registry: Optional[Registry] = None,
    ):
        self.client = client
        self.domain = domain
        self._node = _node(domain)
        if address is None:
            address = (registry or Registry(client)).resolver_address(domain)
            if address == UNKNOWN_ADDRESS:
                raise EnsError("No resolver for that name")
        self.address_of_contract = _checksum(_address_bytes(address))

    def _call(self, signature: str, *args) -> bytes:
        return self.client.eth_call(self.address_of_contract, encode_call(signature, *args))

    def text(self, key: str) -> str:
        """The text value stored against a key; empty if unset."""
        return _decode_string(self._call("text(bytes32,string)", self._node, key))

    def pubkey(self) -> Tuple[bytes, bytes]:
        """The public key of the domain as two 32-byte values."""
        result = self._call("pubkey(bytes32)", self._node)
        return _word(result, 0), _word(result, 1)

    def address(self) -> str:
        """The address the domain resolves to, or the zero address."""
        return _decode_address(self._call("addr(bytes32)", self._node))


class BaseRegistrar:
    """The permanent registrar for a top-level domain such as ``eth``."""

    def __init__(
        self,
        client: _CallClient,
        domain: str = "eth",
        address: Optional[str] = None,
        registry: Optional[Registry] = None,
    ):
        self.client = client
        self.domain = normalise(domain)
        if address is None:
            address = (registry or Registry(client)).owner(self.domain)
            if address == UNKNOWN_ADDRESS:
                raise EnsError(f"Failed to obtain ENS registrar contract for {self.domain}")
        self.contract_address = _checksum(_address_bytes(address))

    def _label(self, domain: str) -> bytes:
        try:
            name = normalise(domain)
        except EnsNameError as exc:
            raise EnsError(str(exc)) from exc
        suffix = "." + self.domain
        if name.endswith(suffix):
            name = name[: -len(suffix)]
        if not name or "." in name:
            raise EnsError(f"{domain} is not a direct subdomain of {self.domain}")
        return label_hash(name)

    def expiry(self, domain: str) -> int:
        """Unix timestamp at which a registration expires; 0 if unregistered."""
        data = encode_call("nameExpires(uint256)", self._label(domain))
        return _decode_uint(self.client.eth_call(self.contract_address, data))


def expiry_status(timestamp: int, now: Optional[float] = None) -> bool:
    """True if an expiry timestamp has not yet passed.

    A timestamp of 0 means the domain is not registered.
    """
    if timestamp == 0:
        raise EnsError("Domain is not registered")
    if now is None:
        now = time.time()
    return timestamp - now >= 0