"""ENS domain name handling: normalisation, hashing and argument parsing."""

from __future__ import annotations

from typing import List, Tuple, Union

import idna
from Crypto.Hash import keccak

__all__ = [
    "EnsNameError",
    "normalise",
    "tld",
    "domain_level",
    "domain_part",
    "label_hash",
    "name_hash",
    "parse_pubkey",
    "format_pubkey",
    "split_domains",
    "validate_subdomain",
]

_DOMAIN_SEPARATOR = "&&"
_KEY_LENGTH = 32


class EnsNameError(ValueError):
    """Raised when a domain, label or key cannot be understood."""


def _keccak(data: bytes) -> bytes:
    return keccak.new(digest_bits=256, data=data).digest()


def _normalise_label(label: str) -> str:
    if not label:
        raise EnsNameError("domain contains an empty label")
    if label.isascii():
        return label.lower()
    try:
        mapped = idna.uts46_remap(label, std3_rules=False, transitional=False)
        return idna.decode(idna.encode(mapped, uts46=False))
    except idna.IDNAError as exc:
        raise EnsNameError(f"invalid label {label!r}: {exc}") from exc


def normalise(domain: str) -> str:
    """Normalise a domain for lookup: case-folded and mapped per UTS #46."""
    domain = domain.strip()
    if domain.endswith("."):
        domain = domain[:-1]
    if not domain:
        return ""
    return ".".join(_normalise_label(label) for label in domain.split("."))


def _labels(domain: str) -> List[str]:
    return normalise(domain).split(".")


def tld(domain: str) -> str:
    """The top-level domain of a name, e.g. ``eth`` for ``foo.eth``."""
    return _labels(domain)[-1]


def domain_level(domain: str) -> int:
    """Level of a domain: 0 for a top-level domain, 1 for ``foo.eth`` and so on."""
    return len(_labels(domain)) - 1


def domain_part(domain: str, part: int) -> str:
    """One label of a domain.

    Positive parts count from the left starting at 1; negative parts count
    from the right starting at -1.
    """
    if part == 0:
        raise EnsNameError("invalid part")
    labels = _labels(domain)
    if len(labels) < abs(part):
        raise EnsNameError("not enough parts")
    if part < 0:
        return labels[len(labels) + part]
    return labels[part - 1]


def label_hash(label: str) -> bytes:
    """Keccak-256 hash of a single normalised label."""
    normalised = normalise(label)
    if "." in normalised:
        raise EnsNameError(f"label {label!r} must not contain '.'")
    return _keccak(normalised.encode("utf-8"))


def name_hash(domain: str) -> bytes:
    """The ENS name hash of a domain; 32 zero bytes for the empty name."""
    node = bytes(_KEY_LENGTH)
    normalised = normalise(domain)
    if not normalised:
        return node
    for label in reversed(normalised.split(".")):
        node = _keccak(node + _keccak(label.encode("utf-8")))
    return node


def _key_component(text: str, name: str) -> bytes:
    try:
        value = bytes.fromhex(text) if len(text) % 2 == 0 else None
    except ValueError:
        value = None
    if value is None or len(value) > _KEY_LENGTH:
        raise EnsNameError(f"Invalid {name}")
    return value.rjust(_KEY_LENGTH, b"\x00")


def parse_pubkey(key: str) -> Tuple[bytes, bytes]:
    """Parse a public key given as ``(x,y)`` in hex into two 32-byte values."""
    if not key:
        raise EnsNameError("--key is required")
    parts = key.lower().split(",")
    if len(parts) != 2:
        raise EnsNameError("Key should be in (x,y) format")
    x_text = parts[0].strip().removeprefix("(").removeprefix("0x")
    y_text = parts[1].strip().removeprefix("0x").removesuffix(")")
    return _key_component(x_text, "x"), _key_component(y_text, "y")


def _key_bytes(value: Union[bytes, int]) -> bytes:
    if isinstance(value, int):
        if value < 0 or value >= 1 << (8 * _KEY_LENGTH):
            raise EnsNameError("key component out of range")
        return value.to_bytes(_KEY_LENGTH, "big")
    value = bytes(value)
    if len(value) > _KEY_LENGTH:
        raise EnsNameError("key component longer than 32 bytes")
    return value.rjust(_KEY_LENGTH, b"\x00")


def format_pubkey(x: Union[bytes, int], y: Union[bytes, int]) -> str:
    """Render a public key as ``(0x<x>,0x<y>)`` with 32-byte hex components."""
    return f"(0x{_key_bytes(x).hex()},0x{_key_bytes(y).hex()})"


def split_domains(domains: str, domain: str) -> List[str]:
    """Domains to act on: ``domains`` split on ``&&`` if given, else ``domain``."""
    if not domain and not domains:
        raise EnsNameError("--domain or --domains is required")
    if domains:
        return domains.split(_DOMAIN_SEPARATOR)
    return [domain]


def validate_subdomain(label: str) -> str:
    """Check a subdomain label is present and holds no '.'; return it."""
    if not label:
        raise EnsNameError("--subdomain is required")
    if "." in label:
        raise EnsNameError("subdomain should not contain the '.' character")
    return label