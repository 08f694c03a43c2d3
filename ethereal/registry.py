"""Read-only access to the ERC-1820 pseudo-introspection registry."""

from __future__ import annotations

from typing import Protocol

from Crypto.Hash import keccak

from .ens import UNKNOWN_ADDRESS, _checksum, _address_bytes, _decode_address, _word, encode_call

__all__ = [
    "ERC1820_REGISTRY_ADDRESS",
    "ACCEPT_MAGIC",
    "Erc1820Registry",
    "Implementer",
    "interface_hash",
]

ERC1820_REGISTRY_ADDRESS = "0x1820a4B7618BdE71Dce8cdc73aAB6C95905faD24"


def _keccak(data: bytes) -> bytes:
    return keccak.new(digest_bits=256, data=data).digest()


# Value an implementer returns to confirm it implements an interface for an address.
ACCEPT_MAGIC = _keccak(b"ERC1820_ACCEPT_MAGIC")


class _CallClient(Protocol):
    def eth_call(self, to: str, data: bytes) -> bytes:
        ...


def interface_hash(name: str) -> bytes:
    """The 32-byte hash under which an interface name is registered."""
    return _keccak(name.encode("utf-8"))


class Erc1820Registry:
    """The ERC-1820 registry contract."""

    def __init__(self, client: _CallClient, address: str = ERC1820_REGISTRY_ADDRESS):
        self.client = client
        self.address = _checksum(_address_bytes(address))

    def _call(self, signature: str, *args) -> bytes:
        return self.client.eth_call(self.address, encode_call(signature, *args))

    def interface_implementer(self, interface: str, address: str) -> str:
        """The implementer of an interface for an address, or the zero address."""
        result = self._call(
            "getInterfaceImplementer(address,bytes32)", address, interface_hash(interface)
        )
        return _decode_address(result)

    def manager(self, address: str) -> str:
        """The manager recorded for an address, or the zero address."""
        return _decode_address(self._call("getManager(address)", address))

    def effective_manager(self, address: str) -> str:
        """The address that manages ``address``: its manager, or itself if none is set."""
        manager = self.manager(address)
        return address if manager == UNKNOWN_ADDRESS else manager


class Implementer:
    """A contract that may implement interfaces on behalf of addresses."""

    def __init__(self, client: _CallClient, address: str):
        self.client = client
        self.address = _checksum(_address_bytes(address))

    def implements_interface(self, interface: str, address: str = UNKNOWN_ADDRESS) -> bool:
        """True if the contract accepts implementing ``interface`` for ``address``."""
        data = encode_call(
            "canImplementInterfaceForAddress(bytes32,address)", interface_hash(interface), address
        )
        result = self.client.eth_call(self.address, data)
        return _word(result, 0) == ACCEPT_MAGIC