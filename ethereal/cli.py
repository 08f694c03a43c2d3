"""Command-line interface for querying an Ethereum node."""

from __future__ import annotations

import argparse
import logging
import re
import sys
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from typing import Iterator, List, Optional

from .ens import UNKNOWN_ADDRESS, BaseRegistrar, EnsError, Registry, Resolver, expiry_status
from .ensname import (
    EnsNameError,
    domain_level,
    domain_part,
    format_pubkey,
    label_hash,
    name_hash,
    normalise,
    tld,
)
from .gasprice import expected_gas_price
from .network import (
    block_time_over_blocks,
    block_time_over_period,
    gas_per_second,
    gas_usage,
    transactions_per_second,
    truncate_block_time,
)
from .registry import Erc1820Registry, Implementer
from .rpc import Client, RpcError, describe_sync, parse_block_spec
from .units import UnitError, format_balance, wei_to_string

__all__ = ["build_parser", "main"]

EXIT_SUCCESS = 0
EXIT_FAILURE = 1

_ADDRESS = re.compile(r"^0x[0-9a-fA-F]{40}$")
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_DURATION_UNITS = {
    "ns": Decimal("1e-9"),
    "us": Decimal("1e-6"),
    "µs": Decimal("1e-6"),
    "ms": Decimal("1e-3"),
    "s": Decimal(1),
    "m": Decimal(60),
    "h": Decimal(3600),
}
_UNREGISTERED_WARNING = """\
                            *********************
                            ***    WARNING    ***
                            *********************
This domain is not registered but has a configured resolver.  This can occur
when a previously-configured domain expires or is released.  ENS will continue
to resolve addresses for this domain but the results should not be trusted as
a malicious party could register the domain and change the resolution."""


class _Failure(Exception):
    """A command could not complete; the message explains why."""


@contextmanager
def _step(message: str) -> Iterator[None]:
    try:
        yield
    except _Failure:
        raise
    except (RpcError, EnsError, EnsNameError, UnitError, ValueError, LookupError) as exc:
        raise _Failure(f"{message}: {exc}") from exc


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise _Failure(message)


def _duration(text: str) -> float:
    """Parse a duration such as ``1h30m`` or ``90s`` into seconds."""
    text = text.strip()
    if text == "0":
        return 0.0
    parts = _DURATION_PART.findall(text)
    if not parts or "".join(number + unit for number, unit in parts) != text:
        raise argparse.ArgumentTypeError(f"invalid duration {text!r}")
    return float(sum(Decimal(number) * _DURATION_UNITS[unit] for number, unit in parts))


def _decimal_text(value: int, digits: int) -> str:
    text = format(Decimal(value).scaleb(-digits), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def _format_duration(seconds: float) -> str:
    nanoseconds = round(seconds * 10**9)
    if nanoseconds == 0:
        return "0s"
    sign = "-" if nanoseconds < 0 else ""
    nanoseconds = abs(nanoseconds)
    if nanoseconds < 10**9:
        for unit, digits in (("ms", 6), ("µs", 3), ("ns", 0)):
            if nanoseconds >= 10**digits:
                return sign + _decimal_text(nanoseconds, digits) + unit
    hours, rest = divmod(nanoseconds, 3600 * 10**9)
    minutes, rest = divmod(rest, 60 * 10**9)
    text = f"{hours}h" if hours else ""
    if hours or minutes:
        text += f"{minutes}m"
    return sign + text + _decimal_text(rest, 9) + "s"


def _float_text(value: float) -> str:
    text = repr(float(value))
    return text[:-2] if text.endswith(".0") else text


def _say(args: argparse.Namespace, text: str) -> None:
    if not args.quiet:
        print(text)


def _resolve(client: Client, text: str) -> str:
    if _ADDRESS.match(text):
        return text
    address = Resolver(client, normalise(text)).address()
    if address == UNKNOWN_ADDRESS:
        raise EnsError(f"could not resolve {text}")
    return address


# Ether.

def _ether_balance(args: argparse.Namespace, client: Client) -> int:
    _require(bool(args.address), "--address is required")
    with _step("Failed to obtain address"):
        address = _resolve(client, args.address)
    block_number = None
    with _step(f"Failed to obtain block {args.block}"):
        spec = parse_block_spec(args.block)
        if isinstance(spec, str):
            block_number = client.block_by_hash(spec).number
        else:
            block_number = spec
    with _step("Failed to obtain balance"):
        balance = client.balance_at(address, block_number)
    if balance == 0:
        _say(args, "0")
        return EXIT_FAILURE
    _say(args, format_balance(balance, args.wei))
    return EXIT_SUCCESS


# Network.

def _network_id(args: argparse.Namespace, client: Client) -> int:
    with _step("Failed to obtain network ID"):
        network = client.network_id()
    _say(args, str(network))
    return EXIT_SUCCESS


def _network_blocktime(args: argparse.Namespace, client: Client) -> int:
    with _step("Failed to obtain block time"):
        if args.time > 0:
            gap = block_time_over_period(client, args.time)
        else:
            gap = block_time_over_blocks(client, args.blocks)
    if args.quiet:
        return EXIT_SUCCESS
    print(_format_duration(truncate_block_time(gap)))
    return EXIT_SUCCESS


def _network_gps(args: argparse.Namespace, client: Client) -> int:
    with _step("Failed to obtain information about block"):
        rate, stats = gas_per_second(client, args.blocks)
    total = sum(stat.amount for stat in stats)
    if args.quiet:
        return EXIT_SUCCESS if total else EXIT_FAILURE
    if args.verbose:
        for stat in stats:
            print(f"Block {stat.number} used {stat.amount} gas in {_float_text(stat.seconds)} seconds")
    print(f"{rate:.0f}")
    return EXIT_SUCCESS


def _network_tps(args: argparse.Namespace, client: Client) -> int:
    with _step("Failed to obtain information about block"):
        rate, stats = transactions_per_second(client, args.blocks)
    total = sum(stat.amount for stat in stats)
    if args.quiet:
        return EXIT_SUCCESS if total else EXIT_FAILURE
    if args.verbose:
        for stat in stats:
            print(
                f"Block {stat.number} processed {stat.amount} transactions in "
                f"{_float_text(stat.seconds)} seconds"
            )
    print(f"{rate:.2f}")
    return EXIT_SUCCESS


def _network_usage(args: argparse.Namespace, client: Client) -> int:
    with _step("Failed to obtain information about block"):
        percent, stats = gas_usage(client, args.blocks)
    total = sum(stat.amount for stat in stats)
    if args.quiet:
        return EXIT_SUCCESS if total else EXIT_FAILURE
    if args.verbose:
        for stat in stats:
            print(
                f"Block {stat.number} used {stat.percent:.2f}% of gas limit "
                f"({stat.amount}/{stat.limit})"
            )
    print(f"{percent:.2f}%")
    return EXIT_SUCCESS


# Node.

def _node_sync(args: argparse.Namespace, client: Client) -> int:
    with _step("Failed to obtain node sync status"):
        progress = client.sync_progress()
    if args.quiet:
        return EXIT_SUCCESS if progress is None else EXIT_FAILURE
    print(describe_sync(progress, args.verbose))
    return EXIT_SUCCESS


# Gas.

def _gas_price(args: argparse.Namespace, client: Client) -> int:
    _require(args.blocks > 0, "--blocks must be greater than 0")
    with _step("Failed to obtain gas price"):
        price = expected_gas_price(client, args.blocks, args.lowest)
    if args.quiet:
        return EXIT_SUCCESS
    print(str(price) if args.wei else wei_to_string(price, True))
    return EXIT_SUCCESS


# ENS.

def _ens_domain(args: argparse.Namespace) -> str:
    _require(bool(args.domain), "--domain is required")
    with _step("Failed to normalise ENS domain"):
        return normalise(args.domain)


def _ens_expiry(args: argparse.Namespace, client: Client) -> int:
    domain = _ens_domain(args)
    with _step(f"Failed to obtain ENS registrar contract for {tld(domain)}"):
        registrar = BaseRegistrar(client, tld(domain))
    with _step("Failed to obtain expiry"):
        timestamp = registrar.expiry(domain)
    if timestamp == 0:
        _say(args, "Domain is not registered")
        return EXIT_FAILURE
    if not args.quiet:
        print(timestamp if args.timestamp else datetime.fromtimestamp(timestamp).astimezone())
    return EXIT_SUCCESS if expiry_status(timestamp) else EXIT_FAILURE


def _ens_resolver_get(args: argparse.Namespace, client: Client) -> int:
    domain = _ens_domain(args)
    with _step("No resolver for that name"):
        resolver = Registry(client).resolver_address(domain)
    _say(args, resolver)
    return EXIT_SUCCESS


def _ens_text_get(args: argparse.Namespace, client: Client) -> int:
    domain = _ens_domain(args)
    with _step("No resolver for that name"):
        resolver = Resolver(client, domain)
    with _step("Failed to obtain value for that domain"):
        value = resolver.text(args.key)
    _require(len(value) > 0, "No value for that domain")
    _say(args, value)
    return EXIT_SUCCESS


def _ens_pubkey_get(args: argparse.Namespace, client: Client) -> int:
    domain = _ens_domain(args)
    with _step("No resolver for that name"):
        resolver = Resolver(client, domain)
    with _step("Failed to obtain public key for that domain"):
        x, y = resolver.pubkey()
    _say(args, format_pubkey(x, y))
    return EXIT_SUCCESS


def _unregistered_resolver_check(registry: Registry, domain: str) -> None:
    try:
        resolver = registry.resolver_address(domain)
    except (EnsError, RpcError):
        return
    if resolver != UNKNOWN_ADDRESS:
        print(_UNREGISTERED_WARNING)


def _generic_info(client: Client, registry: Registry, domain: str) -> bool:
    with _step("Failed to obtain controller"):
        controller = registry.owner(domain)
    if controller == UNKNOWN_ADDRESS:
        print("Owner not set")
        return False
    print(f"Controller is {controller}")
    try:
        resolver = registry.resolver_address(domain)
    except (EnsError, RpcError):
        resolver = UNKNOWN_ADDRESS
    if resolver == UNKNOWN_ADDRESS:
        print("Resolver not configured")
        return True
    print(f"Resolver is {resolver}")
    try:
        address = Resolver(client, domain, address=resolver).address()
    except (EnsError, RpcError):
        return True
    if address != UNKNOWN_ADDRESS:
        print(f"Domain resolves to {address}")
    return True


def _ens_info(args: argparse.Namespace, client: Client) -> int:
    domain = _ens_domain(args)
    if args.verbose:
        label = domain_part(domain, 1)
        print(f"Normalised domain is {domain}")
        print(f"Top-level domain is {tld(domain)}")
        print(f"Domain level is {domain_level(domain)}")
        print(f"Name hash is 0x{name_hash(domain).hex()}")
        print(f"Label is {label}")
        print(f"Label hash of {label} is 0x{label_hash(label).hex()}")
    if domain_level(domain) != 1 or tld(domain) != "eth":
        return EXIT_SUCCESS
    registry = Registry(client)
    with _step(f"Failed to obtain ENS registrar contract for {tld(domain)}"):
        registrar = BaseRegistrar(client, tld(domain), registry=registry)
    with _step("Failed to obtain expiry"):
        expiry = registrar.expiry(domain)
    if expiry == 0:
        print("Name not recognised by registrar")
        _unregistered_resolver_check(registry, domain)
        return EXIT_FAILURE
    print(f"Registration expires at {datetime.fromtimestamp(expiry).astimezone()}")
    _generic_info(client, registry, domain)
    return EXIT_SUCCESS


# ERC-1820 registry.

def _registry_implementer_get(args: argparse.Namespace, client: Client) -> int:
    _require(bool(args.interface), "--interface is required")
    with _step("failed to resolve name"):
        address = _resolve(client, args.address)
    with _step("failed to obtain implementer"):
        implementer = Erc1820Registry(client).interface_implementer(args.interface, address)
    if implementer == UNKNOWN_ADDRESS:
        return EXIT_FAILURE
    _say(args, implementer)
    return EXIT_SUCCESS


def _registry_implements(args: argparse.Namespace, client: Client) -> int:
    _require(bool(args.interface), "--interface is required")
    _require(bool(args.address), "--address is required")
    with _step("failed to resolve name"):
        address = _resolve(client, args.address)
    with _step("failed to obtain implementation status"):
        implements = Implementer(client, address).implements_interface(args.interface)
    _say(args, "Yes" if implements else "No")
    return EXIT_SUCCESS if implements else EXIT_FAILURE


def _registry_manager_get(args: argparse.Namespace, client: Client) -> int:
    with _step("failed to resolve address"):
        address = _resolve(client, args.address)
    with _step("failed to obtain manager"):
        manager = Erc1820Registry(client).effective_manager(address)
    _say(args, manager)
    return EXIT_SUCCESS


def _common_options() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--connection", default="http://localhost:8545", help="node RPC endpoint")
    common.add_argument("--timeout", type=float, default=30.0, help="seconds to wait for the node")
    common.add_argument("--quiet", action="store_true", help="no output; exit status only")
    common.add_argument("--verbose", action="store_true", help="additional output")
    common.add_argument("--debug", action="store_true", help="debug output")
    return common


def build_parser() -> argparse.ArgumentParser:
    """The argument parser for every command."""
    common = _common_options()
    parser = argparse.ArgumentParser(prog="ethereal", description="Query an Ethereum node.")
    groups = parser.add_subparsers(dest="group", required=True)

    def group(name: str, help_text: str, aliases: List[str] = ()) -> argparse._SubParsersAction:
        sub = groups.add_parser(name, help=help_text, aliases=list(aliases))
        return sub.add_subparsers(dest=f"{name}_command", required=True)

    def leaf(parent, name: str, handler, help_text: str, aliases: List[str] = ()):
        command = parent.add_parser(name, help=help_text, parents=[common], aliases=list(aliases))
        command.set_defaults(handler=handler)
        return command

    ether = group("ether", "Manage Ether balances", aliases=["eth"])
    command = leaf(ether, "balance", _ether_balance, "Obtain the balance for an address")
    command.add_argument("--address", default="", help="address to show Ether balance")
    command.add_argument("--block", default="", help="block hash or number at which to show balance")
    command.add_argument("--wei", action="store_true", help="display output in number of Wei")

    network = group("network", "Network information")
    leaf(network, "id", _network_id, "Obtain the ID of the network")
    command = leaf(network, "blocktime", _network_blocktime, "Obtain the time between recent blocks")
    command.add_argument("--blocks", type=int, default=72, help="number of blocks to use")
    command.add_argument("--time", type=_duration, default=0.0, help="time over which to calculate")
    for name, handler, help_text in (
        ("gps", _network_gps, "Obtain gas-per-second"),
        ("tps", _network_tps, "Obtain transactions-per-second"),
        ("usage", _network_usage, "Obtain usage of the network in terms of % of gas capacity"),
    ):
        command = leaf(network, name, handler, help_text)
        command.add_argument("--blocks", type=int, default=5, help="number of blocks to use")

    node = group("node", "Node information")
    leaf(node, "sync", _node_sync, "Obtain sync information")

    gas = group("gas", "Manage gas")
    command = leaf(gas, "price", _gas_price, "Calculate an expected gas price")
    command.add_argument("--blocks", type=int, default=5, help="number of blocks to examine")
    command.add_argument("--wei", action="store_true", help="display output in number of Wei")
    command.add_argument("--lowest", action="store_true", help="lowest inclusion price over the blocks")

    ens = group("ens", "Manage ENS domains")

    def ens_leaf(parent, name, handler, help_text):
        command = leaf(parent, name, handler, help_text)
        command.add_argument("--domain", default="", help="ENS domain")
        return command

    command = ens_leaf(ens, "expiry", _ens_expiry, "Obtain the expiry date of an ENS domain")
    command.add_argument("--timestamp", action="store_true", help="output expiry as Unix timestamp")
    ens_leaf(ens, "info", _ens_info, "Obtain information about an ENS domain")
    resolver = ens.add_parser("resolver", help="Manage ENS resolvers").add_subparsers(
        dest="resolver_command", required=True
    )
    ens_leaf(resolver, "get", _ens_resolver_get, "Obtain the resolver of an ENS domain")
    text = ens.add_parser("text", help="Manage ENS text entries").add_subparsers(
        dest="text_command", required=True
    )
    command = ens_leaf(text, "get", _ens_text_get, "Obtain the text of an ENS domain")
    command.add_argument("--key", default="", help="the key of the text value")
    pubkey = ens.add_parser("pubkey", help="Manage ENS public keys").add_subparsers(
        dest="pubkey_command", required=True
    )
    ens_leaf(pubkey, "get", _ens_pubkey_get, "Obtain the public key of an ENS domain")

    registry = group("registry", "Manage ERC-1820 registry")
    command = leaf(
        registry, "implements", _registry_implements, "Check if an address implements an interface"
    )
    command.add_argument("--interface", default="", help="interface against which to operate")
    command.add_argument("--address", default="", help="address against which to operate")
    implementer = registry.add_parser(
        "implementer", help="Manage ERC-1820 registry implementers"
    ).add_subparsers(dest="implementer_command", required=True)
    command = leaf(
        implementer, "get", _registry_implementer_get, "Obtain the address of an interface implementer"
    )
    command.add_argument("--interface", default="", help="interface against which to operate")
    command.add_argument("--address", default="", help="address against which to operate")
    manager = registry.add_parser(
        "manager", help="Manage ERC-1820 registry managers"
    ).add_subparsers(dest="manager_command", required=True)
    command = leaf(manager, "get", _registry_manager_get, "Obtain the manager of an address")
    command.add_argument("--address", default="", help="address against which to operate")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Run a command and return its exit status."""
    args = build_parser().parse_args(argv)
    if args.debug:
        logging.basicConfig(level=logging.DEBUG, format="%(message)s")
    elif args.verbose:
        logging.basicConfig(level=logging.INFO, format="%(message)s")
    client = Client(args.connection, timeout=args.timeout)
    try:
        return args.handler(args, client)
    except _Failure as exc:
        if not args.quiet:
            print(exc, file=sys.stderr)
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())