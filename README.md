# ethereal

Read-only command-line tools for inspecting an Ethereum network through a
node's JSON-RPC interface: balances, network statistics, gas prices,
Ethereum Name Service (ENS) records and the ERC-1820 interface registry.

## Installation

```
pip install .
```

For the tests:

```
pip install .[test]
pytest
```

## Command line

Installing the package provides the `ethereal` command. Commands are
grouped by subject:

```
ethereal ether balance --address=0x5FfC014343cd971B7eb70732021E26C35B744cc4
ethereal network id
ethereal network blocktime --blocks=72
ethereal network blocktime --time=1h
ethereal network gps --blocks=5
ethereal network tps --blocks=5
ethereal network usage --blocks=5
ethereal node sync
ethereal gas price --blocks=5
ethereal ens expiry --domain=enstest.eth
ethereal ens info --domain=enstest.eth
ethereal ens resolver get --domain=enstest.eth
ethereal ens text get --domain=enstest.eth --key=url
ethereal ens pubkey get --domain=enstest.eth
ethereal registry implementer get --interface=ERC777Token --address=0x1234...
ethereal registry implements --interface=ERC777Token --address=0x1234...
ethereal registry manager get --address=0x1234...
```

`ether` may also be written `eth`. Run `ethereal --help`, or `--help`
after any subcommand, for the full list of options.

Every command accepts these options, given after the command name:

- `--connection`: the node's RPC endpoint (default `http://localhost:8545`).
- `--timeout`: seconds to wait for the node (default 30).
- `--quiet`: print nothing; the exit status carries the result.
- `--verbose`: extra output, such as per-block figures.
- `--debug`: debug logging.

Some command-specific options:

- `ether balance --block` takes a decimal block number or a block hash;
  `--wei` prints the balance in Wei rather than Wei/GWei/Ether units.
- `network blocktime --time` takes a duration such as `90s`, `1h` or
  `1h30m` and hunts for the block at the start of that period instead of
  counting back `--blocks`.
- `gas price --lowest` reports the lowest price seen rather than the
  average of the ninth decile of transaction prices; `--wei` prints Wei.
- `ens expiry --timestamp` prints the expiry as a Unix timestamp.

Addresses may be given as `0x`-prefixed hex or as ENS names, which are
resolved through their resolver.

The exit status is 0 on success and 1 otherwise. Beyond errors, 1 is also
returned when a balance is zero, the node is still syncing, no gas or
transactions were seen (`gps`, `tps` and `usage` in quiet mode), an ENS
registration has expired or is unregistered, an interface has no
implementer, or an address does not implement an interface. Error messages
go to standard error unless `--quiet` is given.

## Library use

The building blocks can also be used from Python:

```python
from ethereal.rpc import Client
from ethereal.units import wei_to_string, string_to_wei
from ethereal.ensname import name_hash, normalise

client = Client("http://localhost:8545")
print(client.network_id())
print(wei_to_string(string_to_wei("1.5 ether"), True))
print(name_hash(normalise("enstest.eth")).hex())
```

`Client` takes an optional `transport`, a callable that receives the
JSON-RPC request as a dict and returns the response dict, so it can be
pointed at something other than HTTP.

The modules are:

- `ethereal.units`: `wei_to_string`, `string_to_wei` and `format_balance`.
- `ethereal.rpc`: `Client`, with `Block`, `Transaction` and `SyncProgress`
  records, plus `parse_block_spec` and `describe_sync`.
- `ethereal.network`: `gas_per_second`, `transactions_per_second`,
  `gas_usage`, `block_time_over_blocks`, `block_time_over_period` and
  `truncate_block_time`.
- `ethereal.gasprice`: `expected_gas_price` and its helpers
  `valid_prices`, `ninth_decile` and `lowest_price`.
- `ethereal.transfers`: `parse_data`, `check_transfer_balance`,
  `sweep_fee`, `sweep_amount` and `gas_limit_option`.
- `ethereal.ensname`: `normalise`, `tld`, `domain_level`, `domain_part`,
  `label_hash`, `name_hash`, `parse_pubkey`, `format_pubkey`,
  `split_domains` and `validate_subdomain`.
- `ethereal.ens`: `Registry`, `Resolver`, `BaseRegistrar`,
  `encode_call`, `function_selector` and `expiry_status`.
- `ethereal.ensops`: `rental_duration`, `extended_expiry` and
  `format_expiry`.
- `ethereal.registry`: `Erc1820Registry`, `Implementer` and
  `interface_hash`.

## What it does not do

The package only reads from the chain. It has no keystore, does not sign
or send transactions, and so has no commands to transfer or sweep Ether,
register, extend, transfer or release ENS names, or set resolvers, text,
public keys, subdomains, or ERC-1820 implementers and managers. The
helpers in `ethereal.transfers` and `ethereal.ensops` compute the figures
such operations need but submit nothing. Reverse resolution of addresses
to names and ENS content hashes are not supported, and there is no
configuration file: every setting is given on the command line.