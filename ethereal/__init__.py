"""Read-only tools for querying Ethereum nodes, ENS names and the ERC-1820 registry."""

__version__ = "2.0.0"