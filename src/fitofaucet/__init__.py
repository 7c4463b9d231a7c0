"""Fitochain testnet faucet."""

__version__ = "0.1.0"
