"""Blockchain integration for the faucet."""

from .client import ChainClient
from .networks import NetworkInfo
from .wallet import FaucetWallet, load_wallet

__all__ = ["ChainClient", "FaucetWallet", "NetworkInfo", "load_wallet"]
