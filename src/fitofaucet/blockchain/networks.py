"""Explorer links for the configured testnet."""

from dataclasses import dataclass


@dataclass
class NetworkInfo:
    """Runtime description of the network the faucet pays out on.

    Attributes
    ----------
    chain_id : int
        The chain ID (discovered from RPC).
    token_symbol : str
        Ticker of the native coin, used in user-facing messages.
    block_explorer_url : str | None
        Optional block explorer base URL.
    """

    chain_id: int
    token_symbol: str = "FITO"
    block_explorer_url: str | None = None

    def _explorer_link(self, kind: str, value: str) -> str | None:
        if not self.block_explorer_url:
            return None
        return f"{self.block_explorer_url.rstrip('/')}/{kind}/{value}"

    def get_tx_url(self, tx_hash: str) -> str | None:
        """Explorer URL for a transaction, or None if no explorer is configured."""
        return self._explorer_link("tx", tx_hash)

    def get_address_url(self, address: str) -> str | None:
        """Explorer URL for an address, or None if no explorer is configured."""
        return self._explorer_link("address", address)
