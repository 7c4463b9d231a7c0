"""Synchronous JSON-RPC access for faucet payouts.

Every method blocks on the node; async callers run them in a worker
thread.
"""

import logging
from decimal import Decimal

from web3 import Web3
from web3.types import TxReceipt

from fitofaucet.blockchain.wallet import FaucetWallet

logger = logging.getLogger(__name__)

# Intrinsic gas of a plain value transfer to an EOA
NATIVE_TRANSFER_GAS = 21000


class ChainClient:
    """web3.py connection bound to the faucet wallet.

    Parameters
    ----------
    rpc_endpoint : str
        HTTP(S) URL of the chain node.
    wallet : FaucetWallet
        Signs outgoing transfers.
    """

    def __init__(self, rpc_endpoint: str, wallet: FaucetWallet):
        self._w3 = Web3(Web3.HTTPProvider(rpc_endpoint))
        self._wallet = wallet

    @property
    def connected(self) -> bool:
        return self._w3.is_connected()

    @property
    def chain_id(self) -> int:
        return self._w3.eth.chain_id

    @property
    def wallet_address(self) -> str:
        return self._wallet.address

    def get_balance(self, address: str) -> Decimal:
        """Native balance of ``address`` in whole coins."""
        wei = self._w3.eth.get_balance(Web3.to_checksum_address(address))
        return Decimal(str(self._w3.from_wei(wei, "ether")))

    def get_faucet_balance(self) -> Decimal:
        return self.get_balance(self._wallet.address)

    def build_transfer(self, to: str, amount: Decimal) -> dict:
        """Unsigned legacy transaction paying ``amount`` coins to ``to``.

        Uses the pending nonce of the faucet wallet, so two transactions
        built before either is broadcast will collide.
        """
        eth = self._w3.eth
        return {
            "to": Web3.to_checksum_address(to),
            "value": self._w3.to_wei(amount, "ether"),
            "gas": NATIVE_TRANSFER_GAS,
            "gasPrice": eth.gas_price,
            "nonce": eth.get_transaction_count(self._wallet.address, "pending"),
            "chainId": eth.chain_id,
        }

    def transfer(self, to: str, amount: Decimal) -> str:
        """Sign and broadcast a native transfer.

        Callers submitting concurrently must serialize calls, see
        :meth:`build_transfer`.

        Returns
        -------
        str
            0x-prefixed transaction hash, not yet confirmed.
        """
        tx = self.build_transfer(to, amount)
        signed = self._wallet.sign_transaction(tx)
        tx_hash = self._w3.eth.send_raw_transaction(signed.raw_transaction).to_0x_hex()
        logger.info(
            "Transfer broadcast",
            extra={
                "tx_hash": tx_hash,
                "to": tx["to"],
                "amount": str(amount),
                "nonce": tx["nonce"],
            },
        )
        return tx_hash

    def wait_for_receipt(self, tx_hash: str, timeout: int = 120) -> TxReceipt:
        """Block until ``tx_hash`` is mined.

        Raises
        ------
        web3.exceptions.TimeExhausted
            If no receipt appears within ``timeout`` seconds.
        """
        return self._w3.eth.wait_for_transaction_receipt(tx_hash, timeout=timeout)
