"""Token Distributor for the faucet.

Native coin distribution:
- Balance check against the fixed disbursement amount
- One signed value transfer per request, serialized per process so the
  wallet nonce is never reused
- Success is reported only for a mined transaction with status 1
"""

import asyncio
import logging
import re
import time
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from web3 import Web3
from web3.exceptions import TimeExhausted, Web3Exception

from fitofaucet.blockchain import ChainClient
from fitofaucet.observability.metrics import FAUCET_BALANCE, TRANSACTION_DURATION

logger = logging.getLogger(__name__)

# Ethereum address pattern: 0x followed by 40 hex characters
ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")


def validate_address(address: str) -> bool:
    """Validate an EVM address.

    All-lower or all-upper hex is accepted as is; mixed case must carry a
    valid EIP-55 checksum.

    Parameters
    ----------
    address : str
        Address to validate.

    Returns
    -------
    bool
        True if the address is well formed.
    """
    if not isinstance(address, str) or not ADDRESS_PATTERN.match(address):
        return False
    return Web3.is_address(address)


class DistributionStatus(str, Enum):
    """Distribution result status."""

    SUCCESS = "success"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    INVALID_ADDRESS = "invalid_address"
    TRANSACTION_FAILED = "transaction_failed"


@dataclass
class DistributionResult:
    """Result of a distribution attempt."""

    success: bool
    status: DistributionStatus
    tx_hash: str | None
    amount: Decimal
    message: str


class NativeDistributor:
    """Sends the fixed faucet amount of native coin to an address.

    Parameters
    ----------
    client : ChainClient
        Chain client holding the faucet wallet.
    amount : Decimal
        Coins sent per successful request.
    confirmation_timeout : int
        Seconds to wait for the transaction to be mined.
    token_symbol : str
        Ticker used in messages.
    """

    def __init__(
        self,
        client: ChainClient,
        amount: Decimal,
        confirmation_timeout: int = 120,
        token_symbol: str = "FITO",
    ):
        self._client = client
        self._amount = amount
        self._confirmation_timeout = confirmation_timeout
        self._token_symbol = token_symbol
        self._submit_lock = asyncio.Lock()

    @property
    def amount(self) -> Decimal:
        """Coins sent per request."""
        return self._amount

    @property
    def token_symbol(self) -> str:
        return self._token_symbol

    async def get_balance(self) -> Decimal:
        """Get the faucet wallet balance.

        Returns
        -------
        Decimal
            Available native coin balance.
        """
        balance = await asyncio.to_thread(self._client.get_faucet_balance)
        FAUCET_BALANCE.set(float(balance))
        return balance

    def _failure(self, status: DistributionStatus, message: str) -> DistributionResult:
        return DistributionResult(
            success=False,
            status=status,
            tx_hash=None,
            amount=self._amount,
            message=message,
        )

    async def _submit(self, address: str) -> DistributionResult | str:
        """Check balance and broadcast, holding the submit lock.

        Returns the transaction hash, or a failure result.
        """
        async with self._submit_lock:
            balance = await self.get_balance()
            if balance < self._amount:
                logger.warning(
                    "Faucet balance too low",
                    extra={"balance": str(balance), "amount": str(self._amount)},
                )
                return self._failure(
                    DistributionStatus.INSUFFICIENT_BALANCE,
                    "Faucet is currently empty. Please try again later.",
                )
            return await asyncio.to_thread(self._client.transfer, address, self._amount)

    async def distribute(self, address: str) -> DistributionResult:
        """Distribute the faucet amount to an address.

        Parameters
        ----------
        address : str
            Recipient address.

        Returns
        -------
        DistributionResult
            Result of the distribution attempt. ``tx_hash`` is set only once
            the transaction is confirmed.
        """
        if not validate_address(address):
            return self._failure(
                DistributionStatus.INVALID_ADDRESS,
                f"Invalid address format: {address}",
            )

        tx_hash: str | None = None
        try:
            submitted = await self._submit(address)
            if isinstance(submitted, DistributionResult):
                return submitted
            tx_hash = submitted

            started = time.monotonic()
            receipt = await asyncio.to_thread(
                self._client.wait_for_receipt, tx_hash, self._confirmation_timeout
            )
            TRANSACTION_DURATION.observe(time.monotonic() - started)
        except TimeExhausted:
            logger.error(
                "Transaction not confirmed in time",
                extra={
                    "tx_hash": tx_hash,
                    "recipient": address,
                    "timeout": self._confirmation_timeout,
                },
            )
            return self._failure(
                DistributionStatus.TRANSACTION_FAILED,
                "The transaction was sent but not confirmed in time. "
                "Check the explorer before trying again.",
            )
        except (Web3Exception, ValueError, OSError) as e:
            logger.error(
                "Distribution failed",
                extra={"recipient": address, "amount": str(self._amount), "error": str(e)},
                exc_info=True,
            )
            return self._failure(
                DistributionStatus.TRANSACTION_FAILED,
                "An error occurred while sending the transaction. Please try again later.",
            )

        if receipt["status"] != 1:
            logger.error(
                "Transaction reverted",
                extra={"tx_hash": tx_hash, "recipient": address},
            )
            return self._failure(
                DistributionStatus.TRANSACTION_FAILED,
                "The transaction was reverted. Please try again later.",
            )

        logger.info(
            "Coins distributed",
            extra={
                "tx_hash": tx_hash,
                "recipient": address,
                "amount": str(self._amount),
                "block": receipt.get("blockNumber"),
            },
        )
        return DistributionResult(
            success=True,
            status=DistributionStatus.SUCCESS,
            tx_hash=tx_hash,
            amount=self._amount,
            message=f"Successfully sent {self._amount} {self._token_symbol}",
        )
