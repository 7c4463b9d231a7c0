"""Faucet Service for the testnet faucet.

Coordinates all faucet components for one token request:
- Address validation
- CAPTCHA verification
- Cooldown store check and record
- Native coin distributor
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from fitofaucet.ai.client import UpstreamUnavailableError
from fitofaucet.observability.metrics import REQUEST_DURATION, REQUESTS, TOKENS_DISTRIBUTED

from .challenge import Challenge, ChallengeIssuer, ChallengeVerifier
from .cooldown import CooldownStore, StoreUnavailableError, format_cooldown, normalize_address
from .distributor import DistributionStatus, NativeDistributor, validate_address

logger = logging.getLogger(__name__)


class FaucetOutcome(str, Enum):
    """Every way a token request can end."""

    SUCCESS = "success"
    INVALID_ADDRESS = "invalid_address"
    CHALLENGE_FAILED = "challenge_failed"
    ON_COOLDOWN = "on_cooldown"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    STORE_UNAVAILABLE = "store_unavailable"
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    TRANSFER_FAILED = "transfer_failed"
    SERVICE_UNAVAILABLE = "service_unavailable"


_DISTRIBUTION_OUTCOMES = {
    DistributionStatus.INVALID_ADDRESS: FaucetOutcome.INVALID_ADDRESS,
    DistributionStatus.INSUFFICIENT_BALANCE: FaucetOutcome.INSUFFICIENT_FUNDS,
    DistributionStatus.TRANSACTION_FAILED: FaucetOutcome.TRANSFER_FAILED,
}


@dataclass
class FaucetResult:
    """Result of a faucet request."""

    success: bool
    outcome: FaucetOutcome
    tx_hash: str | None
    amount: Decimal
    message: str
    cooldown_remaining_ms: int | None = None


class FaucetService:
    """Rate-limited, CAPTCHA-gated token dispenser.

    Parameters
    ----------
    cooldown_store : CooldownStore
        Durable per-address claim timestamps.
    issuer : ChallengeIssuer
        Generates CAPTCHA questions.
    verifier : ChallengeVerifier
        Judges CAPTCHA answers.
    distributor : NativeDistributor
        Sends coins and waits for confirmation.
    cooldown_seconds : int
        Minimum time between successful claims for one address.
    clock : Callable[[], float]
        Wall clock in seconds since epoch.
    """

    def __init__(
        self,
        cooldown_store: CooldownStore,
        issuer: ChallengeIssuer,
        verifier: ChallengeVerifier,
        distributor: NativeDistributor,
        cooldown_seconds: int = 24 * 3600,
        clock: Callable[[], float] = time.time,
    ):
        self._store = cooldown_store
        self._issuer = issuer
        self._verifier = verifier
        self._distributor = distributor
        self._cooldown_seconds = cooldown_seconds
        self._clock = clock

    @property
    def amount(self) -> Decimal:
        return self._distributor.amount

    @property
    def cooldown_seconds(self) -> int:
        return self._cooldown_seconds

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _result(
        self,
        outcome: FaucetOutcome,
        message: str,
        tx_hash: str | None = None,
        cooldown_remaining_ms: int | None = None,
    ) -> FaucetResult:
        REQUESTS.labels(outcome=outcome.value).inc()
        return FaucetResult(
            success=outcome == FaucetOutcome.SUCCESS,
            outcome=outcome,
            tx_hash=tx_hash,
            amount=self._distributor.amount,
            message=message,
            cooldown_remaining_ms=cooldown_remaining_ms,
        )

    async def issue_challenge(self) -> Challenge:
        """Generate a CAPTCHA question for a client.

        Raises
        ------
        UpstreamUnavailableError
            If no question could be generated.
        """
        return await self._issuer.issue()

    async def get_cooldown_remaining(self, address: str) -> int:
        """Milliseconds until ``address`` may claim again, 0 if it may claim now.

        Raises
        ------
        StoreUnavailableError
            If the cooldown store cannot be reached.
        """
        last_claim = await self._store.get_last_claim(address)
        if last_claim is None:
            return 0
        remaining = self._cooldown_seconds * 1000 - (self._now_ms() - last_claim)
        return max(0, remaining)

    async def request_tokens(self, address: str, question: str, answer: str) -> FaucetResult:
        """Handle a token request end to end.

        Parameters
        ----------
        address : str
            Recipient address.
        question : str
            The CAPTCHA question previously issued to the client.
        answer : str
            The client's answer.

        Returns
        -------
        FaucetResult
            Result of the request.
        """
        with REQUEST_DURATION.time():
            return await self._request_tokens(address, question, answer)

    async def _request_tokens(self, address: str, question: str, answer: str) -> FaucetResult:
        address = (address or "").strip()
        if not validate_address(address):
            return self._result(FaucetOutcome.INVALID_ADDRESS, "Invalid wallet address provided.")

        question = (question or "").strip()
        answer = (answer or "").strip()
        if not question or not answer:
            return self._result(
                FaucetOutcome.CHALLENGE_FAILED,
                "CAPTCHA validation failed. Please answer the question.",
            )

        try:
            correct = await self._verifier.verify(question, answer)
        except UpstreamUnavailableError:
            return self._result(
                FaucetOutcome.UPSTREAM_UNAVAILABLE,
                "Could not verify your answer. Please try again.",
            )
        if not correct:
            return self._result(
                FaucetOutcome.CHALLENGE_FAILED,
                "Incorrect CAPTCHA answer. Please try again.",
            )

        try:
            remaining = await self.get_cooldown_remaining(address)
        except StoreUnavailableError as e:
            logger.error("Cooldown store unavailable", extra={"error": str(e)})
            return self._result(
                FaucetOutcome.STORE_UNAVAILABLE,
                "Could not connect to the storage service. Please try again later.",
            )
        if remaining > 0:
            return self._result(
                FaucetOutcome.ON_COOLDOWN,
                f"Address is on cooldown. {format_cooldown(remaining)}",
                cooldown_remaining_ms=remaining,
            )

        distribution = await self._distributor.distribute(address)
        if not distribution.success:
            return self._result(_DISTRIBUTION_OUTCOMES[distribution.status], distribution.message)

        TOKENS_DISTRIBUTED.inc(float(distribution.amount))
        try:
            await self._store.set_last_claim(
                address, self._now_ms(), ttl_seconds=self._cooldown_seconds
            )
        except StoreUnavailableError as e:
            # The transfer is confirmed; the user keeps the success response.
            logger.error(
                "Failed to record cooldown after confirmed transfer",
                extra={
                    "address": normalize_address(address),
                    "tx_hash": distribution.tx_hash,
                    "error": str(e),
                },
            )

        return self._result(
            FaucetOutcome.SUCCESS,
            distribution.message,
            tx_hash=distribution.tx_hash,
        )
