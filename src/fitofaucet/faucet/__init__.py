"""Faucet components."""

from .challenge import Challenge, ChallengeIssuer, ChallengeVerifier
from .cooldown import CooldownStore, StoreUnavailableError
from .distributor import DistributionResult, DistributionStatus, NativeDistributor
from .service import FaucetOutcome, FaucetResult, FaucetService

__all__ = [
    "Challenge",
    "ChallengeIssuer",
    "ChallengeVerifier",
    "CooldownStore",
    "DistributionResult",
    "DistributionStatus",
    "FaucetOutcome",
    "FaucetResult",
    "FaucetService",
    "NativeDistributor",
    "StoreUnavailableError",
]
