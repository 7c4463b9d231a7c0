"""Observability module for the faucet."""

from .health import (
    ChainCheck,
    CooldownStoreCheck,
    ProbeServer,
    ReadinessCheck,
    check_readiness,
)
from .logging import clear_request_id, configure_logging, set_request_id
from .metrics import (
    AI_REQUESTS,
    CHALLENGES,
    FAUCET_BALANCE,
    REQUEST_DURATION,
    REQUESTS,
    TOKENS_DISTRIBUTED,
    TRANSACTION_DURATION,
)

__all__ = [
    # Health
    "ChainCheck",
    "CooldownStoreCheck",
    "ProbeServer",
    "ReadinessCheck",
    "check_readiness",
    # Logging
    "clear_request_id",
    "configure_logging",
    "set_request_id",
    # Metrics
    "AI_REQUESTS",
    "CHALLENGES",
    "FAUCET_BALANCE",
    "REQUEST_DURATION",
    "REQUESTS",
    "TOKENS_DISTRIBUTED",
    "TRANSACTION_DURATION",
]
