"""Prometheus metrics for the faucet.

Metrics:
- faucet_requests_total: Counter of token requests by outcome
- faucet_tokens_distributed_total: Counter of coins sent
- faucet_challenges_total: Counter of CAPTCHA verifications by result
- faucet_ai_requests_total: Counter of AI calls by operation and status
- faucet_balance: Gauge of the faucet wallet balance
- faucet_request_duration_seconds: Histogram of token request duration
- faucet_transaction_duration_seconds: Histogram of submit-to-confirm time
"""

from prometheus_client import Counter, Gauge, Histogram

# Counters
REQUESTS = Counter(
    "faucet_requests_total",
    "Total number of faucet token requests",
    ["outcome"],
)

TOKENS_DISTRIBUTED = Counter(
    "faucet_tokens_distributed_total",
    "Total native coins distributed",
)

CHALLENGES = Counter(
    "faucet_challenges_total",
    "CAPTCHA verifications",
    ["result"],
)

AI_REQUESTS = Counter(
    "faucet_ai_requests_total",
    "Calls to the generative-AI service",
    ["operation", "status"],
)

# Gauges
FAUCET_BALANCE = Gauge(
    "faucet_balance",
    "Last observed faucet wallet balance",
)

# Histograms
REQUEST_DURATION = Histogram(
    "faucet_request_duration_seconds",
    "Token request processing duration",
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
)

TRANSACTION_DURATION = Histogram(
    "faucet_transaction_duration_seconds",
    "Time from broadcast to confirmation",
    buckets=(1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0),
)
