"""Pytest configuration and fixtures for faucet tests."""

import os
from unittest.mock import AsyncMock, MagicMock

import pytest

# Test private key (DO NOT USE IN PRODUCTION - this is a well-known test key)
TEST_PRIVATE_KEY = "0x0123456789abcdef0123456789abcdef0123456789abcdef0123456789abcdef"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Clear faucet-related environment variables and any .env before each test."""
    env_prefixes = ("FAUCET_", "REDIS_", "AI_")
    for key in list(os.environ.keys()):
        if key.startswith(env_prefixes):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def full_env(monkeypatch):
    """Set every required configuration variable."""
    monkeypatch.setenv("FAUCET_RPC_ENDPOINT", "http://localhost:8545")
    monkeypatch.setenv("FAUCET_WALLET_PRIVATE_KEY", TEST_PRIVATE_KEY)
    monkeypatch.setenv("FAUCET_AMOUNT", "500")
    monkeypatch.setenv("FAUCET_COOLDOWN_MINUTES", "1440")
    monkeypatch.setenv("REDIS_URL", "redis://localhost:6379/0")
    monkeypatch.setenv("AI_API_KEY", "test-ai-key")


class FakeRedis:
    """Dict-backed stand-in for the few Redis commands the store uses."""

    def __init__(self):
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value, ex=None):
        self.data[key] = value
        if ex is not None:
            self.ttls[key] = ex
        return True

    def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    def ping(self):
        return True


@pytest.fixture
def fake_redis():
    """In-memory Redis double."""
    return FakeRedis()


@pytest.fixture
def mock_generator():
    """AI text generator double; set ``generate.side_effect`` or ``return_value``."""
    generator = MagicMock()
    generator.generate = AsyncMock(return_value="true")
    return generator
