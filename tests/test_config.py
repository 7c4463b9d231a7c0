"""Tests for faucet configuration management."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from fitofaucet.config import GEMINI_OPENAI_BASE_URL, FaucetConfig


class TestFaucetConfigDefaults:
    """Test default configuration values."""

    def test_minimal_config(self, full_env):
        """Config loads with only required fields."""
        config = FaucetConfig()

        assert config.rpc_endpoint == "http://localhost:8545"
        assert config.amount == Decimal("500")
        assert config.cooldown_minutes == 1440
        assert config.redis_url == "redis://localhost:6379/0"
        assert config.ai_api_key.get_secret_value() == "test-ai-key"

    def test_optional_defaults(self, full_env):
        """Optional settings have correct defaults."""
        config = FaucetConfig()

        assert config.block_explorer_url is None
        assert config.confirmation_timeout_seconds == 120
        assert config.redis_timeout_seconds == 5.0
        assert config.token_symbol == "FITO"
        assert config.ai_base_url == GEMINI_OPENAI_BASE_URL
        assert config.ai_model == "gemini-2.5-flash"
        assert config.api_port == 8080

    def test_observability_defaults(self, full_env):
        """Observability settings have correct defaults."""
        config = FaucetConfig()

        assert config.metrics_port == 9090
        assert config.log_level == "INFO"
        assert config.log_format == "json"

    def test_cooldown_seconds(self, full_env):
        """Cooldown minutes convert to seconds."""
        assert FaucetConfig().cooldown_seconds == 1440 * 60


class TestFaucetConfigEnvVars:
    """Test environment variable loading."""

    def test_all_env_vars(self, full_env, monkeypatch):
        """Config loads all environment variables correctly."""
        monkeypatch.setenv("FAUCET_BLOCK_EXPLORER_URL", "https://explorer.fitochain.io")
        monkeypatch.setenv("FAUCET_CONFIRMATION_TIMEOUT_SECONDS", "60")
        monkeypatch.setenv("FAUCET_TOKEN_SYMBOL", "tFITO")
        monkeypatch.setenv("REDIS_TIMEOUT_SECONDS", "1.5")
        monkeypatch.setenv("AI_BASE_URL", "http://localhost:11434/v1/")
        monkeypatch.setenv("AI_MODEL", "gemini-2.5-pro")
        monkeypatch.setenv("FAUCET_API_PORT", "3000")
        monkeypatch.setenv("FAUCET_METRICS_PORT", "9100")
        monkeypatch.setenv("FAUCET_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("FAUCET_LOG_FORMAT", "text")

        config = FaucetConfig()

        assert config.block_explorer_url == "https://explorer.fitochain.io"
        assert config.confirmation_timeout_seconds == 60
        assert config.token_symbol == "tFITO"
        assert config.redis_timeout_seconds == 1.5
        assert config.ai_base_url == "http://localhost:11434/v1/"
        assert config.ai_model == "gemini-2.5-pro"
        assert config.api_port == 3000
        assert config.metrics_port == 9100
        assert config.log_level == "DEBUG"
        assert config.log_format == "text"

    def test_fractional_amount(self, full_env, monkeypatch):
        """Amounts keep decimal precision."""
        monkeypatch.setenv("FAUCET_AMOUNT", "0.25")
        assert FaucetConfig().amount == Decimal("0.25")

    def test_secrets_hidden_in_repr(self, full_env):
        """Secrets are not printed."""
        text = repr(FaucetConfig())
        assert "test-ai-key" not in text
        assert "0123456789abcdef" not in text

    def test_env_file(self, full_env, monkeypatch, tmp_path):
        """Values are read from a .env file in the working directory."""
        monkeypatch.delenv("FAUCET_AMOUNT")
        (tmp_path / ".env").write_text("FAUCET_AMOUNT=42\n")

        assert FaucetConfig().amount == Decimal("42")

    def test_key_file_only(self, full_env, monkeypatch):
        """A key file path satisfies the wallet requirement."""
        monkeypatch.delenv("FAUCET_WALLET_PRIVATE_KEY")
        monkeypatch.setenv("FAUCET_WALLET_PRIVATE_KEY_FILE", "/secrets/faucet.key")

        config = FaucetConfig()
        assert config.wallet_private_key is None
        assert config.wallet_private_key_file == "/secrets/faucet.key"


class TestFaucetConfigValidation:
    """Test configuration validation."""

    @pytest.mark.parametrize(
        "name",
        [
            "FAUCET_RPC_ENDPOINT",
            "FAUCET_AMOUNT",
            "FAUCET_COOLDOWN_MINUTES",
            "REDIS_URL",
            "AI_API_KEY",
        ],
    )
    def test_required_field_missing(self, full_env, monkeypatch, name):
        """Each required setting must be present."""
        monkeypatch.delenv(name)
        with pytest.raises(ValidationError):
            FaucetConfig()

    def test_no_wallet(self, full_env, monkeypatch):
        """A wallet source is required."""
        monkeypatch.delenv("FAUCET_WALLET_PRIVATE_KEY")
        with pytest.raises(ValidationError, match="No wallet configured"):
            FaucetConfig()

    @pytest.mark.parametrize("value", ["0", "-1", "abc"])
    def test_invalid_amount(self, full_env, monkeypatch, value):
        """Amount must be a positive number."""
        monkeypatch.setenv("FAUCET_AMOUNT", value)
        with pytest.raises(ValidationError):
            FaucetConfig()

    @pytest.mark.parametrize("value", ["0", "-5", "soon"])
    def test_invalid_cooldown(self, full_env, monkeypatch, value):
        """Cooldown must be a positive integer."""
        monkeypatch.setenv("FAUCET_COOLDOWN_MINUTES", value)
        with pytest.raises(ValidationError):
            FaucetConfig()

    def test_invalid_port(self, full_env, monkeypatch):
        """Ports must be in range."""
        monkeypatch.setenv("FAUCET_API_PORT", "70000")
        with pytest.raises(ValidationError):
            FaucetConfig()
