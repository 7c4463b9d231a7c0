"""Configuration management for the faucet using Pydantic Settings."""

from decimal import Decimal

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

GEMINI_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"


class FaucetConfig(BaseSettings):
    """Faucet service configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    # Network
    rpc_endpoint: str = Field(alias="FAUCET_RPC_ENDPOINT")
    block_explorer_url: str | None = Field(default=None, alias="FAUCET_BLOCK_EXPLORER_URL")
    confirmation_timeout_seconds: int = Field(
        default=120, alias="FAUCET_CONFIRMATION_TIMEOUT_SECONDS", gt=0
    )

    # Wallet
    wallet_private_key: SecretStr | None = Field(default=None, alias="FAUCET_WALLET_PRIVATE_KEY")
    wallet_private_key_file: str | None = Field(
        default=None, alias="FAUCET_WALLET_PRIVATE_KEY_FILE"
    )

    # Disbursement
    amount: Decimal = Field(alias="FAUCET_AMOUNT", gt=0)
    cooldown_minutes: int = Field(alias="FAUCET_COOLDOWN_MINUTES", gt=0)
    token_symbol: str = Field(default="FITO", alias="FAUCET_TOKEN_SYMBOL")

    # Cooldown store
    redis_url: str = Field(alias="REDIS_URL")
    redis_timeout_seconds: float = Field(default=5.0, alias="REDIS_TIMEOUT_SECONDS", gt=0)

    # Generative AI
    ai_api_key: SecretStr = Field(alias="AI_API_KEY")
    ai_base_url: str = Field(default=GEMINI_OPENAI_BASE_URL, alias="AI_BASE_URL")
    ai_model: str = Field(default="gemini-2.5-flash", alias="AI_MODEL")

    # HTTP
    api_host: str = Field(default="0.0.0.0", alias="FAUCET_API_HOST")  # noqa: S104
    api_port: int = Field(default=8080, alias="FAUCET_API_PORT", ge=1, le=65535)

    # Observability
    metrics_port: int = Field(default=9090, alias="FAUCET_METRICS_PORT", ge=1, le=65535)
    log_level: str = Field(default="INFO", alias="FAUCET_LOG_LEVEL")
    log_format: str = Field(default="json", alias="FAUCET_LOG_FORMAT")

    @model_validator(mode="after")
    def _require_wallet(self) -> "FaucetConfig":
        if self.wallet_private_key is None and self.wallet_private_key_file is None:
            raise ValueError(
                "No wallet configured. "
                "Set FAUCET_WALLET_PRIVATE_KEY or FAUCET_WALLET_PRIVATE_KEY_FILE"
            )
        return self

    @property
    def cooldown_seconds(self) -> int:
        """Cooldown period in seconds."""
        return self.cooldown_minutes * 60
