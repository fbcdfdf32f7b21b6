"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from referral_rewards.config.constants import (
    LOG_PAGE_MAX_RETRIES,
    LOG_PAGE_RETRY_DELAY_BASE,
    LOG_PAGE_TIMEOUT,
    REFERRAL_LOOKBACK_BLOCKS,
)
from referral_rewards.config.protocols import NetworkId


LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    environment: str = "production"
    debug: bool = False
    log_level: str = "INFO"
    log_file: str | None = None

    # Event indexing service (HyperSync-style HTTP API)
    hypersync_url_template: str = Field(
        default="https://{network}.hypersync.xyz",
        description="Log source base URL, {network} is replaced by a chain name"
    )
    hypersync_api_token: str | None = None

    # Network the referral registry lives on
    referral_network: NetworkId = NetworkId.OP_MAINNET

    # Blockchain RPC providers, keyed by network id (JSON in env)
    rpc_urls: dict[str, str] = Field(default_factory=dict)

    # Pagination
    log_page_timeout: float = Field(
        default=LOG_PAGE_TIMEOUT, gt=0,
        description="Timeout for a single log page request in seconds"
    )
    log_page_max_retries: int = Field(
        default=LOG_PAGE_MAX_RETRIES, ge=1,
        description="Attempts per page before the run is aborted"
    )
    log_page_retry_delay: float = Field(
        default=LOG_PAGE_RETRY_DELAY_BASE, ge=0,
        description="Base delay for exponential backoff between page retries"
    )
    referral_lookback_blocks: int = Field(
        default=REFERRAL_LOOKBACK_BLOCKS, gt=0,
        description="Blocks scanned back from the end block by default"
    )

    # Redis (block-timestamp cache)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: str | None = None
    redis_db: int = 0
    block_cache_enabled: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator('hypersync_url_template')
    @classmethod
    def validate_url_template(cls, v: str) -> str:
        """Validate log source URL template."""
        if "{network}" not in v:
            raise ValueError(
                'HYPERSYNC_URL_TEMPLATE must contain a {network} placeholder'
            )
        if not v.startswith(('http://', 'https://')):
            raise ValueError(
                'HYPERSYNC_URL_TEMPLATE must start with http:// or https://'
            )
        return v.rstrip("/")

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate loguru level name."""
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(
                f'LOG_LEVEL must be one of {", ".join(LOG_LEVELS)}'
            )
        return level

    @model_validator(mode='after')
    def validate_production(self) -> 'Settings':
        """Validate production-specific requirements."""
        if self.environment == 'production':
            if self.debug:
                raise ValueError(
                    'DEBUG must be False in production environment. '
                    'Set DEBUG=false in your .env file.'
                )
            if not self.hypersync_api_token:
                # Public endpoints work without a token but are rate limited
                logger.warning(
                    'HYPERSYNC_API_TOKEN is not set. '
                    'Log source requests will be rate limited.'
                )
        return self

    def get_log_source_url(self, network: NetworkId | str) -> str:
        """Build the log source base URL for a network."""
        network_id = NetworkId(network)
        return self.hypersync_url_template.format(network=network_id.value)

    def get_rpc_url(self, network: NetworkId | str) -> str:
        """
        Get RPC URL for a network.

        Raises:
            ValueError: If no RPC URL is configured for the network
        """
        network_id = NetworkId(network).value
        url = self.rpc_urls.get(network_id)
        if not url:
            raise ValueError(
                f"No RPC URL configured for {network_id}. "
                "Set RPC_URLS in your .env file."
            )
        return url


# Global settings instance
settings = Settings()
