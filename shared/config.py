"""
Shared configuration management for the Design Gateway.
"""

from typing import Dict, Optional, Tuple

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared.errors import ConfigurationError


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="DESIGN_GATEWAY_",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")


class GatewaySettings(BaseConfig):
    """Settings for the Figma-facing gateway."""

    # Upstream API
    figma_api_token: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("FIGMA_API_TOKEN", "DESIGN_GATEWAY_FIGMA_API_TOKEN"),
    )
    figma_api_base: str = Field(default="https://api.figma.com/v1")
    request_timeout_seconds: float = Field(default=30.0)

    # Rate limiting (requests per window, per tier)
    tier1_requests: int = Field(default=10)
    tier2_requests: int = Field(default=25)
    tier3_requests: int = Field(default=50)
    rate_window_seconds: float = Field(default=60.0)

    # Throttle retry
    default_retry_after_seconds: float = Field(default=60.0)
    max_throttle_retries: Optional[int] = Field(default=None)
    throttle_jitter: bool = Field(default=False)

    # Response shaping
    page_size: int = Field(default=20)
    large_frame_token_limit: int = Field(default=10000)
    large_frame_element_limit: int = Field(default=1000)

    def tier_limits(self) -> Dict[int, Tuple[int, float]]:
        """Return (request_limit, window_seconds) per tier."""
        return {
            1: (self.tier1_requests, self.rate_window_seconds),
            2: (self.tier2_requests, self.rate_window_seconds),
            3: (self.tier3_requests, self.rate_window_seconds),
        }

    def require_token(self) -> str:
        """Return the API token or fail loudly when it is not configured."""
        if not self.figma_api_token:
            raise ConfigurationError(
                "FIGMA_API_TOKEN not set. Export it or add it to your .env file."
            )
        return self.figma_api_token


def get_settings(**overrides) -> GatewaySettings:
    """Get gateway settings, optionally overriding individual fields."""
    return GatewaySettings(**overrides)
