from typing import TYPE_CHECKING

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from lmproxy.app.services.rate_limiter import RetryOptions


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be configured via environment variables or .env file.
    """

    # Debug mode - enables detailed error responses
    debug: bool = False

    # HTTP server
    host: str = "0.0.0.0"
    port: int = 3001

    # LogicMonitor credentials used when a request carries none (stdio-style
    # single-tenant deployments). Per-request headers take priority.
    lm_account: str = ""
    lm_bearer_token: str = ""
    lm_base_url_template: str = "https://{account}.logicmonitor.com/santaba/rest"
    lm_api_version: str = "3"
    lm_request_timeout: float = 30.0

    # HTTP Client connection pool settings
    httpx_connect_timeout: float = 10.0  # Time to establish connection
    httpx_read_timeout: float = 30.0  # Time to read response data
    httpx_write_timeout: float = 10.0  # Time to send request data
    httpx_pool_timeout: float = 5.0  # Time to acquire connection from pool
    httpx_keepalive_expiry: float = 30.0
    httpx_max_connections: int = 100
    httpx_max_keepalive_connections: int = 20

    # Logging settings
    log_level: str = "INFO"
    log_format: str = "text"  # text | structured | json

    # Batch execution
    batch_default_max_concurrent: int = 5
    batch_max_concurrent_cap: int = 50

    # Rate-limit retry (delays in milliseconds)
    retry_max_retries: int = 3
    retry_initial_delay_ms: int = 1000
    retry_max_delay_ms: int = 60000
    retry_backoff_multiplier: float = 2.0
    rate_limit_preemptive_threshold: int = 10
    rate_limit_reset_buffer_ms: int = 1000

    # Pagination for list tools
    pagination_page_size: int = 1000
    pagination_max_items: int = 10000

    def lm_base_url(self, account: str) -> str:
        """Build the REST base URL for a LogicMonitor account."""
        return self.lm_base_url_template.format(account=account)

    def retry_options(self) -> "RetryOptions":
        """Default backoff tunables for rate-limited calls."""
        from lmproxy.app.services.rate_limiter import RetryOptions

        return RetryOptions(
            max_retries=self.retry_max_retries,
            initial_delay=self.retry_initial_delay_ms,
            max_delay=self.retry_max_delay_ms,
            backoff_multiplier=self.retry_backoff_multiplier,
        )

    @field_validator(
        "batch_default_max_concurrent",
        "batch_max_concurrent_cap",
        "retry_max_retries",
        "pagination_page_size",
        "pagination_max_items",
    )
    @classmethod
    def validate_positive_int(cls, v: int) -> int:
        """Validate counts are at least 1."""
        if v < 1:
            raise ValueError("value must be at least 1")
        return v

    @field_validator("pagination_page_size")
    @classmethod
    def validate_page_size(cls, v: int) -> int:
        """LogicMonitor caps page size at 1000."""
        if v > 1000:
            raise ValueError("pagination_page_size must not exceed 1000")
        return v

    @field_validator(
        "retry_initial_delay_ms",
        "retry_max_delay_ms",
        "rate_limit_preemptive_threshold",
        "rate_limit_reset_buffer_ms",
    )
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        """Validate delays and thresholds are not negative."""
        if v < 0:
            raise ValueError("value must not be negative")
        return v

    @field_validator("retry_backoff_multiplier")
    @classmethod
    def validate_multiplier(cls, v: float) -> float:
        """Backoff must not shrink between attempts."""
        if v < 1:
            raise ValueError("retry_backoff_multiplier must be at least 1")
        return v

    @field_validator(
        "lm_request_timeout",
        "httpx_connect_timeout",
        "httpx_read_timeout",
        "httpx_write_timeout",
    )
    @classmethod
    def validate_timeout_positive(cls, v: float) -> float:
        """Validate timeout values are positive."""
        if v <= 0:
            raise ValueError("Timeout values must be positive")
        return v

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


# Global settings instance
settings = Settings()
