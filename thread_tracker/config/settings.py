"""Configuration management using Pydantic Settings.

Features:
- Environment variable loading
- Type validation
- Default values
- Computed properties
"""

from typing import Annotated, Any, List, Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_RENAME_PREFIXES = ["name:", ":thread:", "rename:"]
DEFAULT_CLOSE_KEYWORDS = ["close", ":lock:"]
DEFAULT_BACKFILL_DAYS = 1
DEFAULT_FETCH_LIMIT = 1000


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Slack settings
    slack_bot_token: SecretStr = Field(
        ..., description="Slack Bot User OAuth Token (xoxb-...)"
    )
    slack_app_token: SecretStr = Field(
        ..., description="Slack App-Level Token for Socket Mode (xapp-...)"
    )
    slack_signing_secret: Optional[SecretStr] = Field(
        None, description="Slack Signing Secret (for future HTTP mode)"
    )

    # Thread tracking
    backfill_days: int = Field(
        DEFAULT_BACKFILL_DAYS,
        description="Number of days of history to scan at startup",
        ge=0,
    )
    rename_prefixes: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_RENAME_PREFIXES),
        description="Case-insensitive prefixes that rename a thread (e.g. 'name: Foo')",
    )
    close_keywords: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_CLOSE_KEYWORDS),
        description="Case-insensitive messages that close a thread when sent alone",
    )
    history_limit: int = Field(
        DEFAULT_FETCH_LIMIT,
        description="Max messages fetched per channel during backfill",
        ge=1,
    )
    replies_limit: int = Field(
        DEFAULT_FETCH_LIMIT,
        description="Max replies fetched when reconstructing a thread",
        ge=1,
    )

    # Monitoring
    log_level: str = Field("INFO", description="Logging level")

    # Development
    debug: bool = Field(False, description="Enable debug mode")

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    @field_validator("rename_prefixes", "close_keywords", mode="before")
    @classmethod
    def parse_str_list(cls, v: Any) -> Optional[List[str]]:
        """Parse comma-separated string lists."""
        if v is None:
            return None
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        if isinstance(v, list):
            return [str(item) for item in v]
        return v  # type: ignore[no-any-return]

    @field_validator("rename_prefixes", "close_keywords")
    @classmethod
    def validate_not_empty(cls, v: List[str]) -> List[str]:
        """Reject blank entries, which would match every message."""
        cleaned = [item.strip() for item in v if item.strip()]
        if len(cleaned) != len(v):
            raise ValueError("entries must not be blank")
        return cleaned

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: Any) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v.upper()  # type: ignore[no-any-return]

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return not self.debug

    @property
    def slack_bot_token_str(self) -> str:
        """Get Slack bot token as string."""
        return self.slack_bot_token.get_secret_value()

    @property
    def slack_app_token_str(self) -> str:
        """Get Slack app token as string."""
        return self.slack_app_token.get_secret_value()
