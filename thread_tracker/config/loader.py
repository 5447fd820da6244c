"""Load and validate application settings."""

from pathlib import Path
from typing import Any, Optional

import structlog
from pydantic import ValidationError

from ..exceptions import InvalidConfigError, MissingConfigError
from .settings import Settings

logger = structlog.get_logger()

REQUIRED_FIELDS = ("slack_bot_token", "slack_app_token")


def load_config(config_file: Optional[Path] = None, **overrides: Any) -> Settings:
    """Build Settings from the environment and an optional env file.

    Missing Slack tokens are the one fatal startup condition; they surface
    as MissingConfigError so the entry point can exit cleanly.
    """
    if config_file is not None and not config_file.exists():
        raise MissingConfigError(f"Config file does not exist: {config_file}")

    kwargs: dict[str, Any] = dict(overrides)
    if config_file is not None:
        kwargs["_env_file"] = config_file

    try:
        settings = Settings(**kwargs)
    except ValidationError as e:
        missing = [
            str(err["loc"][0])
            for err in e.errors()
            if err["type"] == "missing" and err["loc"]
        ]
        if missing:
            raise MissingConfigError(
                f"Missing required configuration: {', '.join(missing)}"
            ) from e
        raise InvalidConfigError(f"Invalid configuration: {e}") from e

    for name in REQUIRED_FIELDS:
        if not getattr(settings, name).get_secret_value():
            raise MissingConfigError(f"Missing required configuration: {name}")

    logger.debug(
        "Configuration validated",
        backfill_days=settings.backfill_days,
        rename_prefixes=settings.rename_prefixes,
        close_keywords=settings.close_keywords,
    )
    return settings
