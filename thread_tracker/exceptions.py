"""Custom exceptions for Slack Thread Tracker."""


class ThreadTrackerError(Exception):
    """Base exception for Slack Thread Tracker."""


class ConfigurationError(ThreadTrackerError):
    """Configuration-related errors."""


class MissingConfigError(ConfigurationError):
    """Required configuration is missing."""


class InvalidConfigError(ConfigurationError):
    """Configuration is invalid."""


class SlackError(ThreadTrackerError):
    """Slack API-related errors."""
