"""Exception types raised by the bot."""


class SunsetBotError(Exception):
    """Base class for errors raised by sunset-bot."""


class ConfigError(SunsetBotError):
    """Required configuration is missing or invalid."""


class InstallationNotFound(SunsetBotError):
    """No Slack installation matches the lookup key."""


class TenantLookupError(SunsetBotError):
    """The database failed while resolving a tenant-user or its settings."""

    def __init__(self, message: str = "An unexpected error occurred"):
        super().__init__(message)
