"""Exception hierarchy for deployment timestamp recording."""


class OSDTimestampError(Exception):
    """Base exception for timestamp recording errors.

    Provides dual messaging: a short user-facing message for the task
    sequence log and internal details (command lines, raw output) for the
    run log.
    """

    def __init__(
        self,
        user_message: str,
        internal_details: str = "",
        wrapped: Exception | None = None,
    ) -> None:
        super().__init__(user_message)
        self.user_message = user_message
        self.internal_details = internal_details or user_message
        self.wrapped = wrapped

    def internal(self) -> str:
        return self.internal_details


class ConfigurationError(OSDTimestampError):
    """Raised when the run configuration is inconsistent."""


class InvalidTimeZoneError(ConfigurationError):
    """Raised when a time zone ID is not in the time zone database."""


class MissingStartTimestampError(OSDTimestampError):
    """Raised when End runs without a usable start timestamp."""


class SyncUnreachableError(OSDTimestampError):
    """Raised when the NTP server cannot be reached."""


class AccessDeniedError(OSDTimestampError):
    """Raised when a registry or service operation lacks privilege."""


class ExternalToolExitError(OSDTimestampError):
    """Raised when an external tool exits with an unexpected code."""

    def __init__(
        self,
        user_message: str,
        internal_details: str = "",
        wrapped: Exception | None = None,
        *,
        exit_code: int = -1,
        stderr: str = "",
    ) -> None:
        super().__init__(user_message, internal_details, wrapped)
        self.exit_code = exit_code
        self.stderr = stderr


class VariableStoreUnavailableError(OSDTimestampError):
    """Raised when the variable store cannot be opened."""


class InvalidRegistryKeyError(ConfigurationError):
    """Raised when a registry key path has an unknown root."""


# Sanitized user-facing error message constants
ERR_MSG_INVALID_TIMEZONE = "invalid time zone"
ERR_MSG_MODE_SELECTION = "exactly one of --start or --end is required"
ERR_MSG_INVALID_PREFIX = "variable prefix must end with a separator"
ERR_MSG_MISSING_START = "start timestamp not found, run with --start first"
ERR_MSG_SYNC_UNREACHABLE = "NTP server unreachable"
ERR_MSG_ACCESS_DENIED = "access denied"
ERR_MSG_TOOL_FAILED = "external tool failed"
ERR_MSG_STORE_UNAVAILABLE = "variable store unavailable"
ERR_MSG_INVALID_REGISTRY_KEY = "invalid registry key"
