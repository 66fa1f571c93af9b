"""
Error types for the Surveillance Console.
Every failure the core can produce is a ConsoleError subclass carrying a
numeric code, a taxonomy kind and a severity for the log sink.
"""
import logging
from datetime import datetime, timezone
from enum import Enum


class ErrorSeverity(Enum):
    """Severity used purely for logging and alerting"""
    INFO = 'Info'
    WARNING = 'Warning'
    ERROR = 'Error'
    CRITICAL = 'Critical'


_LOG_LEVELS = {
    ErrorSeverity.INFO: logging.INFO,
    ErrorSeverity.WARNING: logging.WARNING,
    ErrorSeverity.ERROR: logging.ERROR,
    ErrorSeverity.CRITICAL: logging.CRITICAL,
}

GENERIC_AUTH_MESSAGE = 'authentication failed'


class ConsoleError(Exception):
    """Base class for all typed failures"""
    code = 9999
    kind = 'InternalFailure'
    severity = ErrorSeverity.CRITICAL
    default_message = 'internal error'

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def is_critical(self) -> bool:
        return self.severity is ErrorSeverity.CRITICAL

    def to_dict(self) -> dict:
        """Payload for the command dispatcher"""
        return {
            'error': self.message,
            'code': self.code,
            'kind': self.kind,
            'severity': self.severity.value,
        }


# ============================================================================
# AUTHENTICATION
# ============================================================================

class AuthReason(Enum):
    """Why an authentication attempt failed (telemetry only)"""
    NOT_FOUND = 'NotFound'
    INVALID_CREDENTIALS = 'InvalidCredentials'
    VERIFICATION_ERROR = 'VerificationError'


class AuthenticationFailed(ConsoleError):
    """Login failed. The reason is kept for logs, never shown to callers."""
    code = 1001
    kind = 'AuthFailure'
    severity = ErrorSeverity.WARNING
    default_message = GENERIC_AUTH_MESSAGE

    def __init__(self, reason: AuthReason = AuthReason.INVALID_CREDENTIALS):
        self.reason = reason
        super().__init__(GENERIC_AUTH_MESSAGE)


class LoginThrottled(ConsoleError):
    """Too many failed logins from one client"""
    code = 1001
    kind = 'AuthFailure'
    severity = ErrorSeverity.WARNING

    def __init__(self, retry_after: int):
        self.retry_after = retry_after
        super().__init__(f'too many failed attempts, try again in {retry_after} seconds')


class HashingFailure(ConsoleError):
    code = 1001
    kind = 'AuthFailure'
    severity = ErrorSeverity.WARNING
    default_message = 'password hashing failed'


# ============================================================================
# CONFIGURATION INTEGRITY
# ============================================================================

class ConfigIntegrityError(ConsoleError):
    code = 1002
    kind = 'ConfigIntegrityFailure'
    severity = ErrorSeverity.ERROR
    default_message = 'configuration integrity violated'


class AlreadyExists(ConfigIntegrityError):
    default_message = 'identity already exists'


class DuplicateName(ConfigIntegrityError):
    default_message = 'an apartment with this name already exists'


class UnknownSite(ConfigIntegrityError):
    def __init__(self, site_name: str):
        self.site_name = site_name
        super().__init__(f"apartment '{site_name}' not found")


class DanglingReference(ConfigIntegrityError):
    def __init__(self, source_name: str, site_name: str):
        self.source_name = source_name
        self.site_name = site_name
        super().__init__(
            f"camera '{source_name}' references missing apartment '{site_name}'"
        )


class EmptyRegistry(ConfigIntegrityError):
    default_message = 'registry is empty'


class InvalidSetting(ConfigIntegrityError):
    def __init__(self, field: str, message: str = None):
        self.field = field
        super().__init__(message or f'{field} must be greater than 0')


# ============================================================================
# EVERYTHING ELSE
# ============================================================================

class TransportError(ConsoleError):
    code = 1004
    kind = 'TransportFailure'
    severity = ErrorSeverity.WARNING
    default_message = 'remote synchronization failed'


class FileSystemError(ConsoleError):
    code = 1005
    kind = 'FileSystemFailure'
    severity = ErrorSeverity.CRITICAL
    default_message = 'file system error'


class FormatError(ConsoleError):
    code = 1006
    kind = 'FormatFailure'
    severity = ErrorSeverity.ERROR
    default_message = 'malformed registry document'


class PermissionDenied(ConsoleError):
    code = 1007
    kind = 'PermissionFailure'
    severity = ErrorSeverity.WARNING
    default_message = 'administrator access required'


class NotFound(ConsoleError):
    code = 1008
    kind = 'NotFoundFailure'
    severity = ErrorSeverity.INFO
    default_message = 'not found'


class Protected(ConsoleError):
    code = 1012
    kind = 'ProtectedEntityFailure'
    severity = ErrorSeverity.WARNING
    default_message = 'the primary administrator cannot be removed'


class InternalError(ConsoleError):
    pass


def log_error(error: ConsoleError, context: str, user: str = None,
              logger: logging.Logger = None):
    """Write one structured line for a failure at its severity's level"""
    logger = logger or logging.getLogger('surveillance_console.errors')
    timestamp = datetime.now(timezone.utc).isoformat()
    detail = error.message
    if isinstance(error, AuthenticationFailed):
        detail = f'{error.message} ({error.reason.value})'
    logger.log(
        _LOG_LEVELS[error.severity],
        f"{timestamp} | {error.kind}:{error.code} | {context} | {user or '-'} | {detail}",
    )
