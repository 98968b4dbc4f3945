"""
Typed failures raised by the service layer.

Every service function reports a failure by raising one of these. The
GraphQL layer turns them into ``success=False`` payloads carrying
``error``, ``error_code`` and ``retryable``; nothing here is fatal to the
process.
"""


class StarsError(Exception):
    """Base class. ``code`` is a stable machine-readable identifier."""

    default_code = 'ERROR'
    retryable = False

    def __init__(self, message=None, code=None):
        self.message = message or self.__class__.__doc__ or self.default_code
        self.code = code or self.default_code
        super().__init__(self.message)

    def as_dict(self):
        return {
            'error': self.message,
            'error_code': self.code,
            'retryable': self.retryable,
        }


class ValidationError(StarsError):
    """Malformed input. Raised before any write."""

    default_code = 'VALIDATION_ERROR'


class NotFoundError(StarsError):
    """Unknown phone, username or device."""

    default_code = 'NOT_FOUND'


class AuthError(StarsError):
    """Bad password, forged or expired token, missing membership."""

    default_code = 'UNAUTHORIZED'


class StateError(StarsError):
    """OTP expired, wrong or exhausted."""

    default_code = 'INVALID_STATE'


class ConflictError(StarsError):
    """Username taken or account already verified."""

    default_code = 'CONFLICT'


class ResourceExhausted(StarsError):
    """Device has no stars left."""

    default_code = 'NO_STARS'


class TransactionAbort(StarsError):
    """Concurrent modification detected; nothing was written, retry is safe."""

    default_code = 'TRANSACTION_ABORTED'
    retryable = True
