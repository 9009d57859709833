"""Exception hierarchy shared by the storage, auth and HTTP layers.

Every class carries the HTTP status it maps to, so route handlers never need
to translate errors themselves::

    GymRateError
    ├── DecodeError                  400
    ├── StorageError                 500
    │   ├── NotFoundError            404
    │   ├── ConstraintViolationError 400
    │   │   └── DuplicateError       409
    │   └── StoreUnavailableError    500
    └── AuthError                    401
        ├── UnauthenticatedError     401
        ├── ForbiddenError           403
        └── AuthConfigurationError   500
"""


class GymRateError(Exception):
    """Base class for every error the service reports to a caller."""

    status_code = 500

    def __init__(self, message: str = '') -> None:
        super().__init__(message)
        self.message = message or self.__class__.__doc__.strip().splitlines()[0]


class DecodeError(GymRateError):
    """Malformed request body or path parameter."""
    status_code = 400


class StorageError(GymRateError):
    """Persistence layer failure."""
    status_code = 500


class NotFoundError(StorageError):
    """Entity not found."""
    status_code = 404


class ConstraintViolationError(StorageError):
    """A storage constraint rejected the write."""
    status_code = 400


class DuplicateError(ConstraintViolationError):
    """A unique value is already taken."""
    status_code = 409


class StoreUnavailableError(StorageError):
    """The database could not be reached."""
    status_code = 500


class AuthError(GymRateError):
    """Authentication failed."""
    status_code = 401


class UnauthenticatedError(AuthError):
    """Missing or invalid token."""
    status_code = 401


class ForbiddenError(AuthError):
    """Caller is not allowed to perform this action."""
    status_code = 403


class AuthConfigurationError(AuthError):
    """Token signing secret is not configured."""
    status_code = 500
