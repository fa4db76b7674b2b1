"""Exception hierarchy for skolschema.

All exceptions inherit from :class:`SkolschemaError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`skolschema.exit_codes`.
The top-level error handler in :func:`skolschema.app.main` catches
``SkolschemaError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

The kinds are disjoint: a cache-store failure is never reported as a
transport failure, and a malformed body is never reported as an API failure.

Subclass hierarchy::

    SkolschemaError (exit 1)
    +-- InvalidUsageError        (exit 2)
    |   +-- DimensionParseError  (exit 2)
    +-- NotFoundError            (exit 4)
    +-- ResponseStatusError      (exit 5)
    +-- ConnectionError_         (exit 6)
    +-- MalformedResponseError   (exit 7)
    +-- RootApiError             (exit 8)
    +-- ApiError                 (exit 9)
    +-- CacheError               (exit 10)
    +-- ColorParseError          (exit 11)
    +-- ConfigError              (exit 1)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from skolschema.exit_codes import (
    EXIT_API_ERROR,
    EXIT_CACHE_ERROR,
    EXIT_COLOR_PARSE_ERROR,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_MALFORMED_RESPONSE,
    EXIT_NOT_FOUND,
    EXIT_ROOT_API_ERROR,
    EXIT_STATUS_ERROR,
)

if TYPE_CHECKING:
    from skolschema.models import FailurePayload, ValidationError


class SkolschemaError(Exception):
    """Base exception for all skolschema errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`skolschema.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(SkolschemaError):
    """Raised for invalid CLI arguments."""

    exit_code = EXIT_INVALID_USAGE


class DimensionParseError(InvalidUsageError):
    """Raised when a ``<width>x<height>`` string cannot be parsed."""


class NotFoundError(SkolschemaError):
    """Raised when a domain, school or class name does not resolve."""

    exit_code = EXIT_NOT_FOUND


class ResponseStatusError(SkolschemaError):
    """Raised when the service answers with a non-2xx HTTP status.

    Args:
        message: Human-readable error description.
        status_code: The HTTP status code that was received.
    """

    exit_code = EXIT_STATUS_ERROR

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class ConnectionError_(SkolschemaError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


class MalformedResponseError(SkolschemaError):
    """Raised when a response body is not valid JSON for the expected envelope."""

    exit_code = EXIT_MALFORMED_RESPONSE


class RootApiError(SkolschemaError):
    """Raised when an envelope's root ``error`` field is non-null.

    Args:
        message: Human-readable error description.
        error: The opaque ``error`` value from the envelope.
    """

    exit_code = EXIT_ROOT_API_ERROR

    def __init__(self, message: str, error: object = None):
        super().__init__(message)
        self.error = error


class ApiError(SkolschemaError):
    """Raised when an envelope's ``data`` carries the failure shape.

    Args:
        failure: The decoded failure payload, including its validation errors.
    """

    exit_code = EXIT_API_ERROR

    def __init__(self, failure: FailurePayload):
        details = "; ".join(
            f"{err.id}: {err.description}" for err in failure.validation_errors
        )
        message = "API request failed"
        if details:
            message = f"{message}: {details}"
        super().__init__(message)
        self.failure = failure

    @property
    def validation_errors(self) -> list[ValidationError]:
        """The ordered validation errors reported by the service."""
        return self.failure.validation_errors


class CacheError(SkolschemaError):
    """Raised when the on-disk response cache reports an I/O problem.

    A cache miss is not an error and never raises this.
    """

    exit_code = EXIT_CACHE_ERROR


class ColorParseError(SkolschemaError):
    """Raised when a colour is not a 7-character ``#RRGGBB`` hex string."""

    exit_code = EXIT_COLOR_PARSE_ERROR


class ConfigError(SkolschemaError):
    """Raised for configuration problems (invalid JSON, bad values)."""

    exit_code = EXIT_GENERIC_FAILURE
