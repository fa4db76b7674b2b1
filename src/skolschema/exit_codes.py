"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~skolschema.exceptions.SkolschemaError` subclass.
Shell wrappers (status bars, cron jobs) can inspect the exit code to tell a
network outage from an unknown school without parsing stderr.

Example::

    $ skolschema next example.skola24.se "Norra skolan" 7A
    $ echo $?
    6   # EXIT_CONNECTION_ERROR -- the service could not be reached
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments (e.g. a bad ``WxH`` size)."""

EXIT_NOT_FOUND = 4
"""The requested domain, school or class does not exist."""

EXIT_STATUS_ERROR = 5
"""The service answered with a non-success HTTP status."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_MALFORMED_RESPONSE = 7
"""The response body was not the JSON envelope we expected."""

EXIT_ROOT_API_ERROR = 8
"""The response envelope carried a root-level ``error``."""

EXIT_API_ERROR = 9
"""The service reported an application-level failure with validation errors."""

EXIT_CACHE_ERROR = 10
"""The on-disk response cache could not be read or written."""

EXIT_COLOR_PARSE_ERROR = 11
"""A timetable element carried a malformed ``#RRGGBB`` colour."""
