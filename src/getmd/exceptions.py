#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Custom exceptions for the getmd library.

The conversion engine itself never fails on a well-formed tree; these
exceptions belong to the collaborators around it (option validation,
fetching, raw input handling) and are mapped to HTTP statuses and CLI exit
codes by the entry points.

Exception Hierarchy
-------------------
- GetmdError (base exception)

  - ValidationError (malformed requests, invalid options, bad URLs)

  - FetchError (network errors, non-2xx responses, exhausted retries)
    - BotDetectedError (anti-bot challenge page returned instead of content)
    - ResponseTooLargeError (body exceeded the size limit, never retried)

  - ConversionError (raw input could not be parsed)

"""

from typing import Any


class GetmdError(Exception):
    """Base exception class for all getmd-specific errors.

    Parameters
    ----------
    message : str
        Human-readable description of the error
    original_error : Exception, optional
        The original exception that caused this error, if applicable

    Attributes
    ----------
    message : str
        The error message
    original_error : Exception or None
        The wrapped original exception, if any

    """

    def __init__(self, message: str, original_error: Exception | None = None):
        """Initialize the error with a message and optional original exception."""
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class ValidationError(GetmdError):
    """Exception raised for invalid input parameters or options.

    Raised for malformed request bodies, option values of the wrong type or
    out of range, and URLs that cannot be fetched.

    Parameters
    ----------
    message : str
        Description of the validation error
    parameter_name : str, optional
        Name of the invalid parameter
    parameter_value : any, optional
        The invalid value that was provided
    original_error : Exception, optional
        The original exception that caused this error

    """

    def __init__(
        self,
        message: str,
        parameter_name: str | None = None,
        parameter_value: Any = None,
        original_error: Exception | None = None,
    ):
        """Initialize the validation error with parameter details."""
        super().__init__(message, original_error=original_error)
        self.parameter_name = parameter_name
        self.parameter_value = parameter_value


class FetchError(GetmdError):
    """Exception raised when a remote document cannot be retrieved.

    Parameters
    ----------
    message : str
        Description of the failure
    url : str, optional
        The URL being fetched
    status_code : int, optional
        HTTP status of the last response, if one was received
    attempts : int, default 0
        Number of attempts made before giving up
    original_error : Exception, optional
        The original exception that caused this error

    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        attempts: int = 0,
        original_error: Exception | None = None,
    ):
        """Initialize the fetch error with request details."""
        super().__init__(message, original_error=original_error)
        self.url = url
        self.status_code = status_code
        self.attempts = attempts


class BotDetectedError(FetchError):
    """Exception raised when the server answered with an anti-bot challenge."""


class ResponseTooLargeError(FetchError):
    """Exception raised when a response body exceeds the configured size limit.

    Oversized responses are not retried.
    """


class ConversionError(GetmdError):
    """Exception raised when raw input cannot be turned into a document tree.

    Parameters
    ----------
    message : str
        Description of the failure
    conversion_stage : str, optional
        Stage that failed (e.g. "decoding", "html_parsing")
    original_error : Exception, optional
        The original exception that caused this error

    """

    def __init__(self, message: str, conversion_stage: str | None = None, original_error: Exception | None = None):
        """Initialize the conversion error."""
        super().__init__(message, original_error=original_error)
        self.conversion_stage = conversion_stage
