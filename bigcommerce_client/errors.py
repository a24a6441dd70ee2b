"""Exceptions raised by bigcommerce_client."""

from __future__ import annotations

from typing import Any, Iterable, Optional

__all__ = [
    "BigCommerceError",
    "BulkDeleteStalled",
    "ConfigurationError",
    "ParseError",
    "RequestError",
    "TransportFailure",
]


class BigCommerceError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(BigCommerceError, ValueError):
    """Raised when client configuration is missing or invalid."""

    def __init__(self, message: str, parameter: Optional[str] = None):
        super().__init__(message)
        self.parameter = parameter


class RequestError(BigCommerceError):
    """Raised when the API answers with a non-2xx status.

    These are never retried.
    """

    def __init__(
        self,
        status_code: int,
        reason: str,
        body: str,
        method: Optional[str] = None,
        url: Optional[str] = None,
    ):
        super().__init__(f"{status_code} - {reason}: {body}")
        self.status_code = status_code
        self.reason = reason
        self.body = body
        self.method = method
        self.url = url


class ParseError(BigCommerceError, ValueError):
    """Raised when a non-empty response body is not valid JSON."""

    def __init__(self, message: str, body: str):
        super().__init__(message)
        self.body = body


class TransportFailure(BigCommerceError):
    """Raised when a request never got a response, even after retrying."""

    def __init__(
        self,
        method: str,
        url: str,
        attempts: int,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(
            f"{method} {url} failed after {attempts} attempt(s): {cause!r}"
        )
        self.method = method
        self.url = url
        self.attempts = attempts
        self.cause = cause


class BulkDeleteStalled(BigCommerceError):
    """Raised when ``delete_all`` is served items it already deleted.

    The delete loop relies on every deletion shrinking the result set of the
    query. Seeing a deleted id again means that assumption no longer holds
    and the loop would never end.
    """

    def __init__(self, endpoint: str, ids: Iterable[Any]):
        self.endpoint = endpoint
        self.ids = sorted(ids, key=str)
        super().__init__(
            f"{endpoint} returned already deleted item(s) {self.ids}; "
            "the query is not shrinking"
        )
