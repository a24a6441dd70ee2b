"""Core HTTP request wrapper used throughout bigcommerce_client."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, MutableMapping, Optional, Union
from urllib.parse import urlencode

import requests
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    stop_never,
    wait_exponential,
)

from ..errors import RequestError, TransportFailure

log = logging.getLogger(__name__)

# Methods that carry a JSON body.
WRITE_METHODS = frozenset({"POST", "PUT"})

# Failures where no response arrived. Anything else from requests is a usage
# error and propagates unchanged.
TRANSPORT_ERRORS = (requests.ConnectionError, requests.Timeout)


@dataclass
class RequestConfig:
    """Configuration for a single request.

    ``max_retries`` bounds the extra attempts made after a transport failure.
    ``None`` retries forever.
    """

    method: str = "GET"
    url: str = ""
    headers: MutableMapping[str, str] = field(default_factory=dict)
    body: Any = None
    timeout: float = 15
    max_retries: Optional[int] = 3
    backoff_factor: float = 0.5
    backoff_max: float = 10.0
    debug: bool = False


def _query_value(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return value


def encode_query(params: Mapping[str, Any]) -> str:
    """Form-encode a flat mapping of query parameters.

    Sequence values repeat their key (``{"id:in": [1, 2]}`` becomes
    ``id%3Ain=1&id%3Ain=2``), booleans are sent as ``true``/``false`` and
    ``None`` as an empty value.
    """
    pairs = []
    for key, value in params.items():
        if isinstance(value, (list, tuple)):
            pairs.extend((key, _query_value(item)) for item in value)
        else:
            pairs.append((key, _query_value(value)))
    return urlencode(pairs)


def build_url(
    base: str, endpoint: str, params: Optional[Mapping[str, Any]] = None
) -> str:
    """Join ``base`` and ``endpoint``, appending ``?`` and the query if given."""
    url = base + endpoint.lstrip("/")
    if params is None:
        return url
    return f"{url}?{encode_query(params)}"


def clone_session(original_session: requests.Session) -> requests.Session:
    """Clone a session for use in a worker thread.

    The clone carries the headers, cookies, auth and response hooks of
    ``original_session`` but has its own connection pools.
    """
    cloned = requests.Session()
    cloned.headers.update(original_session.headers)
    cloned.cookies.update(original_session.cookies)
    cloned.auth = original_session.auth
    cloned.hooks["response"] = list(original_session.hooks.get("response", []))
    return cloned


def _is_success(resp: requests.Response) -> bool:
    return 200 <= resp.status_code < 300


def request(
    config: RequestConfig,
    session: Optional[Union[requests.Session, Any]] = None,
) -> requests.Response:
    """Perform an HTTP request, retrying transport failures with backoff.

    Args:
        config: Fully populated ``RequestConfig`` instance.
        session: Session used to send the request. The module-level
            ``requests`` API is used when omitted.

    Returns:
        The 2xx ``requests.Response``.

    Raises:
        TransportFailure: no response was received within the retry budget.
        RequestError: the server answered with a non-2xx status.
    """
    sender = session if session is not None else requests
    method = config.method.upper()
    kwargs: dict = {"headers": dict(config.headers), "timeout": config.timeout}
    if method in WRITE_METHODS:
        kwargs["data"] = json.dumps(config.body)

    if config.max_retries is None:
        stop = stop_never
    else:
        stop = stop_after_attempt(config.max_retries + 1)

    retryer = Retrying(
        stop=stop,
        wait=wait_exponential(multiplier=config.backoff_factor, max=config.backoff_max),
        retry=retry_if_exception_type(TRANSPORT_ERRORS),
        before_sleep=before_sleep_log(log, logging.WARNING),
        reraise=True,
    )

    attempts = 0

    def _send() -> requests.Response:
        nonlocal attempts
        attempts += 1
        log.log(
            logging.INFO if config.debug else logging.DEBUG,
            "%s %s",
            method,
            config.url,
        )
        return sender.request(method, config.url, **kwargs)

    try:
        resp = retryer(_send)
    except TRANSPORT_ERRORS as exc:
        raise TransportFailure(method, config.url, attempts, exc) from exc

    if not _is_success(resp):
        raise RequestError(
            resp.status_code,
            resp.reason or "",
            resp.text,
            method=method,
            url=config.url,
        )
    return resp
