"""The BigCommerce store management API client."""

from __future__ import annotations

import logging
import threading
import weakref
from concurrent.futures import Executor, Future
from typing import Any, Iterator, List, Mapping, Optional, Union

import requests

from ._core._envelope import read_envelope
from ._core._models import Envelope, Page
from ._core._request import RequestConfig, build_url, clone_session, request
from .bulk import BulkDeleter
from .config import ClientConfig
from .pagination import Paginator

logger = logging.getLogger(__name__)

__all__ = ["BigCommerceClient", "ApiClient"]


class BigCommerceClient:
    """Authenticated access to one store's management API.

    Endpoints are given from the API version onward, e.g.
    ``"v3/catalog/products"``. Query parameters are a flat mapping such as
    ``{"sku": "10205"}``.

    Examples:
        >>> client = BigCommerceClient("gha3w9n1at", "j3aovsvag3vg88hhyl4qt89q6ag2b6b")
        >>> products = client.get_all("v3/catalog/products")  # doctest: +SKIP
        >>> client.delete_all("v3/catalog/products", {"sku": "10205"})  # doctest: +SKIP
    """

    def __init__(
        self,
        store_hash: Optional[str] = None,
        access_token: Optional[str] = None,
        debug: bool = False,
        *,
        config: Optional[ClientConfig] = None,
        session: Optional[requests.Session] = None,
        parallel: Union[str, Executor, bool, None] = True,
    ) -> None:
        """Initialize the client.

        Parameters:
            store_hash: Store hash, e.g. ``gha3w9n1at``.
            access_token: API token sent as ``X-Auth-Token``.
            debug: Log every request and the pagination progress at INFO.
            config: Full configuration; replaces the three arguments above.
            session: ``requests.Session`` to send requests with.
            parallel: Executor selection for ``get_all`` and ``delete_all``.
        """
        if config is None:
            config = ClientConfig(
                store_hash=store_hash or "",
                access_token=access_token or "",
                debug=debug,
            )
        self.config = config
        self.base = config.base_url
        self.headers = {
            "X-Auth-Token": config.access_token,
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        # Metadata of the most recent response with a body. Informational
        # only: concurrent requests overwrite it in completion order.
        self.meta: Mapping[str, Any] = {}
        self._owns_session = session is None
        self.session = session if session is not None else requests.Session()
        self.session.headers.update(self.headers)
        # Worker threads send through their own clone of self.session.
        self._owner_thread = threading.get_ident()
        self._local = threading.local()
        self._worker_sessions: "weakref.WeakSet[requests.Session]" = weakref.WeakSet()
        self._sessions_lock = threading.Lock()

        self._paginator = Paginator(
            self.get_page,
            max_concurrency=config.page_concurrency,
            parallel=parallel,
            debug=config.debug,
        )
        self._deleter = BulkDeleter(self.get, self.delete, parallel=parallel)

    @classmethod
    def from_environ(
        cls, environ: Optional[Mapping[str, str]] = None, **kwargs: Any
    ) -> "BigCommerceClient":
        """Build a client from ``BIGCOMMERCE_*`` environment variables."""
        return cls(config=ClientConfig.from_environ(environ), **kwargs)

    @property
    def debug(self) -> bool:
        return self.config.debug

    def __repr__(self) -> str:
        return f"{type(self).__name__}(base={self.base!r})"

    def __enter__(self) -> "BigCommerceClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the worker sessions, and the main one if this client created it."""
        with self._sessions_lock:
            worker_sessions = list(self._worker_sessions)
        for worker_session in worker_sessions:
            worker_session.close()
        if self._owns_session:
            self.session.close()

    def _thread_session(self) -> requests.Session:
        """Return the session for the calling thread.

        The thread that built the client uses ``self.session``. Any other
        thread gets a clone made on its first request, which lives as long
        as that thread does.
        """
        if threading.get_ident() == self._owner_thread:
            return self.session
        session = getattr(self._local, "session", None)
        if session is None:
            session = clone_session(self.session)
            self._local.session = session
            with self._sessions_lock:
                self._worker_sessions.add(session)
        return session

    # ------------------------------------------------------------------
    # Request execution
    # ------------------------------------------------------------------

    def _send(
        self,
        method: str,
        endpoint: str,
        params: Optional[Mapping[str, Any]] = None,
        body: Any = None,
    ) -> requests.Response:
        config = RequestConfig(
            method=method,
            url=build_url(self.base, endpoint, params),
            headers=self.headers,
            body=body,
            timeout=self.config.timeout,
            max_retries=self.config.max_retries,
            backoff_factor=self.config.backoff_factor,
            backoff_max=self.config.backoff_max,
            debug=self.config.debug,
        )
        return request(config, self._thread_session())

    def _read(self, response: requests.Response) -> Optional[Envelope]:
        envelope = read_envelope(response.text)
        if envelope is not None:
            self.meta = envelope.meta
        return envelope

    def request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Mapping[str, Any]] = None,
        body: Any = None,
    ) -> Any:
        """Perform one request and return the ``data`` of the response.

        Returns ``None`` when the response has no body.

        Raises:
            RequestError: non-2xx response.
            ParseError: the body is not JSON.
            TransportFailure: no response after all retries.
        """
        envelope = self._read(self._send(method, endpoint, params, body))
        return None if envelope is None else envelope.data

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def get(self, endpoint: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        """GET ``endpoint`` and return the response data."""
        return self.request("GET", endpoint, params or {})

    def get_page(
        self, endpoint: str, params: Optional[Mapping[str, Any]] = None
    ) -> Page:
        """GET one page of ``endpoint``, keeping its pagination state."""
        response = self._send("GET", endpoint, params or {})
        return Page.from_envelope(self._read(response))

    def paginate(
        self,
        endpoint: str,
        params: Optional[Mapping[str, Any]] = None,
        executor: Optional[Executor] = None,
    ) -> List[Future]:
        """Start fetching all pages; see :meth:`Paginator.paginate`."""
        return self._paginator.paginate(endpoint, params, executor=executor)

    def get_all(
        self, endpoint: str, params: Optional[Mapping[str, Any]] = None
    ) -> List[Any]:
        """GET every page of ``endpoint`` and concatenate the data in page order."""
        return self._paginator.get_all(endpoint, params)

    def iter_pages(
        self, endpoint: str, params: Optional[Mapping[str, Any]] = None
    ) -> Iterator[Page]:
        """Lazily iterate the pages of ``endpoint``."""
        return self._paginator.iter_pages(endpoint, params)

    def iter_all(
        self, endpoint: str, params: Optional[Mapping[str, Any]] = None
    ) -> Iterator[Any]:
        """Lazily iterate the items of every page of ``endpoint``."""
        return self._paginator.iter_all(endpoint, params)

    def post(self, endpoint: str, body: Any) -> Any:
        """POST ``body`` as JSON and return the response data."""
        return self.request("POST", endpoint, body=body)

    def put(self, endpoint: str, body: Any) -> Any:
        """PUT ``body`` as JSON and return the response data."""
        return self.request("PUT", endpoint, body=body)

    def delete(
        self, endpoint: str, params: Optional[Mapping[str, Any]] = None
    ) -> None:
        """DELETE ``endpoint``. The response body is ignored."""
        self._send("DELETE", endpoint, params or {})

    def delete_all(
        self,
        endpoint: str,
        params: Optional[Mapping[str, Any]] = None,
        limit: Optional[int] = None,
    ) -> int:
        """Delete every item matching ``params``; see :meth:`BulkDeleter.delete_all`.

        ``limit`` defaults to the configured ``delete_limit`` (3). If the
        store rejects concurrent deletes, use 1.
        """
        if limit is None:
            limit = self.config.delete_limit
        return self._deleter.delete_all(endpoint, params, limit=limit)


ApiClient = BigCommerceClient
