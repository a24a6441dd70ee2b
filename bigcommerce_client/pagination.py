"""Page-number pagination over ``{data, meta}`` collection endpoints.

The first page is fetched up front; its ``meta.pagination`` says how many
pages exist. Every remaining page is then submitted to an executor at once,
and the results are collected back in page order.
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor, Future
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Union

from ._core._models import Page
from .parallel import completed_future, gather, get_executor

logger = logging.getLogger(__name__)

__all__ = ["Paginator", "FetchPage", "DEFAULT_PAGE_CONCURRENCY"]

DEFAULT_PAGE_CONCURRENCY = 3

FetchPage = Callable[[str, Optional[Mapping[str, Any]]], Page]


def _page_query(params: Optional[Mapping[str, Any]], page: int) -> Dict[str, Any]:
    query = dict(params or {})
    query["page"] = page
    return query


class Paginator:
    """Fan out page fetches and reassemble them in order.

    Parameters:
        fetch_page: callable fetching one page as ``fetch_page(endpoint, params)``.
        max_concurrency: upper bound on page fetches in flight at once.
        parallel: executor selection, see :func:`~bigcommerce_client.parallel.get_executor`.
        debug: log page progress at INFO instead of DEBUG.
    """

    def __init__(
        self,
        fetch_page: FetchPage,
        max_concurrency: int = DEFAULT_PAGE_CONCURRENCY,
        parallel: Union[str, Executor, bool, None] = True,
        debug: bool = False,
    ) -> None:
        self.fetch_page = fetch_page
        self.max_concurrency = max_concurrency
        self.parallel = parallel
        self.debug = debug

    def _log_progress(self, current: int, total: int) -> None:
        logger.log(
            logging.INFO if self.debug else logging.DEBUG,
            "CURRENT PAGE: %s TOTAL PAGES: %s",
            current,
            total,
        )

    def paginate(
        self,
        endpoint: str,
        params: Optional[Mapping[str, Any]] = None,
        executor: Optional[Executor] = None,
    ) -> List[Future]:
        """Start fetching every page of ``endpoint``.

        The first page is fetched before returning. Its pagination state
        fixes the page count for the whole call; the remaining pages are all
        submitted to ``executor`` before this returns.

        Returns:
            One future per page, in page order. The first is already resolved.
        """
        first = self.fetch_page(endpoint, params)
        current = first.pagination.current_page
        total = first.pagination.total_pages
        self._log_progress(current, total)

        futures = [completed_future(first)]
        if current >= total:
            return futures

        owned = executor is None and not isinstance(self.parallel, Executor)
        if executor is None:
            executor = get_executor(self.parallel, max_workers=self.max_concurrency)
        assert executor is not None
        try:
            for page in range(current + 1, total + 1):
                self._log_progress(page, total)
                query = _page_query(params, page)
                futures.append(executor.submit(self.fetch_page, endpoint, query))
        finally:
            if owned:
                # Submitted fetches keep running after a non-waiting shutdown.
                executor.shutdown(wait=False)
        return futures

    def get_all(
        self, endpoint: str, params: Optional[Mapping[str, Any]] = None
    ) -> List[Any]:
        """Fetch every page and concatenate the items in page order.

        A single failed page fails the whole call; fetches that have not
        started yet are cancelled.
        """
        owned = not isinstance(self.parallel, Executor)
        executor = get_executor(self.parallel, max_workers=self.max_concurrency)
        try:
            pages = gather(self.paginate(endpoint, params, executor=executor))
        finally:
            if owned:
                executor.shutdown(wait=True)

        items: List[Any] = []
        for page in pages:
            items.extend(page.items)
        return items

    def iter_pages(
        self, endpoint: str, params: Optional[Mapping[str, Any]] = None
    ) -> Iterator[Page]:
        """Yield pages one at a time, fetching each only when it is needed."""
        first = self.fetch_page(endpoint, params)
        yield first

        total = first.pagination.total_pages
        for page in range(first.pagination.current_page + 1, total + 1):
            self._log_progress(page, total)
            yield self.fetch_page(endpoint, _page_query(params, page))

    def iter_all(
        self, endpoint: str, params: Optional[Mapping[str, Any]] = None
    ) -> Iterator[Any]:
        """Yield items across all pages, lazily."""
        for page in self.iter_pages(endpoint, params):
            yield from page.items
