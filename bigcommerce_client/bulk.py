"""Delete everything a collection query matches.

Deletion works in rounds: fetch up to ``limit`` matching items, delete them
all concurrently, fetch again. The loop ends when the query comes back empty.
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor, wait
from typing import Any, Callable, Dict, List, Mapping, Optional, Set

from .errors import BulkDeleteStalled
from .parallel import get_executor, submit_all

logger = logging.getLogger(__name__)

__all__ = ["BulkDeleter", "DEFAULT_DELETE_LIMIT"]

DEFAULT_DELETE_LIMIT = 3


def _item_ids(endpoint: str, items: List[Mapping[str, Any]]) -> List[Any]:
    ids = []
    for item in items:
        if not isinstance(item, Mapping) or item.get("id") is None:
            raise ValueError(f"{endpoint} returned an item without an id: {item!r}")
        ids.append(item["id"])
    return ids


class BulkDeleter:
    """Delete-until-empty loop on top of plain ``get`` and ``delete`` calls.

    Parameters:
        get: ``get(endpoint, params)`` returning a list of items.
        delete: ``delete(endpoint)`` removing a single resource.
        parallel: executor selection, see :func:`~bigcommerce_client.parallel.get_executor`.
    """

    def __init__(
        self,
        get: Callable[[str, Optional[Mapping[str, Any]]], Any],
        delete: Callable[[str], Any],
        parallel: Any = True,
    ) -> None:
        self.get = get
        self.delete = delete
        self.parallel = parallel

    def _fetch(self, endpoint: str, query: Mapping[str, Any]) -> List[Any]:
        return list(self.get(endpoint, query) or [])

    def delete_all(
        self,
        endpoint: str,
        params: Optional[Mapping[str, Any]] = None,
        limit: int = DEFAULT_DELETE_LIMIT,
    ) -> int:
        """Delete every item ``endpoint`` returns for ``params``.

        ``limit`` is both the page size and the number of deletes in flight.
        Each item is deleted at ``<endpoint>/<id>``. The first failed delete
        of a round is raised once the rest of that round has finished, and no
        further rounds run.

        Returns:
            The number of items deleted.

        Raises:
            BulkDeleteStalled: a fetch returned an item that was already deleted.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")

        query: Dict[str, Any] = dict(params or {})
        query["limit"] = limit
        base = endpoint.rstrip("/")

        owned = not isinstance(self.parallel, Executor)
        deleted: Set[Any] = set()
        rounds = 0
        items = self._fetch(endpoint, query)
        while items:
            ids = _item_ids(endpoint, items)
            seen_again = deleted.intersection(ids)
            if seen_again:
                raise BulkDeleteStalled(endpoint, seen_again)

            rounds += 1
            logger.debug(
                "Round %s: deleting %s item(s) from %s", rounds, len(ids), endpoint
            )
            executor = get_executor(self.parallel, max_workers=len(ids))
            try:
                futures = submit_all(
                    executor, self.delete, [f"{base}/{id_}" for id_ in ids]
                )
                wait(futures)
            finally:
                if owned:
                    executor.shutdown(wait=True)

            deleted.update(
                id_ for id_, future in zip(ids, futures) if future.exception() is None
            )
            for future in futures:
                future.result()

            items = self._fetch(endpoint, query)

        logger.info(
            "Deleted %s item(s) from %s in %s round(s)", len(deleted), endpoint, rounds
        )
        return len(deleted)
