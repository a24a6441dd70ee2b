"""Simple data models shared across the package."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional


def _as_int(value: Any, default: Optional[int]) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class Pagination:
    """Page-number pagination state reported in ``meta.pagination``.

    Responses without pagination metadata describe a single page.
    """

    current_page: int = 1
    total_pages: int = 1
    total: Optional[int] = None
    count: Optional[int] = None
    per_page: Optional[int] = None
    next_link: Optional[str] = None

    @classmethod
    def from_meta(cls, meta: Optional[Mapping[str, Any]]) -> "Pagination":
        payload = (meta or {}).get("pagination") or {}
        links = payload.get("links") or {}
        return cls(
            current_page=_as_int(payload.get("current_page"), 1),
            total_pages=_as_int(payload.get("total_pages"), 1),
            total=_as_int(payload.get("total"), None),
            count=_as_int(payload.get("count"), None),
            per_page=_as_int(payload.get("per_page"), None),
            next_link=links.get("next"),
        )

    @property
    def is_last(self) -> bool:
        return self.current_page >= self.total_pages


@dataclass(frozen=True)
class Envelope:
    """A parsed ``{data, meta}`` response body."""

    data: Any
    meta: Mapping[str, Any] = field(default_factory=dict)

    @property
    def pagination(self) -> Pagination:
        return Pagination.from_meta(self.meta)


@dataclass(frozen=True)
class Page:
    """The items of one page together with that page's pagination state."""

    items: List[Any]
    pagination: Pagination = field(default_factory=Pagination)

    @classmethod
    def from_envelope(cls, envelope: Optional[Envelope]) -> "Page":
        if envelope is None:
            return cls(items=[])
        data = envelope.data
        if data is None:
            items: List[Any] = []
        elif isinstance(data, list):
            items = data
        else:
            items = [data]
        return cls(items=items, pagination=envelope.pagination)

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)
