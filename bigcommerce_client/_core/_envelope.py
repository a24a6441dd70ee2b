"""Parsing of ``{data, meta}`` response envelopes."""

from __future__ import annotations

import json
import logging
from typing import Optional

from ..errors import ParseError
from ._models import Envelope

log = logging.getLogger(__name__)


def read_envelope(text: str) -> Optional[Envelope]:
    """Parse a response body into an :class:`Envelope`.

    An empty body means "no content" and yields ``None``. A JSON object with a
    ``data`` key is unwrapped; any other JSON value (a bare list, ``{}``, most
    v2 endpoints) becomes the payload itself with empty ``meta``.

    Raises:
        ParseError: the body is not valid JSON.
    """
    if not text:
        return None
    try:
        body = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ParseError(f"Response body is not valid JSON: {exc}", text) from exc

    if isinstance(body, dict) and "data" in body:
        return Envelope(data=body["data"], meta=body.get("meta") or {})

    log.debug("Response body has no envelope, returning it as data")
    return Envelope(data=body, meta={})
