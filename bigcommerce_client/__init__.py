"""bigcommerce_client: a Python client for the BigCommerce management API.

Quick Start:
    ```python
    from bigcommerce_client import BigCommerceClient

    client = BigCommerceClient("gha3w9n1at", "j3aovsvag3vg88hhyl4qt89q6ag2b6b")

    # One page
    product = client.get("v3/catalog/products", {"sku": "10205"})

    # Every page, fetched three at a time
    products = client.get_all("v3/catalog/products")

    # Delete everything a filter matches
    client.delete_all("v3/catalog/products", {"brand_id": "7"})
    ```

Main pieces:
    - `BigCommerceClient`: get, get_all, post, put, delete, delete_all
    - `Paginator`: page fan-out and ordered aggregation
    - `BulkDeleter`: delete-until-empty loop
    - `ClientConfig`: settings, optionally read from `BIGCOMMERCE_*` variables
"""

import logging
from importlib.metadata import version

from ._core._envelope import read_envelope
from ._core._models import Envelope, Page, Pagination
from ._core._request import RequestConfig, build_url, encode_query, request
from .bulk import BulkDeleter
from .client import ApiClient, BigCommerceClient
from .config import ClientConfig
from .errors import (
    BigCommerceError,
    BulkDeleteStalled,
    ConfigurationError,
    ParseError,
    RequestError,
    TransportFailure,
)
from .pagination import Paginator

logger = logging.getLogger(__name__)

__all__ = [
    # client.py
    "BigCommerceClient",
    "ApiClient",
    # config.py
    "ClientConfig",
    # pagination.py
    "Paginator",
    # bulk.py
    "BulkDeleter",
    # _core
    "Envelope",
    "Page",
    "Pagination",
    "RequestConfig",
    "build_url",
    "encode_query",
    "read_envelope",
    "request",
    # errors.py
    "BigCommerceError",
    "BulkDeleteStalled",
    "ConfigurationError",
    "ParseError",
    "RequestError",
    "TransportFailure",
]

__version__ = version("bigcommerce-client")
