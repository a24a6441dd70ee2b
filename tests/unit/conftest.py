"""Pytest configuration and shared fixtures for unit tests."""

import pytest
import responses
from bigcommerce_client import BigCommerceClient, ClientConfig

from tests.unit.fixtures import STORE_HASH, TOKEN


@pytest.fixture
def config():
    """Client configuration that never sleeps between retries."""
    return ClientConfig(
        store_hash=STORE_HASH, access_token=TOKEN, backoff_factor=0, max_retries=2
    )


@pytest.fixture
def client(config):
    """A client backed by a real ``requests.Session``."""
    with BigCommerceClient(config=config) as client:
        yield client


@pytest.fixture
def mocked_responses():
    """Intercept every HTTP request made through ``requests``."""
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        yield rsps
