"""Tests for page fan-out and ordered aggregation."""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest
from bigcommerce_client import Page, Pagination, Paginator, RequestError
from bigcommerce_client.parallel import SerialExecutor

ENDPOINT = "v3/catalog/products"


class FakePages:
    """``fetch_page`` stand-in serving ``total_pages`` pages of ``per_page`` items."""

    def __init__(self, total_pages, per_page=2, delays=None, fail_on=None):
        self.total_pages = total_pages
        self.per_page = per_page
        self.delays = delays or {}
        self.fail_on = fail_on
        self.calls = []
        self.lock = threading.Lock()
        self.in_flight = 0
        self.peak = 0

    def __call__(self, endpoint, params):
        page = int((params or {}).get("page", 1))
        with self.lock:
            self.calls.append((endpoint, dict(params or {})))
            self.in_flight += 1
            self.peak = max(self.peak, self.in_flight)
        try:
            time.sleep(self.delays.get(page, 0))
            if page == self.fail_on:
                raise RequestError(404, "Not Found", "not found")
            items = [f"p{page}-{i}" for i in range(self.per_page)]
            return Page(items, Pagination(current_page=page, total_pages=self.total_pages))
        finally:
            with self.lock:
                self.in_flight -= 1

    @property
    def pages_requested(self):
        return [params.get("page", 1) for _, params in self.calls]


def expected_items(total_pages, per_page=2):
    return [f"p{page}-{i}" for page in range(1, total_pages + 1) for i in range(per_page)]


class TestPaginate:
    def test_single_page_yields_one_resolved_future(self):
        fetch = FakePages(total_pages=1)

        futures = Paginator(fetch).paginate(ENDPOINT)

        assert len(futures) == 1
        assert futures[0].done()
        assert len(fetch.calls) == 1

    def test_one_future_per_page_in_order(self):
        fetch = FakePages(total_pages=4)

        futures = Paginator(fetch, parallel=False).paginate(ENDPOINT, {"sku": "a"})

        pages = [future.result() for future in futures]
        assert [page.pagination.current_page for page in pages] == [1, 2, 3, 4]
        assert fetch.calls[1] == (ENDPOINT, {"sku": "a", "page": 2})

    def test_caller_params_are_not_mutated(self):
        params = {"limit": 2}

        Paginator(FakePages(total_pages=3), parallel=False).paginate(ENDPOINT, params)

        assert params == {"limit": 2}

    def test_page_count_comes_from_first_page(self):
        fetch = FakePages(total_pages=3)
        original = fetch.__call__

        def growing(endpoint, params):
            page = original(endpoint, params)
            if page.pagination.current_page > 1:
                # Later pages claim the collection grew
                return Page(page.items, Pagination(page.pagination.current_page, 10))
            return page

        futures = Paginator(growing, parallel=False).paginate(ENDPOINT)

        assert len(futures) == 3

    def test_starts_after_requested_page(self):
        fetch = FakePages(total_pages=4)

        futures = Paginator(fetch, parallel=False).paginate(ENDPOINT, {"page": 3})

        assert len(futures) == 2
        assert fetch.pages_requested == [3, 4]

    def test_all_pages_are_submitted_before_any_is_awaited(self):
        submitted = []

        class RecordingExecutor(SerialExecutor):
            def submit(self, fn, /, *args, **kwargs):
                submitted.append(args[1]["page"])
                return super().submit(fn, *args, **kwargs)

        futures = Paginator(FakePages(total_pages=5)).paginate(
            ENDPOINT, executor=RecordingExecutor()
        )

        assert submitted == [2, 3, 4, 5]
        assert len(futures) == 5

    def test_caller_executor_stays_open(self):
        executor = ThreadPoolExecutor(max_workers=3)
        paginator = Paginator(FakePages(total_pages=3), parallel=executor)

        futures = paginator.paginate(ENDPOINT)

        assert [item for f in futures for item in f.result()] == expected_items(3)
        assert paginator.get_all(ENDPOINT) == expected_items(3)
        executor.shutdown()

    def test_logs_progress_in_debug_mode(self, caplog):
        caplog.set_level(logging.INFO, logger="bigcommerce_client")

        Paginator(FakePages(total_pages=2), parallel=False, debug=True).paginate(ENDPOINT)

        assert "CURRENT PAGE: 1 TOTAL PAGES: 2" in caplog.messages


class TestGetAll:
    def test_concatenates_in_page_order(self):
        fetch = FakePages(total_pages=5)

        assert Paginator(fetch).get_all(ENDPOINT) == expected_items(5)

    def test_order_ignores_completion_order(self):
        # Page 2 finishes last, page 5 first.
        fetch = FakePages(total_pages=5, delays={2: 0.15, 3: 0.1, 4: 0.05})

        assert Paginator(fetch).get_all(ENDPOINT) == expected_items(5)

    def test_at_most_three_fetches_in_flight(self):
        fetch = FakePages(total_pages=10, delays={p: 0.03 for p in range(2, 11)})

        items = Paginator(fetch).get_all(ENDPOINT)

        assert len(items) == 20
        assert fetch.peak <= 3
        assert fetch.peak > 1

    def test_concurrency_is_configurable(self):
        fetch = FakePages(total_pages=6, delays={p: 0.02 for p in range(2, 7)})

        Paginator(fetch, max_concurrency=1).get_all(ENDPOINT)

        assert fetch.peak == 1

    def test_empty_collection_is_one_request(self):
        fetch = FakePages(total_pages=1, per_page=0)

        assert Paginator(fetch).get_all(ENDPOINT) == []
        assert len(fetch.calls) == 1

    def test_failed_page_fails_everything(self):
        fetch = FakePages(total_pages=4, fail_on=3)

        with pytest.raises(RequestError) as excinfo:
            Paginator(fetch).get_all(ENDPOINT)

        assert excinfo.value.status_code == 404

    def test_failed_first_page(self):
        fetch = FakePages(total_pages=4, fail_on=1)

        with pytest.raises(RequestError):
            Paginator(fetch).get_all(ENDPOINT)

        assert len(fetch.calls) == 1

    def test_serial_executor(self):
        fetch = FakePages(total_pages=3)

        assert Paginator(fetch, parallel="serial").get_all(ENDPOINT) == expected_items(3)
        assert fetch.pages_requested == [1, 2, 3]


class TestLazyIteration:
    def test_iter_pages_fetches_on_demand(self):
        fetch = FakePages(total_pages=3)

        pages = Paginator(fetch).iter_pages(ENDPOINT)
        assert fetch.calls == []

        first = next(pages)
        assert first.pagination.current_page == 1
        assert len(fetch.calls) == 1

        assert [page.pagination.current_page for page in pages] == [2, 3]
        assert len(fetch.calls) == 3

    def test_iter_all_yields_items(self):
        fetch = FakePages(total_pages=3)

        assert list(Paginator(fetch).iter_all(ENDPOINT)) == expected_items(3)
