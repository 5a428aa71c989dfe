"""
Availability Prober Tests
=========================

Tests for batched existence checking, progress reporting and transports.
"""

import asyncio

import httpx
import pytest

from raster_playback.models import TimeRange
from raster_playback.probe import (
    AvailabilityProber,
    HttpExistenceCheck,
    StaticExistenceCheck,
    progress_percent,
)
from raster_playback.probe.prober import batched

from conftest import BASE_TIME, SlowCheck, locators_for


def probe(check, total_frames: int, batch_size: int = 3, check_timeout=None):
    """Run a prober over ``total_frames`` frames and collect published statuses."""
    prober = AvailabilityProber(check, batch_size=batch_size, check_timeout=check_timeout)
    statuses = []
    prober.add_observer(statuses.append)
    result = asyncio.run(prober.run(TimeRange.from_count(BASE_TIME, total_frames)))
    return result, statuses, prober


class TestProgress:
    """Tests for progress arithmetic and batching."""

    def test_progress_percent(self):
        assert progress_percent(0, 7) == 0
        assert progress_percent(3, 7) == 43
        assert progress_percent(6, 7) == 86
        assert progress_percent(7, 7) == 100

    def test_progress_caps_at_100(self):
        assert progress_percent(9, 7) == 100

    def test_progress_rejects_empty_total(self):
        with pytest.raises(ValueError):
            progress_percent(0, 0)

    def test_batched_sizes(self):
        assert [len(b) for b in batched(list(range(7)), 3)] == [3, 3, 1]

    def test_batched_rejects_zero(self):
        with pytest.raises(ValueError):
            batched([1, 2], 0)


class TestAvailabilityProber:
    """Tests for AvailabilityProber runs."""

    def test_partial_availability(self):
        """Checks succeed for {0, 2} and fail for {1}."""
        check = StaticExistenceCheck(missing=locators_for([1], 3))

        result, _, _ = probe(check, 3)

        assert result.catalog.indices_in_order() == (0, 2)
        assert result.catalog.get(2).locator.endswith("20250512_1700Z.zarrpyramid")
        assert result.recommended_index == 0
        assert result.failed_indices == (1,)

    def test_all_missing(self):
        check = StaticExistenceCheck(present=[])

        result, statuses, _ = probe(check, 4)

        assert result.is_empty
        assert result.recommended_index is None
        assert result.status.complete
        assert result.status.progress_percent == 100
        assert statuses[-1].complete

    def test_recommended_start_skips_leading_gaps(self):
        check = StaticExistenceCheck(missing=locators_for([0, 1, 2], 6))

        result, _, _ = probe(check, 6)

        assert result.recommended_index == 3

    def test_batch_progress_sequence(self):
        """Batches of [3, 3, 1] report 43%, 86% and 100%."""
        result, statuses, _ = probe(StaticExistenceCheck(), 7)

        percents = [status.progress_percent for status in statuses]
        assert percents == [0, 43, 86, 100, 100]
        assert all(status.in_flight for status in statuses[:-1])
        assert not any(status.complete for status in statuses[:-1])
        assert statuses[-1].complete and not statuses[-1].in_flight
        assert result.catalog.size() == 7

    def test_progress_is_monotonic(self):
        _, statuses, _ = probe(StaticExistenceCheck(), 72)

        percents = [status.progress_percent for status in statuses]
        assert percents == sorted(percents)
        assert percents[1] == 4

    def test_every_candidate_checked_once(self):
        check = StaticExistenceCheck()

        probe(check, 10)

        assert check.calls == locators_for(range(10), 10)

    def test_concurrency_bounded_by_batch_size(self):
        check = SlowCheck(delay=0.01)

        probe(check, 10, batch_size=3)

        assert check.max_in_flight == 3

    def test_batches_run_sequentially(self):
        """No check of a batch starts before the previous batch settles."""
        check = SlowCheck(delay=0.01)

        probe(check, 7, batch_size=3)

        kinds = [kind for kind, _ in check.events]
        assert kinds == ["start"] * 3 + ["end"] * 3 + ["start"] * 3 + ["end"] * 3 + ["start", "end"]

    def test_errors_count_as_missing(self):
        broken = set(locators_for([1, 4], 6))

        class FlakyCheck:
            async def exists(self, locator):
                if locator in broken:
                    raise ConnectionError("connection reset")
                return True

        result, statuses, prober = probe(FlakyCheck(), 6)

        assert result.catalog.indices_in_order() == (0, 2, 3, 5)
        assert result.failed_indices == (1, 4)
        assert statuses[-1].complete
        assert prober.metrics.checks_failed == 2

    def test_timeout_counts_as_missing(self):
        stuck = locators_for([1], 3)[0]

        class StuckCheck:
            async def exists(self, locator):
                if locator == stuck:
                    await asyncio.sleep(10)
                return True

        result, _, _ = probe(StuckCheck(), 3, check_timeout=0.05)

        assert result.catalog.indices_in_order() == (0, 2)

    def test_no_failed_index_in_catalog(self):
        check = StaticExistenceCheck(missing=locators_for([0, 3, 5, 6], 8))

        result, _, _ = probe(check, 8)

        assert not set(result.failed_indices) & set(result.catalog.indices_in_order())
        assert sorted(result.failed_indices + result.catalog.indices_in_order()) == list(range(8))

    def test_observer_errors_do_not_abort_run(self):
        prober = AvailabilityProber(StaticExistenceCheck())

        def broken_observer(status):
            raise RuntimeError("observer failed")

        prober.add_observer(broken_observer)
        result = asyncio.run(prober.run(TimeRange.from_count(BASE_TIME, 4)))

        assert result.catalog.size() == 4

    def test_unsubscribe(self):
        prober = AvailabilityProber(StaticExistenceCheck())
        statuses = []
        unsubscribe = prober.add_observer(statuses.append)
        unsubscribe()

        asyncio.run(prober.run(TimeRange.from_count(BASE_TIME, 3)))

        assert statuses == []

    def test_metrics(self):
        check = StaticExistenceCheck(missing=locators_for([2], 6))

        _, _, prober = probe(check, 6)

        metrics = prober.metrics.to_dict()
        assert metrics["runs_started"] == 1
        assert metrics["runs_completed"] == 1
        assert metrics["checks_issued"] == 6
        assert metrics["checks_failed"] == 1

    def test_rejects_zero_batch_size(self):
        with pytest.raises(ValueError):
            AvailabilityProber(StaticExistenceCheck(), batch_size=0)


class TestStaticExistenceCheck:
    """Tests for the in-memory transport."""

    def test_present_set_answers_by_locator(self):
        locators = locators_for([0, 1], 2)
        check = StaticExistenceCheck(present=[locators[0]])

        assert asyncio.run(check.exists(locators[0]))
        assert not asyncio.run(check.exists(locators[1]))
        assert check.calls == locators

    def test_missing_set_ignored_when_present_given(self):
        locators = locators_for([0, 1], 2)
        check = StaticExistenceCheck(present=locators, missing=[locators[0]])

        assert asyncio.run(check.exists(locators[0]))


class TestHttpExistenceCheck:
    """Tests for the HEAD-based transport."""

    def test_head_on_metadata_document(self):
        seen = []
        present = locators_for([0], 2)[0] + "/.zmetadata"

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append((request.method, str(request.url)))
            return httpx.Response(200 if str(request.url) == present else 404)

        async def scenario():
            client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
            check = HttpExistenceCheck(client=client)
            try:
                prober = AvailabilityProber(check)
                return await prober.run(TimeRange.from_count(BASE_TIME, 2))
            finally:
                await client.aclose()

        result = asyncio.run(scenario())

        assert result.catalog.indices_in_order() == (0,)
        assert [method for method, _ in seen] == ["HEAD", "HEAD"]
        assert all(url.endswith("/.zmetadata") for _, url in seen)

    def test_server_error_is_missing(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503)

        async def scenario():
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
                return await HttpExistenceCheck(client=client).exists("https://example.test/a")

        assert asyncio.run(scenario()) is False

    def test_transport_error_propagates_to_prober(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        async def scenario():
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
                prober = AvailabilityProber(HttpExistenceCheck(client=client))
                return await prober.run(TimeRange.from_count(BASE_TIME, 3))

        result = asyncio.run(scenario())

        assert result.is_empty
        assert result.failed_indices == (0, 1, 2)

    def test_shared_client_not_closed(self):
        async def scenario():
            client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
            check = HttpExistenceCheck(client=client)
            await check.aclose()
            closed = client.is_closed
            await client.aclose()
            return closed

        assert asyncio.run(scenario()) is False
