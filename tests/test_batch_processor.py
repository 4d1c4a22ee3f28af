"""Tests for the batch executor."""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from lmproxy.app.exceptions import BatchItemError, LogicMonitorAPIError, RateLimitedError
from lmproxy.app.services.batch_processor import (
    BatchItemResult,
    BatchOptions,
    BatchProcessor,
    BatchResult,
    describe_error,
)
from lmproxy.app.services.rate_limiter import RateLimiter, RetryOptions


class ConcurrencyProbe:
    """Operation that records peak in-flight count and fails chosen indices."""

    def __init__(self, fail_at=(), delays=None):
        self.fail_at = set(fail_at)
        self.delays = delays or {}
        self.in_flight = 0
        self.peak = 0
        self.started = []

    async def __call__(self, item, index):
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        self.started.append(index)
        try:
            await asyncio.sleep(self.delays.get(index, 0.001))
            if index in self.fail_at:
                raise LogicMonitorAPIError(f"item {item} failed")
            return item * 10
        finally:
            self.in_flight -= 1


@pytest.fixture
def processor():
    return BatchProcessor(RateLimiter())


class TestBatchResultTypes:
    """Test result record shapes."""

    def test_item_result_to_dict_has_exactly_one_payload(self):
        """Test ok/failed records emit data or error, never both."""
        assert BatchItemResult.ok(0, {"id": 1}).to_dict() == {
            "index": 0, "success": True, "data": {"id": 1}
        }
        assert BatchItemResult.failed(2, "boom").to_dict() == {
            "index": 2, "success": False, "error": "boom"
        }

    def test_from_results_summary(self):
        """Test summary counts and overall success."""
        result = BatchResult.from_results([
            BatchItemResult.ok(0, "a"),
            BatchItemResult.failed(1, "x"),
        ])

        assert result.success is False
        assert result.summary.total == 2
        assert result.summary.succeeded == 1
        assert result.summary.failed == 1

    def test_describe_error_falls_back_to_class_name(self):
        """Test failure text is the message, or the class name when empty."""
        assert describe_error(ValueError("bad input")) == "bad input"
        assert describe_error(RuntimeError()) == "RuntimeError"

    def test_max_concurrent_must_be_positive(self):
        with pytest.raises(ValueError):
            BatchOptions(max_concurrent=0)


class TestProcessBatch:
    """Test windowed execution."""

    @pytest.mark.asyncio
    async def test_partial_failure_preserves_order(self, processor):
        """Test 7 items, concurrency 3, failures at 2 and 5."""
        probe = ConcurrencyProbe(fail_at={2, 5})
        items = list(range(7))

        result = await processor.process_batch(
            items, probe, BatchOptions(max_concurrent=3, retry_on_rate_limit=False)
        )

        assert [r.index for r in result.results] == list(range(7))
        assert [r.success for r in result.results] == [True, True, False, True, True, False, True]
        assert result.results[0].data == 0
        assert result.results[6].data == 60
        assert result.results[2].error == "item 2 failed"
        assert result.results[2].data is None
        assert result.summary.total == 7
        assert result.summary.succeeded == 5
        assert result.summary.failed == 2
        assert result.success is False
        assert probe.peak <= 3

    @pytest.mark.asyncio
    async def test_results_follow_input_order_not_completion(self, processor):
        """Test slower early items still land at their own index."""
        probe = ConcurrencyProbe(delays={0: 0.03, 1: 0.001, 2: 0.01})

        result = await processor.process_batch(
            [1, 2, 3], probe, BatchOptions(max_concurrent=3, retry_on_rate_limit=False)
        )

        assert [r.data for r in result.results] == [10, 20, 30]

    @pytest.mark.asyncio
    async def test_windows_are_sequential(self, processor):
        """Test no item of window N+1 starts before window N is joined."""
        probe = ConcurrencyProbe(delays={0: 0.02})

        await processor.process_batch(
            list(range(4)), probe, BatchOptions(max_concurrent=2, retry_on_rate_limit=False)
        )

        assert sorted(probe.started[:2]) == [0, 1]
        assert sorted(probe.started[2:]) == [2, 3]
        assert probe.peak == 2

    @pytest.mark.asyncio
    async def test_empty_batch(self, processor):
        """Test an empty batch is vacuously successful and never calls the operation."""
        operation = AsyncMock()

        result = await processor.process_batch([], operation)

        assert result.success is True
        assert result.results == ()
        assert result.summary.total == 0
        operation.assert_not_called()

    @pytest.mark.asyncio
    async def test_abort_raises_first_failure_after_window_joins(self, processor):
        """Test continue_on_error=False re-raises the original error."""
        probe = ConcurrencyProbe(fail_at={1, 2}, delays={0: 0.02})

        with pytest.raises(LogicMonitorAPIError) as exc_info:
            await processor.process_batch(
                list(range(6)),
                probe,
                BatchOptions(max_concurrent=3, continue_on_error=False, retry_on_rate_limit=False),
            )

        assert str(exc_info.value) == "item 1 failed"
        # The failing window ran to completion; later windows never started
        assert sorted(probe.started) == [0, 1, 2]
        assert probe.in_flight == 0

    @pytest.mark.asyncio
    async def test_abort_without_failures_returns_result(self, processor):
        probe = ConcurrencyProbe()

        result = await processor.process_batch(
            [1, 2], probe, BatchOptions(continue_on_error=False, retry_on_rate_limit=False)
        )

        assert result.success is True

    @pytest.mark.asyncio
    async def test_progress_callback(self, processor):
        """Test on_progress reports every settled item."""
        calls = []
        probe = ConcurrencyProbe(fail_at={1})

        await processor.process_batch(
            [1, 2, 3],
            probe,
            BatchOptions(
                max_concurrent=2,
                retry_on_rate_limit=False,
                on_progress=lambda done, total: calls.append((done, total)),
            ),
        )

        assert calls == [(1, 3), (2, 3), (3, 3)]

    @pytest.mark.asyncio
    async def test_progress_callback_error_raised_after_window(self, processor):
        """Test a failing on_progress surfaces only once its window has settled."""
        probe = ConcurrencyProbe(delays={0: 0.001, 1: 0.05})

        def on_progress(done, total):
            raise RuntimeError("progress sink closed")

        with pytest.raises(RuntimeError, match="progress sink closed"):
            await processor.process_batch(
                [1, 2, 3],
                probe,
                BatchOptions(max_concurrent=2, retry_on_rate_limit=False, on_progress=on_progress),
            )

        assert probe.in_flight == 0
        assert probe.started == [0, 1]

    @pytest.mark.asyncio
    async def test_rate_limited_items_are_retried(self):
        """Test items go through the limiter's retry loop."""
        limiter = RateLimiter()
        processor = BatchProcessor(limiter)
        operation = AsyncMock(side_effect=[RateLimitedError(), "created"])

        with patch.object(limiter, "_sleep", new_callable=AsyncMock):
            result = await processor.process_batch(
                ["device"],
                operation,
                BatchOptions(retry_options=RetryOptions(max_retries=2)),
            )

        assert result.results[0].success is True
        assert result.results[0].data == "created"
        assert operation.call_count == 2

    @pytest.mark.asyncio
    async def test_exhausted_rate_limit_recorded_as_failure(self):
        """Test a 429 that outlasts its retries becomes an item failure."""
        limiter = RateLimiter()
        processor = BatchProcessor(limiter)
        operation = AsyncMock(side_effect=RateLimitedError())

        with patch.object(limiter, "_sleep", new_callable=AsyncMock):
            result = await processor.process_batch(
                ["a"], operation, BatchOptions(retry_options=RetryOptions(max_retries=2))
            )

        assert result.results[0].success is False
        assert "429" in result.results[0].error


class TestConvenienceModes:
    """Test serial and parallel wrappers."""

    @pytest.mark.asyncio
    async def test_serial_runs_one_at_a_time(self, processor):
        probe = ConcurrencyProbe()

        await processor.process_serial(
            list(range(4)), probe, BatchOptions(max_concurrent=10, retry_on_rate_limit=False)
        )

        assert probe.peak == 1
        assert probe.started == [0, 1, 2, 3]

    @pytest.mark.asyncio
    async def test_parallel_runs_single_window(self, processor):
        probe = ConcurrencyProbe(delays={i: 0.01 for i in range(8)})

        result = await processor.process_parallel(
            list(range(8)), probe, BatchOptions(retry_on_rate_limit=False)
        )

        assert probe.peak == 8
        assert result.summary.succeeded == 8


class TestUnwrapSingleResult:
    """Test single-item adaptation."""

    def test_success_returns_data(self):
        result = BatchResult.from_results([BatchItemResult.ok(0, {"id": 7})])

        assert BatchProcessor.unwrap_single_result(result) == {"id": 7}

    def test_failure_raises_recorded_message(self):
        result = BatchResult.from_results([BatchItemResult.failed(0, "LogicMonitor API error: nope (400)")])

        with pytest.raises(BatchItemError, match=r"nope \(400\)"):
            BatchProcessor.unwrap_single_result(result)

    def test_wrong_count_rejected(self):
        result = BatchResult.from_results([BatchItemResult.ok(0, 1), BatchItemResult.ok(1, 2)])

        with pytest.raises(ValueError):
            BatchProcessor.unwrap_single_result(result)
