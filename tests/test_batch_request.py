"""Tests for single-or-batch request normalization."""

from unittest.mock import AsyncMock

import pytest

from lmproxy.app.exceptions import BatchItemError, LogicMonitorAPIError, ToolValidationError
from lmproxy.app.services.batch_processor import BatchOptions, BatchProcessor, BatchResult
from lmproxy.app.services.batch_request import (
    BatchRequest,
    SingleRequest,
    build_batch_options,
    is_batch_arguments,
    parse_request,
    run_request,
)
from lmproxy.app.services.rate_limiter import RateLimiter, RetryOptions


class TestParseRequest:
    """Test classification of tool arguments."""

    def test_single_item(self):
        request = parse_request({"deviceId": 5, "displayName": "web-01"}, "devices")

        assert request == SingleRequest(item={"deviceId": 5, "displayName": "web-01"})

    def test_single_item_drops_batch_options(self):
        request = parse_request({"deviceId": 5, "batchOptions": {"maxConcurrent": 2}}, "devices")

        assert isinstance(request, SingleRequest)
        assert request.item == {"deviceId": 5}

    def test_batch_with_options(self):
        request = parse_request(
            {
                "devices": [{"deviceId": 1}, {"deviceId": 2}],
                "batchOptions": {"maxConcurrent": 8, "continueOnError": False},
            },
            "devices",
        )

        assert isinstance(request, BatchRequest)
        assert request.items == [{"deviceId": 1}, {"deviceId": 2}]
        assert request.options.max_concurrent == 8
        assert request.options.continue_on_error is False
        assert request.options.retry_on_rate_limit is True

    def test_batch_defaults(self):
        request = parse_request({"groups": [{"groupId": 1}]}, "groups", default_max_concurrent=4)

        assert request.options.max_concurrent == 4
        assert request.options.continue_on_error is True

    def test_concurrency_clamped_to_cap(self):
        request = parse_request(
            {"devices": [{"deviceId": 1}], "batchOptions": {"maxConcurrent": 500}},
            "devices",
            max_concurrent_cap=50,
        )

        assert request.options.max_concurrent == 50

    def test_retry_options_propagated(self):
        retry = RetryOptions(max_retries=7)
        request = parse_request({"devices": [{"deviceId": 1}]}, "devices", retry_options=retry)

        assert request.options.retry_options is retry

    def test_other_array_key_is_not_a_batch(self):
        """Test that only the tool's own array key marks a batch."""
        request = parse_request({"groups": [{"groupId": 1}]}, "devices")

        assert isinstance(request, SingleRequest)

    def test_empty_batch_rejected(self):
        with pytest.raises(ToolValidationError, match="at least 1 item"):
            parse_request({"devices": []}, "devices")

    def test_non_object_entries_rejected(self):
        with pytest.raises(ToolValidationError, match="must be an object"):
            parse_request({"devices": [{"deviceId": 1}, 7]}, "devices")

    def test_is_batch_arguments(self):
        assert is_batch_arguments({"devices": []}, "devices") is True
        assert is_batch_arguments({"devices": "x"}, "devices") is False
        assert is_batch_arguments(None, "devices") is False

    def test_build_batch_options_without_raw(self):
        options = build_batch_options(None, 5, 50)

        assert options.max_concurrent == 5
        assert options.continue_on_error is True


class TestRunRequest:
    """Test dispatch of normalized requests through the processor."""

    @pytest.mark.asyncio
    async def test_single_success_is_unwrapped(self):
        processor = BatchProcessor(RateLimiter())
        operation = AsyncMock(return_value={"id": 9})

        data = await run_request(processor, SingleRequest(item={"deviceId": 9}), operation)

        assert data == {"id": 9}
        operation.assert_awaited_once_with({"deviceId": 9}, 0)

    @pytest.mark.asyncio
    async def test_single_failure_raises_item_error(self):
        processor = BatchProcessor(RateLimiter())
        operation = AsyncMock(side_effect=LogicMonitorAPIError("LogicMonitor API error: gone (404)"))

        with pytest.raises(BatchItemError, match=r"gone \(404\)"):
            await run_request(processor, SingleRequest(item={"deviceId": 9}), operation)

    @pytest.mark.asyncio
    async def test_batch_returns_full_result(self):
        processor = BatchProcessor(RateLimiter())

        async def operation(item, index):
            if item["deviceId"] == 2:
                raise LogicMonitorAPIError("nope")
            return item["deviceId"]

        request = BatchRequest(
            items=[{"deviceId": 1}, {"deviceId": 2}],
            options=BatchOptions(max_concurrent=2),
        )
        result = await run_request(processor, request, operation)

        assert isinstance(result, BatchResult)
        assert result.summary.succeeded == 1
        assert result.results[1].error == "nope"
