"""Unit tests for the current price and history fetchers.

The upstream client is mocked; no network calls are made.
"""

import time
import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

from app.services.errors import (
    ClientInputError,
    ConfigurationError,
    UpstreamDecodeError,
    UpstreamLogicalFailure,
)
from app.services.prices import (
    CurrentPriceFetcher,
    HistoryFetcher,
    HistoryPoint,
    HistoryQuery,
    Timeframe,
    compute_cutoff,
    filter_history,
)
from app.services.upstream import UpstreamClient

from tests.payloads import DAY, days_ago, make_currencies_payload, make_history_payload

NOW = 1_700_000_000


@pytest.fixture
def upstream():
    return AsyncMock(spec=UpstreamClient)


class TestComputeCutoff:
    """Timeframe to cutoff mapping."""

    @pytest.mark.parametrize("timeframe,days", [
        ("7days", 7),
        ("30days", 30),
        ("90days", 90),
        ("1year", 365),
        ("3years", 1095),
    ])
    def test_known_timeframes(self, timeframe, days):
        assert compute_cutoff(timeframe, now=NOW) == NOW - days * DAY

    @pytest.mark.parametrize("timeframe", ["", "forever", "7DAYS", "all", "30 days"])
    def test_unknown_timeframe_keeps_everything(self, timeframe):
        assert compute_cutoff(timeframe, now=NOW) == 0

    def test_uses_wall_clock_by_default(self):
        before = int(time.time())
        cutoff = compute_cutoff("7days")
        after = int(time.time())
        assert before - 7 * DAY <= cutoff <= after - 7 * DAY

    def test_enum_windows(self):
        assert Timeframe.ONE_YEAR.window == timedelta(days=365)
        assert Timeframe("3years") is Timeframe.THREE_YEARS


class TestFilterHistory:

    def test_keeps_order_and_duplicates(self):
        points = [
            HistoryPoint(timestamp=300, value=3.0),
            HistoryPoint(timestamp=100, value=1.0),
            HistoryPoint(timestamp=300, value=3.0),
            HistoryPoint(timestamp=200, value=2.0),
        ]
        kept = filter_history(points, cutoff=200)
        assert [(p.timestamp, p.value) for p in kept] == [(300, 3.0), (300, 3.0), (200, 2.0)]

    def test_cutoff_is_inclusive(self):
        assert filter_history([HistoryPoint(timestamp=50, value=1.0)], cutoff=50)

    def test_zero_cutoff_keeps_everything(self):
        points = [HistoryPoint(timestamp=0, value=1.0), HistoryPoint(timestamp=5, value=2.0)]
        assert filter_history(points, cutoff=0) == points


class TestCurrentPriceFetcher:

    def test_requires_api_key(self, upstream):
        with pytest.raises(ConfigurationError):
            CurrentPriceFetcher("", upstream)
        upstream.get_json.assert_not_called()

    @pytest.mark.asyncio
    async def test_maps_currencies(self, upstream):
        upstream.get_json.return_value = make_currencies_payload(keys=57.33, refined=0.0, usd=1.82)
        before = datetime.now(timezone.utc)

        snapshot = await CurrentPriceFetcher("k", upstream).fetch()

        assert snapshot.key_price_in_refined == 57.33
        assert snapshot.refined_price_in_fiat == 0.0
        assert snapshot.usd_price_in_refined == 1.82
        assert before <= snapshot.observed_at <= datetime.now(timezone.utc)
        assert upstream.get_json.await_count == 1

    @pytest.mark.asyncio
    async def test_usd_entry_is_optional(self, upstream):
        payload = make_currencies_payload()
        del payload["response"]["currencies"]["USD"]
        upstream.get_json.return_value = payload

        snapshot = await CurrentPriceFetcher("k", upstream).fetch()

        assert snapshot.usd_price_in_refined is None

    @pytest.mark.asyncio
    async def test_snapshot_is_immutable(self, upstream):
        upstream.get_json.return_value = make_currencies_payload()
        snapshot = await CurrentPriceFetcher("k", upstream).fetch()

        with pytest.raises(AttributeError):
            snapshot.key_price_in_refined = 1.0

    @pytest.mark.asyncio
    async def test_null_message_on_success(self, upstream):
        payload = make_currencies_payload(keys=57.33)
        payload["response"]["message"] = None
        payload["response"]["currencies"]["refined"]["price"]["value"] = None
        upstream.get_json.return_value = payload

        snapshot = await CurrentPriceFetcher("k", upstream).fetch()

        assert snapshot.key_price_in_refined == 57.33
        assert snapshot.refined_price_in_fiat == 0.0

    @pytest.mark.asyncio
    async def test_missing_currency_is_decode_error(self, upstream):
        payload = make_currencies_payload()
        del payload["response"]["currencies"]["keys"]
        upstream.get_json.return_value = payload

        with pytest.raises(UpstreamDecodeError):
            await CurrentPriceFetcher("k", upstream).fetch()

    @pytest.mark.asyncio
    async def test_logical_failure_logs_raw_body(self, upstream):
        body = '{"response": {"success": 0, "message": "bad key"}}'
        upstream.get_json.side_effect = UpstreamLogicalFailure("bad key", body)

        with patch("app.services.prices.logger") as mock_logger:
            with pytest.raises(UpstreamLogicalFailure):
                await CurrentPriceFetcher("k", upstream).fetch()

        assert body in mock_logger.error.call_args[0][0]


class TestHistoryFetcher:

    def test_requires_api_key(self, upstream):
        with pytest.raises(ConfigurationError):
            HistoryFetcher("", upstream)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("item,quality", [("", "6"), ("Refined Metal", ""), ("", "")])
    async def test_missing_input_fails_before_upstream(self, upstream, item, quality):
        fetcher = HistoryFetcher("k", upstream)

        with pytest.raises(ClientInputError):
            await fetcher.fetch(HistoryQuery(item=item, quality=quality))

        upstream.get_json.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("timeframe,days", [
        ("7days", 7),
        ("30days", 30),
        ("90days", 90),
        ("1year", 365),
        ("3years", 1095),
    ])
    async def test_filters_to_window(self, upstream, timeframe, days):
        series = [
            (days_ago(days * 2), 1.0),
            (days_ago(days - 1), 2.0),
            (days_ago(days + 1), 3.0),
            (days_ago(0), 4.0),
            (days_ago(days - 1), 2.0),
        ]
        upstream.get_json.return_value = make_history_payload(series)
        called_at = int(time.time())

        result = await HistoryFetcher("k", upstream).fetch(
            HistoryQuery(item="Refined Metal", quality="6", timeframe=timeframe)
        )

        bound = called_at - days * DAY
        assert all(p.timestamp >= bound for p in result.points)
        assert [p.value for p in result.points] == [2.0, 4.0, 2.0]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("timeframe", ["", "all"])
    async def test_unknown_timeframe_returns_full_series(self, upstream, timeframe):
        series = [(days_ago(3000), 1.0), (days_ago(1), 2.0), (days_ago(3000), 1.0)]
        upstream.get_json.return_value = make_history_payload(series)

        result = await HistoryFetcher("k", upstream).fetch(
            HistoryQuery(item="Refined Metal", quality="6", timeframe=timeframe)
        )

        assert [(p.timestamp, p.value) for p in result.points] == series

    @pytest.mark.asyncio
    async def test_passes_item_and_quality_upstream(self, upstream):
        upstream.get_json.return_value = make_history_payload([])

        result = await HistoryFetcher("secret", upstream).fetch(
            HistoryQuery(item="Mann Co. Supply Crate Key", quality="6")
        )

        assert result.item == "Mann Co. Supply Crate Key"
        assert result.points == []
        path, params, key = upstream.get_json.await_args[0]
        assert path == "/IGetPriceHistory/v1"
        assert params == {"item": "Mann Co. Supply Crate Key", "quality": "6"}
        assert key == "secret"

    @pytest.mark.asyncio
    async def test_logical_failure_propagates_message(self, upstream):
        upstream.get_json.side_effect = UpstreamLogicalFailure("unknown item")

        with pytest.raises(UpstreamLogicalFailure) as exc_info:
            await HistoryFetcher("k", upstream).fetch(HistoryQuery(item="x", quality="6"))

        assert exc_info.value.message == "unknown item"

    @pytest.mark.asyncio
    async def test_null_message_on_success(self, upstream):
        stamp = days_ago(1)
        upstream.get_json.return_value = {
            "response": {
                "success": 1,
                "message": None,
                "history": [{"timestamp": stamp, "value": 2.0}, {"timestamp": stamp, "value": None}],
            }
        }

        result = await HistoryFetcher("k", upstream).fetch(
            HistoryQuery(item="Refined Metal", quality="6", timeframe="7days")
        )

        assert [(p.timestamp, p.value) for p in result.points] == [(stamp, 2.0), (stamp, 0.0)]

    @pytest.mark.asyncio
    async def test_bad_point_is_decode_error(self, upstream):
        upstream.get_json.return_value = {
            "response": {"success": 1, "history": [{"timestamp": "yesterday", "value": 1.0}]}
        }

        with pytest.raises(UpstreamDecodeError):
            await HistoryFetcher("k", upstream).fetch(HistoryQuery(item="x", quality="6"))
