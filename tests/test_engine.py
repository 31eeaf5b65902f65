import math
import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch
from multidict import CIMultiDict
from cacheprobe.engine import Monitor, Sampler, build_graphql_url, response_timestamp
from cacheprobe.exceptions import InvalidConfiguration, TransportFailure
from cacheprobe.logic.tracker import HitCounterTracker

URL = "https://example.wpengine.com/graphql"

def make_response(**headers):
    base = {
        "x-graphql-keys": "abc",
        "x-orig-cache-control": "max-age=120",
        "x-cacheable": "YES",
        "x-cache": "HIT: 3",
        "cf-cache-status": "HIT",
        "age": "42",
        "cache-control": "max-age=60",
    }
    base.update(headers)
    return {
        "status": 200,
        "reason": "OK",
        "headers": CIMultiDict({k: v for k, v in base.items() if v is not None}),
        "url": URL,
    }

def test_build_graphql_url():
    assert build_graphql_url("https://example.com") == "https://example.com/graphql"
    assert build_graphql_url("https://example.com/blog/", "/api/graphql") == "https://example.com/api/graphql"

@pytest.mark.parametrize("url", ["example.com", "ftp://example.com", "not a url", "", None])
def test_build_graphql_url_rejects_bad_urls(url):
    with pytest.raises(InvalidConfiguration):
        build_graphql_url(url)

def test_timestamp_from_date_header():
    headers = {"Date": "Wed, 21 Oct 2015 07:28:00 GMT"}
    assert response_timestamp(headers) == "2015-10-21T07:28:00.000Z"

def test_timestamp_falls_back_to_now():
    before = datetime.now(timezone.utc).replace(microsecond=0)
    stamp = datetime.fromisoformat(response_timestamp({"Date": "garbage"}).replace("Z", "+00:00"))
    assert stamp >= before
    assert response_timestamp({}).endswith("Z")

@pytest.mark.asyncio
async def test_sample_end_to_end():
    client = MagicMock()
    client.request = AsyncMock(return_value=make_response(date="Wed, 21 Oct 2015 07:28:00 GMT"))

    result = await Sampler(client, URL).sample()

    client.request.assert_awaited_once_with(URL)
    assert result.url == URL
    assert result.timestamp == "2015-10-21T07:28:00.000Z"
    assert [layer.enabled for layer in result.layers] == [True, True, True]
    assert [layer.ttl for layer in result.layers] == [120, 60, 60]
    assert result.layers[2].age == 42
    assert math.isnan(result.layers[1].age)

@pytest.mark.asyncio
async def test_transport_failure_propagates():
    client = MagicMock()
    client.request = AsyncMock(side_effect=TransportFailure("HTTP error! status: 502; Bad Gateway", status=502))

    with pytest.raises(TransportFailure) as exc:
        await Sampler(client, URL).sample()
    assert exc.value.status == 502

@pytest.mark.asyncio
async def test_tracker_follows_samples():
    client = MagicMock()
    client.request = AsyncMock(side_effect=[
        make_response(**{"x-cache": "MISS"}),
        make_response(**{"x-cache": "HIT: 1"}),
    ])
    reset = datetime(2024, 1, 1, 0, 0, 0, tzinfo=timezone.utc)
    now = datetime(2024, 1, 1, 0, 0, 12, tzinfo=timezone.utc)
    clock = MagicMock(side_effect=[reset, now, now])
    sampler = Sampler(client, URL, tracker=HitCounterTracker(clock=clock))

    first = await sampler.sample()
    second = await sampler.sample()

    assert sampler.tracker.state.reset_timestamp == reset
    assert first.layers[1].age == 12
    assert second.layers[1].age == 12

@pytest.mark.asyncio
async def test_tracker_ignores_samples_without_status_header():
    client = MagicMock()
    client.request = AsyncMock(return_value=make_response(**{"x-cache": None}))
    sampler = Sampler(client, URL)

    await sampler.sample()
    assert sampler.tracker.state.reset_timestamp is None
    assert sampler.tracker.state.last_hit_count == 1

@pytest.mark.asyncio
async def test_monitor_runs_for_run_time():
    sampler = MagicMock(url=URL)
    sampler.sample = AsyncMock(return_value="result")
    recorder = MagicMock()
    on_sample = MagicMock()
    clock = MagicMock(side_effect=[0, 0, 1, 2])

    monitor = Monitor(sampler, recorder=recorder, run_time=2, interval=0.2, on_sample=on_sample, clock=clock)
    with patch("cacheprobe.engine.asyncio.sleep", new_callable=AsyncMock) as monitor_sleep:
        samples = await monitor.run()

    assert samples == 2
    assert recorder.append.call_count == 2
    on_sample.assert_called_with("result")
    # Interval never drops below one second
    monitor_sleep.assert_awaited_with(1)

def test_monitor_non_positive_run_time_is_forever():
    monitor = Monitor(MagicMock(), run_time=0, interval=-3)
    assert monitor.run_time == math.inf
    assert monitor.interval == 1

@pytest.mark.asyncio
async def test_monitor_stops_on_failure():
    sampler = MagicMock(url=URL)
    sampler.sample = AsyncMock(side_effect=TransportFailure("down"))
    recorder = MagicMock()

    monitor = Monitor(sampler, recorder=recorder, run_time=10, clock=MagicMock(return_value=0))
    with pytest.raises(TransportFailure):
        await monitor.run()
    recorder.append.assert_not_called()
