import asyncio
import math
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Callable, Optional, Sequence, Tuple
from urllib.parse import urljoin, urlparse

from cacheprobe.exceptions import InvalidConfiguration
from cacheprobe.http_client import HttpClient
from cacheprobe.logic.headers import as_headers
from cacheprobe.logic.layers import LayerDefinition, LayerStatus, evaluate_layer
from cacheprobe.logic.tracker import HitCounterTracker
from cacheprobe.logic.wpengine import LAYERS
from cacheprobe.utils.logger import logger

GRAPHQL_PATH = "/graphql"


@dataclass(frozen=True)
class SampleResult:
    timestamp: str
    url: str
    layers: Tuple[LayerStatus, ...]


def build_graphql_url(base_url: str, graphql_path: str = GRAPHQL_PATH) -> str:
    parsed = urlparse(base_url or "")
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidConfiguration(f"Invalid URL: {base_url}")
    return urljoin(base_url, graphql_path)


def isoformat(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def response_timestamp(headers) -> str:
    """
    Prefer the origin's Date header so samples line up with server time.
    """
    date = as_headers(headers).get("date")
    if date:
        try:
            return isoformat(parsedate_to_datetime(date))
        except (TypeError, ValueError):
            logger.debug(f"Ignoring unparseable Date header: {date!r}")
    return isoformat(datetime.now(timezone.utc))


class Sampler:
    """
    Takes one sample of every cache layer per call.

    The sampler owns the hit-counter tracker, so each monitored endpoint
    needs its own sampler.
    """

    def __init__(self, client: HttpClient, url: str, layers: Sequence[LayerDefinition] = LAYERS,
                 tracker: Optional[HitCounterTracker] = None):
        self.client = client
        self.url = url
        self.layers = tuple(layers)
        self.tracker = tracker or HitCounterTracker()

    async def sample(self) -> SampleResult:
        response = await self.client.request(self.url)
        headers = as_headers(response["headers"])

        for layer in self.layers:
            tracked = layer.tracked_header
            if tracked and tracked in headers:
                self.tracker.observe(headers[tracked])

        statuses = tuple(evaluate_layer(layer, headers, self.tracker) for layer in self.layers)
        return SampleResult(
            timestamp=response_timestamp(headers),
            url=self.url,
            layers=statuses,
        )


class Monitor:
    def __init__(self, sampler: Sampler, recorder=None, run_time: float = 60, interval: float = 5,
                 on_sample: Optional[Callable[[SampleResult], None]] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.sampler = sampler
        self.recorder = recorder
        self.run_time = math.inf if run_time <= 0 else run_time
        self.interval = max(1, interval)
        self.on_sample = on_sample
        self.clock = clock

    async def run(self) -> int:
        """
        Main sampling loop. Runs until the run time has elapsed; any failure
        ends the run.
        """
        logger.info(f"Starting cache testing of {self.sampler.url}")
        start = self.clock()
        samples = 0

        while self.clock() - start < self.run_time:
            result = await self.sampler.sample()
            samples += 1
            if self.on_sample:
                self.on_sample(result)
            if self.recorder:
                self.recorder.append(result)
            await asyncio.sleep(self.interval)

        logger.info(f"Cache testing completed after {samples} samples")
        return samples
