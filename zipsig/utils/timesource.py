"""
ZipSig Time Source
Fetches the signing timestamp from an external time authority.
Retries forever with capped exponential backoff; only cancellation stops it.
"""
import math
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

import requests

from ..config import config
from ..errors import OperationCancelled
from .logger import logger

TIMESTAMP_FORMAT = '%Y-%m-%dT%H:%M:%SZ'


@dataclass
class RetryPolicy:
    base_delay: float = 2.0
    growth: float = 1.5
    max_delay: float = 30.0

    def delay_for(self, attempt: int) -> float:
        """Delay before retry number `attempt` (0-based)"""
        # past the cap the power would only overflow
        if self.growth > 1 and attempt > math.log(self.max_delay / self.base_delay, self.growth):
            return self.max_delay
        return min(self.base_delay * self.growth ** attempt, self.max_delay)

    @classmethod
    def from_config(cls, cfg=None) -> "RetryPolicy":
        cfg = cfg or config
        return cls(
            base_delay=cfg.retry_base_delay,
            growth=cfg.retry_growth,
            max_delay=cfg.retry_max_delay
        )


def format_timestamp(value: str) -> str:
    """
    Normalize an ISO-8601 instant to whole-second UTC with a Z suffix.
    e.g. '2024-05-01T09:30:12.345678+00:00' -> '2024-05-01T09:30:12Z'
    """
    if value.endswith('Z'):
        value = value[:-1] + '+00:00'
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


class TimeSource:
    def __init__(
        self,
        url: str = None,
        timeout: float = None,
        policy: RetryPolicy = None,
        session: Optional[requests.Session] = None,
        sleep: Optional[Callable[[float], None]] = None
    ):
        self.url = url or config.time_url
        self.timeout = timeout or config.time_timeout
        self.policy = policy or RetryPolicy.from_config()
        self.session = session or requests.Session()
        self._sleep = sleep

    def fetch_once(self) -> str:
        """Single attempt. Raises on any failure."""
        response = self.session.get(self.url, timeout=self.timeout)
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, dict) or 'datetime' not in data:
            raise ValueError("Time service response has no 'datetime' field")
        if not isinstance(data['datetime'], str):
            raise ValueError(f"Time service returned a non-string datetime: {data['datetime']!r}")
        return format_timestamp(data['datetime'])

    def get_trusted_timestamp(self, cancel_event: Optional[threading.Event] = None) -> str:
        """
        Block until the time authority answers.

        Args:
            cancel_event: set it from another thread to abandon the wait;
                checked before every attempt and while backing off

        Returns:
            str: UTC timestamp like '2024-05-01T09:30:12Z'
        """
        attempt = 0
        while True:
            if cancel_event is not None and cancel_event.is_set():
                raise OperationCancelled("Timestamp fetch cancelled")

            try:
                timestamp = self.fetch_once()
                if attempt:
                    logger.info(f"Time service answered after {attempt + 1} attempts")
                return timestamp
            except (requests.RequestException, ValueError) as e:
                delay = self.policy.delay_for(attempt)
                logger.warning(
                    f"Timestamp fetch failed (attempt {attempt + 1}): {e}, "
                    f"retrying in {delay:.1f}s"
                )

            self._wait(delay, cancel_event)
            attempt += 1

    def _wait(self, delay: float, cancel_event: Optional[threading.Event]):
        if self._sleep is not None:
            self._sleep(delay)
        elif cancel_event is not None:
            if cancel_event.wait(delay):
                raise OperationCancelled("Timestamp fetch cancelled")
        else:
            time.sleep(delay)


__all__ = ["TimeSource", "RetryPolicy", "format_timestamp", "TIMESTAMP_FORMAT"]
