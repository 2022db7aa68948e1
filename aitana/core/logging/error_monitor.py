import asyncio
import os
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Dict

import aiohttp

from .constants import SHOP_TZ
from .structured_logger import get_logger

_logger = get_logger("core.error_monitor")


@dataclass
class ErrorCounter:
    count: int = 0
    first_seen: float = 0.0
    last_seen: float = 0.0

    def hit(self, now: float, window: float) -> int:
        # a stale window starts over at this hit
        if now - self.first_seen > window:
            self.count = 0
            self.first_seen = now
        self.count += 1
        self.last_seen = now
        return self.count

    def live(self, now: float, window: float) -> bool:
        return now - self.first_seen <= window


class ErrorMonitor:
    """Sliding-window error counter with webhook alerts.

    Collaborator failures (gateway, relay, calendar) never reach the visitor,
    so this is where they become visible to the shop.
    """

    WINDOW_SECONDS = 300
    THRESHOLDS = {
        "gateway": 3,
        "timeout": 3,
        "relay": 1,
        "calendar": 3,
        "rate_limit": 5,
    }
    DEFAULT_THRESHOLD = 10
    ALERT_COOLDOWN = 600

    def __init__(self, webhook_url: str | None = None):
        self._counters: Dict[str, ErrorCounter] = {}
        self._last_alert: Dict[str, float] = {}
        if webhook_url is None:
            webhook_url = os.getenv("ALERT_WEBHOOK_URL", "")
        self._webhook_url = webhook_url

    def threshold(self, error_type: str) -> int:
        return self.THRESHOLDS.get(error_type, self.DEFAULT_THRESHOLD)

    def record(self, error_type: str, details: str = "") -> None:
        counter = self._counters.get(error_type)
        if counter is None:
            counter = self._counters[error_type] = ErrorCounter()
        count = counter.hit(time.time(), self.WINDOW_SECONDS)
        _logger.debug("Error recorded", error_type=error_type, count=count)
        if count >= self.threshold(error_type):
            self._trigger_alert(error_type, counter, details)

    def _trigger_alert(self, error_type: str, counter: ErrorCounter, details: str) -> None:
        now = time.time()
        since_last = now - self._last_alert.get(error_type, 0.0)
        if since_last < self.ALERT_COOLDOWN:
            _logger.debug("Alert in cooldown", error_type=error_type,
                          remaining_s=int(self.ALERT_COOLDOWN - since_last))
            return
        self._last_alert[error_type] = now

        _logger.critical(
            "Error threshold crossed",
            error_type=error_type,
            count=counter.count,
            threshold=self.threshold(error_type),
            details=details[:200],
        )
        if not self._webhook_url:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            _logger.debug("No running loop, webhook alert dropped", error_type=error_type)
            return
        loop.create_task(self._send_webhook_alert(error_type, counter, details))

    def _alert_text(self, error_type: str, counter: ErrorCounter, details: str) -> str:
        stamp = datetime.now(SHOP_TZ).strftime("%Y-%m-%d %H:%M")
        head = f"[aitana] {error_type} x{counter.count} within {self.WINDOW_SECONDS // 60} min ({stamp})"
        return f"{head}\n{details[:500] or 'no details'}"

    async def _send_webhook_alert(self, error_type: str, counter: ErrorCounter, details: str) -> None:
        payload = {"content": self._alert_text(error_type, counter, details)}
        try:
            async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=10)) as session:
                async with session.post(self._webhook_url, json=payload) as resp:
                    if resp.status >= 300:
                        _logger.warning("Webhook rejected alert", status=resp.status)
                        return
            _logger.info("Webhook alert delivered", error_type=error_type)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            _logger.error("Webhook alert failed", error=str(e))

    def get_stats(self) -> Dict[str, Dict]:
        now = time.time()
        return {
            error_type: {
                "count": c.count,
                "first_seen": c.first_seen,
                "last_seen": c.last_seen,
                "threshold": self.threshold(error_type),
            }
            for error_type, c in self._counters.items()
            if c.live(now, self.WINDOW_SECONDS)
        }

    def reset(self) -> None:
        self._counters.clear()
        self._last_alert.clear()


error_monitor = ErrorMonitor()
