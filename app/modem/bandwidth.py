"""
Turns traffic counters into rates and rates into something a human can read.
"""

import time
from collections.abc import Callable

import structlog

from modem.models import TrafficStatistics

log = structlog.get_logger(__name__)

SIZE_KB = 1024
SIZE_MB = 1024 * 1024
SIZE_GB = 1024 * 1024 * 1024
# Sanity ceiling for cumulative counters; nothing on a consumer modem moves a terabyte between reboots
SIZE_TB = 1024 * 1024 * 1024 * 1024

RATE_BPS = "bit/s"
RATE_KBPS = "KBit/s"
RATE_MBPS = "MBit/s"
RATE_GBPS = "GBit/s"

# The plot axis never needs more than this many steps
FIB_SEARCH_STEPS = 19


def format_bandwidth(bits_per_second: int) -> str:
    """1000 -> '1000bit/s', 1024 -> '1.00KBit/s', 5 * 1024 * 1024 -> '5.00MBit/s'"""
    if bits_per_second < SIZE_KB:
        return f"{bits_per_second}{RATE_BPS}"
    if bits_per_second < SIZE_MB:
        return f"{bits_per_second / SIZE_KB:.2f}{RATE_KBPS}"
    if bits_per_second < SIZE_GB:
        return f"{bits_per_second / SIZE_MB:.2f}{RATE_MBPS}"
    return f"{bits_per_second / SIZE_GB:.2f}{RATE_GBPS}"


def nearest_fib(x: int) -> int:
    """Smallest Fibonacci number strictly greater than `x`, used to pick a round-ish plot maximum."""
    f1, f2 = 0, 1
    k = 0
    for _ in range(FIB_SEARCH_STEPS):
        k = f1 + f2
        if x < k:
            break
        f2 = f1
        f1 = k
    return k


class TrafficRateCalculator:
    """
    Derives per-second rates from cumulative totals.

    Only meaningful for vendors reporting TrafficMode.CUMULATIVE; an ABSOLUTE value is already a rate.
    The baseline (timestamp + last totals) lives here and nowhere else.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._last_time: float | None = None
        self._last_totals = TrafficStatistics(download=0, upload=0)
        self._has_baseline = False

    @property
    def has_baseline(self) -> bool:
        return self._has_baseline

    def update(self, totals: TrafficStatistics) -> TrafficStatistics | None:
        """
        Feed a new pair of totals; returns the rates since the previous call.

        The first call only establishes the baseline and returns None.
        A channel whose previous total was <= 0 gets a rate of 0 rather than a jump from nothing.
        Counter resets with a positive baseline produce a negative rate; callers treat that as a transient.
        """
        now = self._clock()
        previous, previous_time = self._last_totals, self._last_time

        # Stored unconditionally, whether or not we can return a rate
        self._last_totals = totals
        self._last_time = now

        if not self._has_baseline:
            self._has_baseline = True
            log.debug("Traffic baseline established", download=totals.download, upload=totals.upload)
            return None

        elapsed_ms = (now - previous_time) * 1000
        if elapsed_ms <= 0:
            log.warning("No time elapsed since last traffic sample", elapsed_ms=elapsed_ms)
            return None

        download = int((totals.download - previous.download) * 1000 / elapsed_ms) if previous.download > 0 else 0
        upload = int((totals.upload - previous.upload) * 1000 / elapsed_ms) if previous.upload > 0 else 0
        return TrafficStatistics(download=download, upload=upload)
