import logging
from enum import Enum

from aiohttp import ClientTimeout

# Unlikely that the modem cares but it's easy enough to pretend to be a browser just in case
REQUEST_HEADERS = {
    "User-Agent": "Mozilla/5.0 (X11; Linux x86_64; rv:123.4) Gecko/20100101 Firefox/123.4",
    "Accept": "*/*",
    "Accept-Language": "en-US,en;q=0.5",
    "Connection": "keep-alive",
    "Pragma": "no-cache",
    "Cache-Control": "no-cache",
}

# No overall deadline, but a modem that stops sending mid-reply is given up on after sock_read seconds.
HTTP_TIMEOUT = ClientTimeout(total=None, connect=3.0, sock_read=10.0)

# The only intervals the poller accepts, in seconds
POLL_INTERVAL_PRESETS = (1, 2, 5, 10, 15, 30, 60)
DEFAULT_POLL_INTERVAL_SECONDS = 2

# Granularity of the poller's cancellation check
POLL_TICK_SECONDS = 0.1

# Longest text we keep for each field; anything beyond is cut off where the value is produced
MAX_DEVICE_TEXT = 40
MAX_BAND_TEXT = 20
MAX_BATTERY_STATUS_TEXT = 20
MAX_PLMN_DIGITS = 6
MIN_PLMN_DIGITS = 5


class LogLevel(Enum):
    """Simple enum of supported log levels for easy validation"""

    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL
