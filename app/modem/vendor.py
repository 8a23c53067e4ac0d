"""
The one place that knows which client goes with which vendor.

Adding a vendor means a new Vendor member and a new branch in client_for(); nothing else dispatches on vendor.
"""

import asyncio
from enum import Enum

import structlog

from err.exceptions import ModemError
from modem.huawei import HuaweiClient
from modem.models import ModemStatus
from modem.netgear import NetgearClient

log = structlog.get_logger(__name__)


class Vendor(Enum):
    NETGEAR = "netgear"
    HUAWEI = "huawei"

    @classmethod
    def from_name(cls, name: str | None) -> "Vendor | None":
        """Case-insensitive lookup; None for anything we don't model."""
        if name is None:
            return None
        try:
            return cls(name.strip().lower())
        except ValueError:
            return None


# Factory address each vendor ships with
DEFAULT_HOST_BY_VENDOR = {
    Vendor.NETGEAR: "192.168.1.1",
    Vendor.HUAWEI: "192.168.8.1",
}


def client_for(vendor: Vendor) -> NetgearClient | HuaweiClient | None:
    match vendor:
        case Vendor.NETGEAR:
            return NetgearClient()
        case Vendor.HUAWEI:
            return HuaweiClient()
        case _:
            return None


def fetch_status(vendor: Vendor, host: str) -> ModemStatus | ModemError:
    """
    Blocking fetch for use from a worker thread.

    Runs the vendor's async client to completion on a private event loop.
    """
    if (client := client_for(vendor)) is None:
        log.error("Unknown modem manufacturer", vendor=vendor)
        return ModemError.UNKNOWN

    log.info("Connecting to modem", manufacturer=client.manufacturer, host=host)
    return asyncio.run(client.fetch(host))
