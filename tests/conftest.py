"""
Shared fixtures: canned modem replies and a throwaway aiohttp server to serve them.
"""

import asyncio

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from modem.models import (
    DeviceInformation,
    LteSignalInfo,
    ModemStatus,
    NetworkMode,
    TrafficMode,
    TrafficStatistics,
)


def reply(body: str, status: int = 200, content_type: str = "text/xml", seen: list | None = None):
    """aiohttp handler that always answers with `body`; request headers are appended to `seen` if given."""

    async def handler(request: web.Request) -> web.Response:
        if seen is not None:
            seen.append(request.headers.copy())
        return web.Response(text=body, status=status, content_type=content_type)

    return handler


async def _fetch_from(client, routes: dict):
    app = web.Application()
    for path, handler in routes.items():
        app.router.add_get(path, handler)
    async with TestServer(app) as server:
        return await client.fetch(f"{server.host}:{server.port}")


def fetch_with_routes(client, routes: dict):
    """Run `client.fetch()` against a local server exposing `routes` ({path: handler})."""
    return asyncio.run(_fetch_from(client, routes))


@pytest.fixture
def lte_status() -> ModemStatus:
    return ModemStatus(
        mode=NetworkMode.LTE,
        signal_info=LteSignalInfo(rsrq=-9, rsrp=-95, sinr=12, ca_count=1, enb=0x12, id=0x34, pci=101),
        plmn="25001",
        rssi=-67,
        cell_id=0x1234,
        band="B3",
        device_info=DeviceInformation.create("Netgear", "MR1100"),
        traffic_statistics=TrafficStatistics(download=8000, upload=4000),
        traffic_mode=TrafficMode.CUMULATIVE,
    )
