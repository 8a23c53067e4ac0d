"""
Shared HTTP plumbing for the vendor clients.

Each fetch cycle opens its own ClientSession and closes it when done; nothing (cookies, tokens, connections)
survives from one cycle to the next.
"""

import json
from typing import Any

import structlog
from aiohttp import ClientError, ClientSession, CookieJar
from bs4 import BeautifulSoup

from err.exceptions import ModemDataError, ModemNotOkError
from modem import metrics, parse
from modem.models import SessionToken
from util.const import HTTP_TIMEOUT, REQUEST_HEADERS

log = structlog.get_logger(__name__)


def base_url_for(host: str) -> str:
    """Modems only speak plain http on the LAN side. Accepts '192.168.8.1', 'host:port' or a pasted URL."""
    host = host.strip().removeprefix("http://").rstrip("/")
    return f"http://{host}"


def open_session(host: str) -> ClientSession:
    """Must be called from inside a running event loop."""
    try:
        return ClientSession(
            base_url=base_url_for(host),
            headers=REQUEST_HEADERS,
            timeout=HTTP_TIMEOUT,
            # unsafe=True: tell aiohttp to allow cookies on IP addresses
            cookie_jar=CookieJar(unsafe=True),
        )
    except ValueError as e:
        raise ModemNotOkError(f"Invalid modem address {host!r}") from e


async def get_text(
    cs: ClientSession,
    endpoint: str,
    target: str,
    headers: dict[str, str] | None = None,
) -> str:
    """
    GET `endpoint` and hand back the body.

    `target` is only used to label metrics and logs.
    Raises ModemNotOkError for anything short of a 200.
    """
    try:
        with metrics.s_meta_scrape_time.labels(target).time():
            async with cs.get(endpoint, headers=headers) as resp:
                metrics.c_meta_scrape_result.labels(resp.status, target).inc()
                if resp.status != 200:
                    _e = f"Failed to get {target}. Status={resp.status}."
                    raise ModemNotOkError(_e, status_code=resp.status)
                return await resp.text(errors="replace")
    except (ClientError, TimeoutError) as e:
        metrics.c_meta_scrape_result.labels("none", target).inc()
        log.error("HTTP request to modem failed", target=target, endpoint=endpoint, error=e)
        raise ModemNotOkError(f"Failed to get {target}: {e}") from e


async def get_json(cs: ClientSession, endpoint: str, target: str) -> dict[str, Any]:
    raw = await get_text(cs, endpoint, target)
    try:
        doc = json.loads(raw)
    except ValueError as e:
        metrics.c_meta_parse_result.labels(target, False).inc()
        raise ModemDataError(f"Reply from {target} is not JSON", payload=raw) from e

    if not isinstance(doc, dict):
        metrics.c_meta_parse_result.labels(target, False).inc()
        raise ModemDataError(f"Reply from {target} is not a JSON object", payload=raw)

    metrics.c_meta_parse_result.labels(target, True).inc()
    return doc


async def get_xml(
    cs: ClientSession,
    endpoint: str,
    target: str,
    session_token: SessionToken | None = None,
) -> BeautifulSoup:
    """
    GET an XML document, attaching the Huawei session headers when we have a token.

    Error documents (<error>...</error>) are returned as-is; deciding what they mean is up to the caller.
    """
    headers = session_token.headers() if session_token is not None else None

    raw = await get_text(cs, endpoint, target, headers=headers)
    doc = parse.parse_xml(raw)
    if parse.root_name(doc) is None:
        metrics.c_meta_parse_result.labels(target, False).inc()
        raise ModemDataError(f"Reply from {target} has no XML document", payload=raw)

    metrics.c_meta_parse_result.labels(target, True).inc()
    return doc
