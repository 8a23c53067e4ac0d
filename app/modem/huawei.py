"""
Huawei HiLink client.

Every fetch cycle starts by asking the web server for a fresh session cookie + CSRF token pair and then walks a
handful of XML endpoints with it. Only the signal document is essential; PLMN, traffic, battery and model are
nice to have and a failure in any of them just leaves that field empty.

Traffic statistics here are the modem's own idea of the current rate, not a counter.
"""

from collections.abc import Awaitable, Callable
from typing import TypeVar

import structlog
from aiohttp import ClientSession
from bs4 import BeautifulSoup

from err.exceptions import ModemAccessError, ModemDataError, ModemError, ModemFetchError
from modem import parse, scrape
from modem.models import (
    BatteryStatus,
    DeviceInformation,
    LteSignalInfo,
    ModemStatus,
    NetworkMode,
    SessionToken,
    SignalInfo,
    TrafficMode,
    TrafficStatistics,
    WcdmaSignalInfo,
    lte_cell_parts,
    normalize_plmn,
    wcdma_cell_parts,
)

log = structlog.get_logger(__name__)

T = TypeVar("T")

SESSION_TOKEN_ENDPOINT = "/api/webserver/SesTokInfo"
SIGNAL_ENDPOINT = "/api/device/signal"
PLMN_ENDPOINT = "/api/net/current-plmn"
TRAFFIC_ENDPOINT = "/api/monitoring/traffic-statistics"
STATUS_ENDPOINT = "/api/monitoring/status"
# Older firmware only answers the second one
DEVICE_INFO_ENDPOINTS = ("/api/device/basic_information", "/api/device/information")

# The web API never reports the vendor name
MANUFACTURER = "HUAWEI"

MODE_BY_ID = {
    "0": NetworkMode.GSM,
    "2": NetworkMode.WCDMA,
    "7": NetworkMode.LTE,
}

BATTERY_STATUS_BY_ID = {
    "0": "No Charge",
    "1": "Charging",
    "-1": "Low",
    "2": "No Battery",
}

REQUIRED_SIGNAL_FIELDS = ("mode", "rssi", "cell_id")
WCDMA_FIELDS = ("rscp", "ecio")
LTE_FIELDS = ("rsrp", "rsrq", "sinr")


def _raise_for_error_document(doc: BeautifulSoup, target: str) -> None:
    if parse.is_error_document(doc):
        code, message = parse.get_error_details(doc)
        raise ModemAccessError(f"Huawei REST error from {target}", code=code, detail=message)


def _require_int(doc: BeautifulSoup, name: str) -> int:
    if (value := parse.get_field_as_with_unit(doc, name, int)) is None:
        raise ModemDataError(f"Field {name} is missing or not an integer")
    return value


def parse_session_token_xml(doc: BeautifulSoup) -> SessionToken | None:
    ses_info = parse.get_field(doc, "SesInfo")
    tok_info = parse.get_field(doc, "TokInfo")
    if not ses_info or not tok_info:
        return None
    return SessionToken(session_cookie=ses_info, csrf_token=tok_info)


def _parse_signal_info(doc: BeautifulSoup, mode: NetworkMode, cell_id: int) -> SignalInfo:
    match mode:
        case NetworkMode.WCDMA:
            if not parse.has_required_fields(doc, WCDMA_FIELDS):
                raise ModemDataError("WCDMA signal fields missing")
            rnc, _id, nb, cc = wcdma_cell_parts(cell_id)
            return WcdmaSignalInfo(
                rscp=_require_int(doc, "rscp"),
                ecio=_require_int(doc, "ecio"),
                nb=nb,
                cc=cc,
                rnc=rnc,
                psc=parse.get_field_as_with_unit(doc, "sc", int) or 0,
            )
        case NetworkMode.LTE:
            if not parse.has_required_fields(doc, LTE_FIELDS):
                raise ModemDataError("LTE signal fields missing")
            enb, _id = lte_cell_parts(cell_id)
            return LteSignalInfo(
                rsrq=_require_int(doc, "rsrq"),
                rsrp=_require_int(doc, "rsrp"),
                sinr=_require_int(doc, "sinr"),
                # Not reported by the HiLink API
                ca_count=0,
                enb=enb,
                id=_id,
                pci=parse.get_field_as_with_unit(doc, "pci", int) or 0,
            )
        case _:
            return None


def parse_signal_xml(doc: BeautifulSoup) -> ModemStatus:
    """
    Build the status skeleton from /api/device/signal.

    PLMN, traffic, battery and model are filled in later from their own endpoints.
    Raises ModemDataError if anything required is missing.
    """
    if not parse.has_required_fields(doc, REQUIRED_SIGNAL_FIELDS):
        raise ModemDataError("Required fields missing from signal document")

    mode = MODE_BY_ID.get(parse.get_field(doc, "mode"), NetworkMode.UNKNOWN)
    cell_id = _require_int(doc, "cell_id")

    return ModemStatus(
        mode=mode,
        signal_info=_parse_signal_info(doc, mode, cell_id),
        # Set by a different request
        plmn="",
        rssi=_require_int(doc, "rssi"),
        cell_id=cell_id,
        band="",
        device_info=DeviceInformation.create(MANUFACTURER, ""),
        traffic_mode=TrafficMode.ABSOLUTE,
    )


def parse_plmn_xml(doc: BeautifulSoup) -> str:
    return normalize_plmn(parse.get_field(doc, "Numeric"))


def parse_traffic_statistics_xml(doc: BeautifulSoup) -> TrafficStatistics:
    # Bytes per second on the wire, bits per second for us
    download = parse.get_field_as_with_unit(doc, "CurrentDownloadRate", int) or 0
    upload = parse.get_field_as_with_unit(doc, "CurrentUploadRate", int) or 0
    return TrafficStatistics(download=download * 8, upload=upload * 8)


def parse_battery_status_xml(doc: BeautifulSoup) -> BatteryStatus | None:
    percent = parse.get_field_as_with_unit(doc, "BatteryPercent", int)
    if percent is None:
        return None
    if (status_id := parse.get_field(doc, "BatteryStatus")) is None:
        return None
    return BatteryStatus.create(percent, BATTERY_STATUS_BY_ID.get(status_id, "Unknown status"))


def parse_device_model_xml(doc: BeautifulSoup) -> str:
    return parse.get_field(doc, "DeviceName") or ""


class HuaweiClient:
    """Session-token client; holds no state between fetches."""

    manufacturer = "Huawei"

    async def fetch(self, host: str) -> ModemStatus | ModemError:
        try:
            async with scrape.open_session(host) as cs:
                session_token = await self._get_session_token(cs)
                status = await self._fetch_primary(cs, session_token)
                return await self._fetch_supplementary(cs, session_token, status)
        except ModemFetchError as e:
            log.error("Huawei fetch failed", host=host, kind=e.kind.value, error=e.message)
            return e.kind

    async def _get_session_token(self, cs: ClientSession) -> SessionToken | None:
        """Some firmware serves the data endpoints without a token, so carry on without one."""
        try:
            doc = await scrape.get_xml(cs, SESSION_TOKEN_ENDPOINT, "huawei_session_token")
        except ModemFetchError as e:
            log.warning("No session token; continuing unauthenticated", error=e.message)
            return None

        if (session_token := parse_session_token_xml(doc)) is None:
            log.warning("Session token reply incomplete; continuing unauthenticated")
        return session_token

    ##
    # Fatal path: anything raised here ends the fetch
    ##
    async def _fetch_primary(self, cs: ClientSession, session_token: SessionToken | None) -> ModemStatus:
        doc = await scrape.get_xml(cs, SIGNAL_ENDPOINT, "huawei_signal", session_token)
        _raise_for_error_document(doc, "huawei_signal")
        return parse_signal_xml(doc)

    ##
    # Best effort path: each piece is on its own and a failure only blanks that piece
    ##
    async def _best_effort(self, what: str, getter: Callable[[], Awaitable[T]]) -> T | None:
        try:
            return await getter()
        except ModemFetchError as e:
            log.warning("Optional modem data unavailable", what=what, kind=e.kind.value, error=e.message)
            return None

    async def _fetch_supplementary(
        self,
        cs: ClientSession,
        session_token: SessionToken | None,
        status: ModemStatus,
    ) -> ModemStatus:
        async def plmn() -> str:
            doc = await scrape.get_xml(cs, PLMN_ENDPOINT, "huawei_plmn", session_token)
            _raise_for_error_document(doc, "huawei_plmn")
            return parse_plmn_xml(doc)

        async def traffic() -> TrafficStatistics:
            doc = await scrape.get_xml(cs, TRAFFIC_ENDPOINT, "huawei_traffic", session_token)
            _raise_for_error_document(doc, "huawei_traffic")
            return parse_traffic_statistics_xml(doc)

        async def battery() -> BatteryStatus | None:
            doc = await scrape.get_xml(cs, STATUS_ENDPOINT, "huawei_status", session_token)
            _raise_for_error_document(doc, "huawei_status")
            return parse_battery_status_xml(doc)

        plmn_value = await self._best_effort("plmn", plmn)
        traffic_value = await self._best_effort("traffic_statistics", traffic)
        battery_value = await self._best_effort("battery_status", battery)
        device_info = await self._get_device_information(cs, session_token)

        # Fresh snapshot rather than patching the skeleton
        return ModemStatus(
            mode=status.mode,
            signal_info=status.signal_info,
            plmn=plmn_value if plmn_value is not None else status.plmn,
            rssi=status.rssi,
            cell_id=status.cell_id,
            band=status.band,
            device_info=device_info,
            battery_status=battery_value,
            device_temp=None,
            traffic_statistics=traffic_value,
            traffic_mode=TrafficMode.ABSOLUTE,
        )

    async def _get_device_model(self, cs: ClientSession, session_token: SessionToken | None, endpoint: str) -> str:
        doc = await scrape.get_xml(cs, endpoint, "huawei_device_info", session_token)
        if parse.is_error_document(doc):
            code, message = parse.get_error_details(doc)
            log.error("Device information access error", endpoint=endpoint, code=code, message=message)
            raise ModemAccessError("Huawei REST error from device information", code=code, detail=message)
        return parse_device_model_xml(doc)

    async def _get_device_information(
        self, cs: ClientSession, session_token: SessionToken | None
    ) -> DeviceInformation:
        for endpoint in DEVICE_INFO_ENDPOINTS:
            model = await self._best_effort(
                "device_model", lambda endpoint=endpoint: self._get_device_model(cs, session_token, endpoint)
            )
            if model:
                return DeviceInformation.create(MANUFACTURER, model)

        log.info("No device model reported", manufacturer=MANUFACTURER)
        return DeviceInformation.create(MANUFACTURER, "")
