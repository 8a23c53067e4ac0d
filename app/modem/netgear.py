"""
Netgear (Nighthawk / AirCard) client.

The web UI exposes everything in a single JSON document and needs no login for it.
Traffic counters are cumulative byte totals since boot and, for whatever reason, arrive as strings.
"""

from typing import Any

import structlog

from err.exceptions import ModemDataError, ModemError, ModemFetchError
from modem import parse, scrape
from modem.bandwidth import SIZE_TB
from modem.models import (
    BatteryStatus,
    DeviceInformation,
    DeviceTemperature,
    LteSignalInfo,
    ModemStatus,
    NetworkMode,
    SignalInfo,
    TrafficMode,
    TrafficStatistics,
    WcdmaSignalInfo,
    lte_cell_parts,
    plmn_from_mcc_mnc,
    wcdma_cell_parts,
)

log = structlog.get_logger(__name__)

INFO_ENDPOINT = "/model.json?internalapi=1"

MODE_BY_SERVICE_TYPE = {
    "GsmService": NetworkMode.GSM,
    "WcdmaService": NetworkMode.WCDMA,
    "LteService": NetworkMode.LTE,
}

# Needed whatever the mode is
REQUIRED_FIELDS = (
    "wwan.currentNWserviceType",
    "wwan.signalStrength.rssi",
    "wwanadv.MCC",
    "wwanadv.MNC",
    "wwanadv.curBand",
    "wwanadv.cellId",
)
WCDMA_FIELDS = ("wwan.signalStrength.rscp", "wwan.signalStrength.ecio")
LTE_FIELDS = ("wwan.signalStrength.rsrq", "wwan.signalStrength.rsrp", "wwan.signalStrength.sinr")


def _require_int(doc: dict[str, Any], name: str) -> int:
    if (value := parse.get_field_as(doc, name, int)) is None:
        raise ModemDataError(f"Field {name} is missing or not an integer")
    return value


def _parse_signal_info(doc: dict[str, Any], mode: NetworkMode, cell_id: int) -> SignalInfo:
    # primScode is the PSC on WCDMA and the PCI on LTE
    match mode:
        case NetworkMode.WCDMA:
            if not parse.has_required_fields(doc, WCDMA_FIELDS):
                raise ModemDataError("WCDMA signal fields missing")
            rnc, _id, nb, cc = wcdma_cell_parts(cell_id)
            return WcdmaSignalInfo(
                rscp=_require_int(doc, "wwan.signalStrength.rscp"),
                ecio=_require_int(doc, "wwan.signalStrength.ecio"),
                nb=nb,
                cc=cc,
                rnc=rnc,
                psc=parse.get_field_as(doc, "wwanadv.primScode", int) or 0,
            )
        case NetworkMode.LTE:
            if not parse.has_required_fields(doc, LTE_FIELDS):
                raise ModemDataError("LTE signal fields missing")
            enb, _id = lte_cell_parts(cell_id)
            return LteSignalInfo(
                rsrq=_require_int(doc, "wwan.signalStrength.rsrq"),
                rsrp=_require_int(doc, "wwan.signalStrength.rsrp"),
                sinr=_require_int(doc, "wwan.signalStrength.sinr"),
                ca_count=parse.get_field_as(doc, "wwan.ca.SCCcount", int) or 0,
                enb=enb,
                id=_id,
                pci=parse.get_field_as(doc, "wwanadv.primScode", int) or 0,
            )
        case _:
            return None


def _parse_battery(doc: dict[str, Any]) -> BatteryStatus | None:
    # Units without a battery (or firmware that doesn't report it) just don't get the field
    percent = parse.get_field_as(doc, "power.battChargeLevel", int)
    source = parse.get_field(doc, "power.battChargeSource")
    if percent is None or source is None:
        return None
    return BatteryStatus.create(percent, source)


def _parse_temperature(doc: dict[str, Any]) -> DeviceTemperature | None:
    device_temp = parse.get_field_as(doc, "general.devTemperature", int)
    battery_temp = parse.get_field_as(doc, "power.batteryTemperature", int)
    if device_temp is None or battery_temp is None:
        return None
    return DeviceTemperature(device_temp=device_temp, battery_temp=battery_temp)


def _counter_as_bits(doc: dict[str, Any], name: str) -> int:
    """
    Byte counter -> bits.

    A counter that won't parse, or one beyond a terabyte (seen right after a modem reboot), is reported as 0.
    """
    if (total := parse.get_field_as(doc, name, int)) is None:
        return 0
    if total > SIZE_TB:
        log.warning("Implausible traffic counter, ignoring", field=name, value=total)
        return 0
    return total * 8


def parse_info_json(doc: dict[str, Any]) -> ModemStatus:
    """Turn model.json into a ModemStatus. Raises ModemDataError when a required field is missing."""
    if not parse.has_required_fields(doc, REQUIRED_FIELDS):
        raise ModemDataError("Required fields missing from model.json")

    service_type = parse.get_field(doc, "wwan.currentNWserviceType")
    mode = MODE_BY_SERVICE_TYPE.get(service_type, NetworkMode.UNKNOWN)
    cell_id = _require_int(doc, "wwanadv.cellId")

    return ModemStatus(
        mode=mode,
        signal_info=_parse_signal_info(doc, mode, cell_id),
        plmn=plmn_from_mcc_mnc(parse.get_field(doc, "wwanadv.MCC"), parse.get_field(doc, "wwanadv.MNC")),
        rssi=_require_int(doc, "wwan.signalStrength.rssi"),
        cell_id=cell_id,
        band=parse.get_field(doc, "wwanadv.curBand"),
        device_info=DeviceInformation.create(
            parse.get_field(doc, "general.companyName"),
            parse.get_field(doc, "general.deviceName"),
        ),
        battery_status=_parse_battery(doc),
        device_temp=_parse_temperature(doc),
        traffic_statistics=TrafficStatistics(
            download=_counter_as_bits(doc, "wwan.dataTransferredRx"),
            upload=_counter_as_bits(doc, "wwan.dataTransferredTx"),
        ),
        traffic_mode=TrafficMode.CUMULATIVE,
    )


class NetgearClient:
    """Stateless: every fetch is a single unauthenticated GET."""

    manufacturer = "Netgear"

    async def fetch(self, host: str) -> ModemStatus | ModemError:
        try:
            async with scrape.open_session(host) as cs:
                doc = await scrape.get_json(cs, INFO_ENDPOINT, "netgear_model")
            return parse_info_json(doc)
        except ModemFetchError as e:
            log.error("Netgear fetch failed", host=host, kind=e.kind.value, error=e.message)
            return e.kind
