"""
Normalized view of what a modem reports, regardless of vendor.

Every fetch produces a brand new, frozen ModemStatus; nothing here is ever patched in place.
"""

import string
from dataclasses import dataclass
from enum import Enum

from util.const import (
    MAX_BAND_TEXT,
    MAX_BATTERY_STATUS_TEXT,
    MAX_DEVICE_TEXT,
    MAX_PLMN_DIGITS,
    MIN_PLMN_DIGITS,
)
from util.text import bounded


class NetworkMode(Enum):
    """Radio access technology the modem is camped on."""

    GSM = 0
    WCDMA = 2
    LTE = 7
    UNKNOWN = -1


class TrafficMode(Enum):
    """Tells the consumer how to read `ModemStatus.traffic_statistics`."""

    # Vendor already reports an instantaneous rate
    ABSOLUTE = "absolute"
    # Vendor reports totals since boot; the consumer has to difference them
    CUMULATIVE = "cumulative"


@dataclass(frozen=True)
class TrafficStatistics:
    """Download / upload pair, in bits per second or in cumulative bits depending on TrafficMode."""

    download: int
    upload: int


@dataclass(frozen=True)
class WcdmaSignalInfo:
    rscp: int
    ecio: int
    nb: int
    cc: int
    rnc: int
    psc: int


@dataclass(frozen=True)
class LteSignalInfo:
    rsrq: int
    rsrp: int
    sinr: int
    ca_count: int
    enb: int
    id: int
    pci: int


SignalInfo = WcdmaSignalInfo | LteSignalInfo | None


@dataclass(frozen=True)
class DeviceInformation:
    manufacturer: str
    model: str

    @classmethod
    def create(cls, manufacturer: str | None, model: str | None) -> "DeviceInformation":
        """Builds device info with both fields cut to display width."""
        return cls(
            manufacturer=bounded(manufacturer, MAX_DEVICE_TEXT),
            model=bounded(model, MAX_DEVICE_TEXT),
        )


@dataclass(frozen=True)
class BatteryStatus:
    percent: int
    status: str

    @classmethod
    def create(cls, percent: int, status: str | None) -> "BatteryStatus":
        return cls(percent=percent, status=bounded(status, MAX_BATTERY_STATUS_TEXT))


@dataclass(frozen=True)
class DeviceTemperature:
    device_temp: int
    battery_temp: int


@dataclass(frozen=True)
class SessionToken:
    """Huawei session cookie + CSRF token. Good for exactly one fetch cycle."""

    session_cookie: str
    csrf_token: str

    def headers(self) -> dict[str, str]:
        """Headers the Huawei web API wants on every authenticated request."""
        return {
            "X-Requested-With": "XMLHttpRequest",
            "Cookie": self.session_cookie,
            "__RequestVerificationToken": self.csrf_token,
        }


def wcdma_cell_parts(cell_id: int) -> tuple[int, int, int, int]:
    """Splits a WCDMA cell id into (rnc, id, nb, cc)."""
    rnc, _id = cell_id >> 16, cell_id & 0xFFFF
    return rnc, _id, _id // 10, _id % 10


def lte_cell_parts(cell_id: int) -> tuple[int, int]:
    """Splits an LTE cell id into (enb, id)."""
    return cell_id >> 8, cell_id & 0xFF


def plmn_from_mcc_mnc(mcc: str, mnc: str) -> str:
    """MCC is always three digits, MNC at least two; the result never exceeds six."""
    return (mcc.zfill(3) + mnc.zfill(2))[:MAX_PLMN_DIGITS]


def normalize_plmn(plmn: str | None) -> str:
    """
    Coerces whatever the modem gave us into the PLMN display field.

    '', None or 'MTS' -> '00000', '2500' -> '02500', '3101501' -> '310150'
    """
    digits = "".join(c for c in plmn or "" if c in string.digits)
    return digits[:MAX_PLMN_DIGITS].zfill(MIN_PLMN_DIGITS)


@dataclass(frozen=True)
class ModemStatus:
    mode: NetworkMode
    signal_info: SignalInfo
    plmn: str
    rssi: int
    cell_id: int
    band: str
    device_info: DeviceInformation
    battery_status: BatteryStatus | None = None
    device_temp: DeviceTemperature | None = None
    traffic_statistics: TrafficStatistics | None = None
    traffic_mode: TrafficMode = TrafficMode.ABSOLUTE

    def __post_init__(self):
        # Frozen dataclass: go through object.__setattr__ to apply the width rules once
        object.__setattr__(self, "plmn", normalize_plmn(self.plmn))
        object.__setattr__(self, "band", bounded(self.band, MAX_BAND_TEXT))

    @property
    def ca_count(self) -> int:
        if isinstance(self.signal_info, LteSignalInfo):
            return self.signal_info.ca_count
        return 0

    @property
    def mode_label(self) -> str:
        match self.mode:
            case NetworkMode.LTE:
                return "LTE-A" if self.ca_count > 0 else "LTE"
            case NetworkMode.WCDMA:
                return "WCDMA"
            case NetworkMode.GSM:
                return "GSM"
            case _:
                return "Unknown"

    @property
    def band_label(self) -> str:
        """Band as the vendor formats it, with a `+<n>CA` suffix when carriers are aggregated."""
        ca_count = self.ca_count
        return f"{self.band}+{ca_count}CA" if ca_count > 0 else self.band

    def cell_id_hex_and_dec(self) -> tuple[str, str]:
        return f"{self.cell_id:X}", str(self.cell_id)

    def battery_percent_and_status(self) -> tuple[int, str] | None:
        if self.battery_status is None:
            return None
        return self.battery_status.percent, self.battery_status.status

    def __str__(self) -> str:
        cell_id_hex, cell_id = self.cell_id_hex_and_dec()
        summary = (
            f"Network mode : {self.mode_label}\n"
            f"RSSI : {self.rssi} dBm\n"
            f"PLMN : {self.plmn}\n"
            f"Band : {self.band_label}\n"
            f"Cell ID : {cell_id_hex} / {cell_id}"
        )
        match self.signal_info:
            case WcdmaSignalInfo(rscp=rscp, ecio=ecio):
                summary += f"\nRSCP : {rscp}dBm EC/IO : {ecio}dB"
            case LteSignalInfo(rsrq=rsrq, rsrp=rsrp, sinr=sinr):
                summary += f"\nRSRQ/RSRP/SINR : {rsrq}dB/{rsrp}dBm/{sinr}dB"
        return summary
