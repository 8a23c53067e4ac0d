import pytest

from conftest import fetch_with_routes, reply
from err.exceptions import ModemDataError, ModemError
from modem import parse
from modem.huawei import (
    HuaweiClient,
    parse_battery_status_xml,
    parse_session_token_xml,
    parse_signal_xml,
    parse_traffic_statistics_xml,
)
from modem.models import LteSignalInfo, ModemStatus, NetworkMode, TrafficMode, TrafficStatistics, WcdmaSignalInfo

TOKEN_XML = """<?xml version="1.0" encoding="UTF-8"?>
<response>
<SesInfo>SessionID=abc</SesInfo>
<TokInfo>tok123</TokInfo>
</response>
"""

LTE_SIGNAL_XML = """<?xml version="1.0" encoding="UTF-8"?>
<response>
<pci>101</pci>
<sc></sc>
<cell_id>4660</cell_id>
<rsrq>-9dB</rsrq>
<rsrp>-95dBm</rsrp>
<rssi>-67dBm</rssi>
<sinr>12dB</sinr>
<rscp></rscp>
<ecio></ecio>
<mode>7</mode>
</response>
"""

WCDMA_SIGNAL_XML = """<?xml version="1.0" encoding="UTF-8"?>
<response>
<pci></pci>
<sc>300</sc>
<cell_id>1245189</cell_id>
<rsrq></rsrq>
<rsrp></rsrp>
<rssi>-71dBm</rssi>
<sinr></sinr>
<rscp>-80dBm</rscp>
<ecio>-6dB</ecio>
<mode>2</mode>
</response>
"""

PLMN_XML = """<?xml version="1.0" encoding="UTF-8"?>
<response>
<State>0</State>
<FullName>MTS RUS</FullName>
<ShortName>MTS</ShortName>
<Numeric>25001</Numeric>
<Rat>7</Rat>
</response>
"""

TRAFFIC_XML = """<?xml version="1.0" encoding="UTF-8"?>
<response>
<CurrentConnectTime>3600</CurrentConnectTime>
<CurrentUpload>1048576</CurrentUpload>
<CurrentDownload>8388608</CurrentDownload>
<CurrentDownloadRate>1000</CurrentDownloadRate>
<CurrentUploadRate>250</CurrentUploadRate>
</response>
"""

STATUS_XML = """<?xml version="1.0" encoding="UTF-8"?>
<response>
<ConnectionStatus>901</ConnectionStatus>
<BatteryStatus>1</BatteryStatus>
<BatteryPercent>80</BatteryPercent>
</response>
"""

DEVICE_XML = """<?xml version="1.0" encoding="UTF-8"?>
<response>
<DeviceName>E5577Cs-321</DeviceName>
<SerialNumber>ABCDEF</SerialNumber>
</response>
"""

ERROR_XML = """<?xml version="1.0" encoding="UTF-8"?>
<error>
<code>125002</code>
<message></message>
</error>
"""


def all_routes(**overrides) -> dict:
    routes = {
        "/api/webserver/SesTokInfo": reply(TOKEN_XML),
        "/api/device/signal": reply(LTE_SIGNAL_XML),
        "/api/net/current-plmn": reply(PLMN_XML),
        "/api/monitoring/traffic-statistics": reply(TRAFFIC_XML),
        "/api/monitoring/status": reply(STATUS_XML),
        "/api/device/basic_information": reply(DEVICE_XML),
    }
    routes.update(overrides)
    return routes


class TestParsing:
    def test_session_token(self):
        token = parse_session_token_xml(parse.parse_xml(TOKEN_XML))

        assert token.session_cookie == "SessionID=abc"
        assert token.csrf_token == "tok123"

    def test_incomplete_session_token(self):
        doc = parse.parse_xml("<response><SesInfo>SessionID=abc</SesInfo><TokInfo></TokInfo></response>")

        assert parse_session_token_xml(doc) is None

    def test_lte_signal(self):
        status = parse_signal_xml(parse.parse_xml(LTE_SIGNAL_XML))

        assert status.mode is NetworkMode.LTE
        assert status.signal_info == LteSignalInfo(rsrq=-9, rsrp=-95, sinr=12, ca_count=0, enb=0x12, id=0x34, pci=101)
        assert status.rssi == -67
        assert status.cell_id == 4660
        assert status.traffic_mode is TrafficMode.ABSOLUTE

    def test_wcdma_signal(self):
        status = parse_signal_xml(parse.parse_xml(WCDMA_SIGNAL_XML))

        assert status.mode is NetworkMode.WCDMA
        assert status.signal_info == WcdmaSignalInfo(rscp=-80, ecio=-6, nb=0, cc=5, rnc=0x13, psc=300)

    def test_missing_required_signal_field(self):
        doc = parse.parse_xml(LTE_SIGNAL_XML.replace("<cell_id>4660</cell_id>", ""))

        with pytest.raises(ModemDataError):
            parse_signal_xml(doc)

    def test_missing_lte_field(self):
        doc = parse.parse_xml(LTE_SIGNAL_XML.replace("<sinr>12dB</sinr>", ""))

        with pytest.raises(ModemDataError):
            parse_signal_xml(doc)

    def test_traffic_rates_are_bits(self):
        assert parse_traffic_statistics_xml(parse.parse_xml(TRAFFIC_XML)) == TrafficStatistics(8000, 2000)

    def test_battery_status_mapping(self):
        battery = parse_battery_status_xml(parse.parse_xml(STATUS_XML))

        assert (battery.percent, battery.status) == (80, "Charging")

    def test_unmapped_battery_status(self):
        battery = parse_battery_status_xml(parse.parse_xml(STATUS_XML.replace(">1<", ">5<")))

        assert battery.status == "Unknown status"

    def test_no_battery(self):
        doc = parse.parse_xml("<response><ConnectionStatus>901</ConnectionStatus></response>")

        assert parse_battery_status_xml(doc) is None


class TestHuaweiClient:
    def test_full_fetch(self):
        result = fetch_with_routes(HuaweiClient(), all_routes())

        assert isinstance(result, ModemStatus)
        assert result.mode is NetworkMode.LTE
        assert result.plmn == "25001"
        assert result.traffic_statistics == TrafficStatistics(8000, 2000)
        assert result.traffic_mode is TrafficMode.ABSOLUTE
        assert result.battery_percent_and_status() == (80, "Charging")
        assert result.device_info.manufacturer == "HUAWEI"
        assert result.device_info.model == "E5577Cs-321"

    def test_session_headers_are_sent(self):
        seen = []

        fetch_with_routes(HuaweiClient(), all_routes(**{"/api/device/signal": reply(LTE_SIGNAL_XML, seen=seen)}))

        assert seen[0]["Cookie"] == "SessionID=abc"
        assert seen[0]["__RequestVerificationToken"] == "tok123"
        assert seen[0]["X-Requested-With"] == "XMLHttpRequest"

    def test_missing_token_continues_unauthenticated(self):
        seen = []
        routes = all_routes(**{"/api/device/signal": reply(LTE_SIGNAL_XML, seen=seen)})
        del routes["/api/webserver/SesTokInfo"]

        result = fetch_with_routes(HuaweiClient(), routes)

        assert isinstance(result, ModemStatus)
        assert "__RequestVerificationToken" not in seen[0]

    def test_error_document_on_signal_is_access_error(self):
        result = fetch_with_routes(HuaweiClient(), all_routes(**{"/api/device/signal": reply(ERROR_XML)}))

        assert result is ModemError.ACCESS

    def test_unusable_signal_is_parse_error(self):
        signal = LTE_SIGNAL_XML.replace("<mode>7</mode>", "")

        result = fetch_with_routes(HuaweiClient(), all_routes(**{"/api/device/signal": reply(signal)}))

        assert result is ModemError.DATA_PARSING

    def test_signal_http_failure(self):
        result = fetch_with_routes(HuaweiClient(), all_routes(**{"/api/device/signal": reply("", status=500)}))

        assert result is ModemError.HTTP_CONNECTION

    def test_supplementary_failures_leave_fields_empty(self):
        routes = {
            "/api/webserver/SesTokInfo": reply(TOKEN_XML),
            "/api/device/signal": reply(LTE_SIGNAL_XML),
            "/api/net/current-plmn": reply(ERROR_XML),
            "/api/monitoring/traffic-statistics": reply("", status=500),
        }

        result = fetch_with_routes(HuaweiClient(), routes)

        assert isinstance(result, ModemStatus)
        assert result.plmn == "00000"
        assert result.traffic_statistics is None
        assert result.battery_status is None
        assert result.device_info.manufacturer == "HUAWEI"
        assert result.device_info.model == ""

    def test_device_model_falls_back_to_second_endpoint(self):
        routes = all_routes(
            **{
                "/api/device/basic_information": reply(ERROR_XML),
                "/api/device/information": reply(DEVICE_XML),
            }
        )

        result = fetch_with_routes(HuaweiClient(), routes)

        assert result.device_info.model == "E5577Cs-321"
