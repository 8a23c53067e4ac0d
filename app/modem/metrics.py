"""All the boiler plate / init code for defining metrics.

Meta metrics describe how the scraping itself is going; modem metrics mirror the fields of the last ModemStatus.
Fields a vendor doesn't report are simply not touched, so the last known value (or no value at all) is what
Prometheus sees.
"""

from prometheus_client import Counter, Gauge, Info, Summary, disable_created_metrics

from modem.models import LteSignalInfo, ModemStatus, TrafficStatistics, WcdmaSignalInfo

# By default, client will automatically create a "_created" meta metric for
#   each metric defined below.
# Having the unix epoch time of when the metric was created isn't that useful for us
#   so we'll disable it.
disable_created_metrics()


METRICS_NS = "modem"
META_NS = "meta"

##
# Meta Metrics
##
# summary comes with both a count and a sum so we don't need to count the number of requests ourselves
s_meta_scrape_time = Summary(
    f"{META_NS}_request_duration_seconds",
    "Time spent waiting for modem to respond",
    # Handful of fixed endpoints per vendor so we can index by them
    labelnames=["scrape_target"],
)

# Connection failures have no HTTP code; those are counted with http_code="none"
c_meta_scrape_result = Counter(
    f"{META_NS}_scrape_result",
    "Count of successful vs failed scrapes",
    labelnames=["http_code", "scrape_target"],
)

c_meta_parse_result = Counter(
    f"{META_NS}_parse_result",
    "Count of successful vs failed parse attempts",
    labelnames=["parse_target", "parse_result"],
)

# One increment per fetch cycle: result is "ok" or one of the ModemError kinds
c_meta_fetch_result = Counter(
    f"{META_NS}_fetch_result",
    "Count of complete fetch cycles by outcome",
    labelnames=["result"],
)

##
# Modem metrics
##
i_modem_info = Info(
    f"{METRICS_NS}_device",
    "Assorted Modem Info",
)

g_rssi_dbm = Gauge(f"{METRICS_NS}_rssi_dbm", "Received signal strength indicator.")
g_cell_id = Gauge(f"{METRICS_NS}_cell_id", "Raw cell id of the serving cell.")

g_wcdma_rscp_dbm = Gauge(f"{METRICS_NS}_wcdma_rscp_dbm", "WCDMA received signal code power.")
g_wcdma_ecio_db = Gauge(f"{METRICS_NS}_wcdma_ecio_db", "WCDMA energy per chip to interference ratio.")
g_wcdma_psc = Gauge(f"{METRICS_NS}_wcdma_psc", "WCDMA primary scrambling code.")
g_wcdma_rnc = Gauge(f"{METRICS_NS}_wcdma_rnc", "WCDMA radio network controller id.")

g_lte_rsrq_db = Gauge(f"{METRICS_NS}_lte_rsrq_db", "LTE reference signal received quality.")
g_lte_rsrp_dbm = Gauge(f"{METRICS_NS}_lte_rsrp_dbm", "LTE reference signal received power.")
g_lte_sinr_db = Gauge(f"{METRICS_NS}_lte_sinr_db", "LTE signal to interference plus noise ratio.")
g_lte_pci = Gauge(f"{METRICS_NS}_lte_pci", "LTE physical cell identity.")
g_lte_enb = Gauge(f"{METRICS_NS}_lte_enb", "LTE eNodeB id.")
g_lte_ca_count = Gauge(f"{METRICS_NS}_lte_ca_count", "Number of aggregated secondary carriers.")

g_battery_percent = Gauge(f"{METRICS_NS}_battery_percent", "Battery charge level.")
g_device_temp_celsius = Gauge(f"{METRICS_NS}_device_temperature_celsius", "Device temperature.")
g_battery_temp_celsius = Gauge(f"{METRICS_NS}_battery_temperature_celsius", "Battery temperature.")

g_traffic_bits_per_second = Gauge(
    f"{METRICS_NS}_traffic_bits_per_second",
    "Current throughput",
    labelnames=["direction"],
)


def update_modem_metrics(status: ModemStatus) -> None:
    """Mirror a fresh status snapshot into the gauges."""
    i_modem_info.info(
        {
            "manufacturer": status.device_info.manufacturer,
            "model": status.device_info.model,
            "mode": status.mode_label,
            "plmn": status.plmn,
            "band": status.band_label,
        }
    )
    g_rssi_dbm.set(status.rssi)
    g_cell_id.set(status.cell_id)

    match status.signal_info:
        case WcdmaSignalInfo() as wcdma:
            g_wcdma_rscp_dbm.set(wcdma.rscp)
            g_wcdma_ecio_db.set(wcdma.ecio)
            g_wcdma_psc.set(wcdma.psc)
            g_wcdma_rnc.set(wcdma.rnc)
        case LteSignalInfo() as lte:
            g_lte_rsrq_db.set(lte.rsrq)
            g_lte_rsrp_dbm.set(lte.rsrp)
            g_lte_sinr_db.set(lte.sinr)
            g_lte_pci.set(lte.pci)
            g_lte_enb.set(lte.enb)
            g_lte_ca_count.set(lte.ca_count)

    if status.battery_status is not None:
        g_battery_percent.set(status.battery_status.percent)

    if status.device_temp is not None:
        g_device_temp_celsius.set(status.device_temp.device_temp)
        g_battery_temp_celsius.set(status.device_temp.battery_temp)


def update_traffic_metrics(rates: TrafficStatistics) -> None:
    g_traffic_bits_per_second.labels("download").set(rates.download)
    g_traffic_bits_per_second.labels("upload").set(rates.upload)
