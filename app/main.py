#!/usr/bin/env python3
"""
Main / entry point for the LTE/WCDMA modem exporter.

"""
import signal
from os import getenv

import structlog
from prometheus_client import start_http_server

from err.exceptions import ModemError
from modem import metrics
from modem.bandwidth import TrafficRateCalculator, format_bandwidth
from modem.messages import FetchFailed, FetchSucceeded, Message, Shutdown, StatusReceived
from modem.models import ModemStatus, TrafficMode
from modem.poller import PollingScheduler
from modem.vendor import DEFAULT_HOST_BY_VENDOR, Vendor
from util.const import DEFAULT_POLL_INTERVAL_SECONDS, POLL_INTERVAL_PRESETS, LogLevel
from util.observer import ValueChangeObserver

# cfg-file/arg-parse is overkill for the few things that need to be configured.
# env-vars are trivial to set from systemd/k8s so we'll just use that.
##
MODEM_VENDOR = getenv("MODEM_VENDOR", Vendor.NETGEAR.value)
MODEM_HOST = getenv("MODEM_HOST", None)
POLL_INTERVAL_SECONDS = getenv("POLL_INTERVAL_SECONDS", str(DEFAULT_POLL_INTERVAL_SECONDS))

# default prometheus_client implementation does not support setting the path, only the port.
METRICS_PORT = int(getenv("METRICS_PORT", "8200"))


if getenv("LOG_LEVEL") not in LogLevel.__members__ or getenv("LOG_LEVEL") is None:
    print(f"Defaulting to {LogLevel.INFO} log level")
    log_level = LogLevel.INFO
else:
    log_level = LogLevel[getenv("LOG_LEVEL")]  # type: ignore
    print(f"Using log level {log_level.value}")


structlog.configure(
    wrapper_class=structlog.make_filtering_bound_logger(log_level.value)
)

log = structlog.get_logger(__name__)


def parse_poll_interval(raw: str) -> int:
    """Only the preset intervals are allowed; anything else falls back to the default."""
    try:
        interval = int(raw)
    except ValueError:
        interval = -1
    if interval not in POLL_INTERVAL_PRESETS:
        log.warning(
            "Unsupported poll interval, using default",
            requested=raw,
            allowed=POLL_INTERVAL_PRESETS,
            default=DEFAULT_POLL_INTERVAL_SECONDS,
        )
        return DEFAULT_POLL_INTERVAL_SECONDS
    return interval


class StatusReporter:
    """
    Consumer side of the poller: logs each snapshot and mirrors it into the metrics.

    Lives on the owner thread, so the rate calculator is never touched concurrently.
    """

    def __init__(self, rates: TrafficRateCalculator | None = None):
        self.rates = rates or TrafficRateCalculator()
        self.current_mode = ValueChangeObserver()
        self.current_cell = ValueChangeObserver()

    def __call__(self, message: Message) -> None:
        match message:
            case StatusReceived(status=status):
                self.on_status(status)
            case FetchSucceeded():
                metrics.c_meta_fetch_result.labels("ok").inc()
            case FetchFailed(error=error):
                self.on_error(error)

    def on_status(self, status: ModemStatus) -> None:
        log.debug("Received modem status", summary=str(status))

        if self.current_mode.update_and_check_if_changed(status.mode_label):
            log.info("Network mode changed", mode=status.mode_label, band=status.band_label)
        if self.current_cell.update_and_check_if_changed(status.cell_id):
            cell_id_hex, cell_id = status.cell_id_hex_and_dec()
            log.info("Serving cell changed", cell_id_hex=cell_id_hex, cell_id=cell_id, plmn=status.plmn)

        metrics.update_modem_metrics(status)

        if status.traffic_statistics is None:
            return

        # Bandwidth
        match status.traffic_mode:
            case TrafficMode.ABSOLUTE:
                rates = status.traffic_statistics
            case TrafficMode.CUMULATIVE:
                rates = self.rates.update(status.traffic_statistics)

        if rates is None:
            return

        log.info(
            "Bandwidth",
            download=format_bandwidth(rates.download),
            upload=format_bandwidth(rates.upload),
        )
        # Counter reset on the modem: not worth graphing
        if rates.download >= 0 and rates.upload >= 0:
            metrics.update_traffic_metrics(rates)

    def on_error(self, error: ModemError) -> None:
        log.error("Modem poll failed", error=error.label)
        metrics.c_meta_fetch_result.labels(error.value).inc()


def main():
    """Main entry point."""
    log.info("Starting up")

    if (vendor := Vendor.from_name(MODEM_VENDOR)) is None:
        log.error("Unsupported MODEM_VENDOR", vendor=MODEM_VENDOR, supported=[v.value for v in Vendor])
        return

    host = MODEM_HOST or DEFAULT_HOST_BY_VENDOR[vendor]
    interval = parse_poll_interval(POLL_INTERVAL_SECONDS)

    # In testing, server responds to requests on / and /metrics so there's no real
    #   need to allow customizing the path, I think.
    server, _ = start_http_server(port=METRICS_PORT)
    log.info("Metrics server started", server=server.server_address)

    scheduler = PollingScheduler(vendor)
    scheduler.add_listener(StatusReporter())

    # Handlers run on the main thread between queue waits; all they do is enqueue.
    signal.signal(signal.SIGINT, lambda *_: scheduler.post(Shutdown()))
    signal.signal(signal.SIGTERM, lambda *_: scheduler.post(Shutdown()))

    scheduler.toggle(host, interval)
    scheduler.run()

    log.info("Shut down")


if __name__ == "__main__":
    main()
