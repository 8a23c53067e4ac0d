"""Vendor-abstracted telemetry clients for consumer LTE/WCDMA routers, plus the poller that drives them.

Each vendor gets its own module (netgear, huawei) that turns the modem's web API into a ModemStatus.
vendor.py is the only place that picks between them.
"""
