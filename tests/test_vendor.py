import pytest

from err.exceptions import ModemError
from modem.huawei import HuaweiClient
from modem.netgear import NetgearClient
from modem.vendor import DEFAULT_HOST_BY_VENDOR, Vendor, client_for, fetch_status


@pytest.mark.parametrize(
    "name, expected",
    [
        ("netgear", Vendor.NETGEAR),
        (" Huawei ", Vendor.HUAWEI),
        ("HUAWEI", Vendor.HUAWEI),
        ("zte", None),
        ("", None),
        (None, None),
    ],
)
def test_from_name(name, expected):
    assert Vendor.from_name(name) is expected


def test_client_for():
    assert isinstance(client_for(Vendor.NETGEAR), NetgearClient)
    assert isinstance(client_for(Vendor.HUAWEI), HuaweiClient)


def test_every_vendor_has_a_default_host():
    assert set(DEFAULT_HOST_BY_VENDOR) == set(Vendor)


def test_unknown_vendor_is_unknown_error():
    assert fetch_status("zte", "192.168.1.1") is ModemError.UNKNOWN


def test_fetch_status_runs_the_client_to_completion():
    # Nothing listens on port 1
    assert fetch_status(Vendor.NETGEAR, "127.0.0.1:1") is ModemError.HTTP_CONNECTION
