"""
Generic helpers that pull typed values out of what the modem sends back.

Two document flavours show up:
    - XML from the Huawei web API, parsed with BeautifulSoup. Names are element names.
    - JSON from the Netgear web UI, as plain dicts. Names are dotted key paths, e.g. "wwan.signalStrength.rssi".

None of these raise: a field that is missing or won't parse is simply None (and logged).
"""

from collections.abc import Iterable, Mapping
from typing import Any, TypeVar

import structlog
from bs4 import BeautifulSoup, Tag

log = structlog.get_logger(__name__)

T = TypeVar("T", int, float)

Document = BeautifulSoup | Tag | Mapping[str, Any]

# Checked in this order; "dBm" has to come first or we'd leave a dangling "m"
KNOWN_UNITS = ("dBm", "dB")


def parse_xml(text: str) -> BeautifulSoup:
    """
    Parse a web API reply.

    The stdlib html.parser is lenient enough for these small documents; it does lower-case every
    element name which is why lookups below are case-insensitive.
    """
    return BeautifulSoup(text, "html.parser")


def root_name(doc: BeautifulSoup) -> str | None:
    """Name of the outermost element, e.g. 'response' or 'error'."""
    if (root := doc.find(True)) is None:
        return None
    return root.name


def is_error_document(doc: BeautifulSoup) -> bool:
    """Huawei wraps failures in <error><code>...</code><message>...</message></error>"""
    return root_name(doc) == "error"


def get_error_details(doc: BeautifulSoup) -> tuple[str | None, str | None]:
    """(code, message) out of an error document; either may be missing."""
    return get_field(doc, "code"), get_field(doc, "message")


def _get_json_value(doc: Mapping[str, Any], path: str) -> Any:
    node: Any = doc
    for key in path.split("."):
        if not isinstance(node, Mapping) or key not in node:
            return None
        node = node[key]
    return node


def get_field(doc: Document, name: str) -> str | None:
    """Raw text of a field, or None when it isn't there."""
    if isinstance(doc, Mapping):
        value = _get_json_value(doc, name)
        # Nested groups and null are not "text" we can hand back
        if value is None or isinstance(value, (Mapping, list, bool)):
            return None
        return str(value).strip()

    if (element := doc.find(name.lower())) is None:
        return None
    return element.get_text().strip()


def _parse_as(raw: str, type_: type[T], name: str) -> T | None:
    try:
        # int() and float() would otherwise accept digit separators such as '1_000'
        if "_" in raw:
            raise ValueError(raw)
        return type_(raw)
    except ValueError:
        log.debug("Malformed field", field=name, raw=raw, expected=type_.__name__)
        return None


def get_field_as(doc: Document, name: str, type_: type[T] = int) -> T | None:
    """
    Field parsed strictly as `type_`.

    Strict means '-8.0' is NOT an int; we'd rather report nothing than a silently truncated value.
    """
    if (raw := get_field(doc, name)) is None:
        log.debug("Missing field", field=name)
        return None
    return _parse_as(raw, type_, name)


def strip_unit(raw: str) -> str:
    """'-95dBm' -> '-95', '-8dB' -> '-8'; anything else is returned untouched."""
    for unit in KNOWN_UNITS:
        if raw.endswith(unit):
            return raw[: -len(unit)].strip()
    return raw


def get_field_as_with_unit(doc: Document, name: str, type_: type[T] = int) -> T | None:
    """Same as get_field_as() but tolerates a trailing dB/dBm unit."""
    if (raw := get_field(doc, name)) is None:
        log.debug("Missing field", field=name)
        return None
    return _parse_as(strip_unit(raw), type_, name)


def has_required_fields(doc: Document, names: Iterable[str]) -> bool:
    """Fast-fail gate before building a status record. Logs every field that is absent."""
    missing = [name for name in names if get_field(doc, name) is None]
    if missing:
        log.warning("Required fields missing from modem reply", missing=missing)
        return False
    return True
