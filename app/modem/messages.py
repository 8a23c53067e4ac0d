"""Everything that travels through the poller's inbox, in the order it is emitted."""

from dataclasses import dataclass

from err.exceptions import ModemError
from modem.models import ModemStatus


@dataclass(frozen=True)
class PollToggled:
    """Start polling `host` every `interval` seconds, or stop if already polling."""

    host: str
    interval: int


@dataclass(frozen=True)
class FetchIssued:
    """Time for the next fetch cycle of polling session `session`."""

    session: int = 0


@dataclass(frozen=True)
class StatusReceived:
    status: ModemStatus


@dataclass(frozen=True)
class FetchSucceeded:
    pass


@dataclass(frozen=True)
class FetchFailed:
    error: ModemError


@dataclass(frozen=True)
class Shutdown:
    pass


Message = PollToggled | FetchIssued | StatusReceived | FetchSucceeded | FetchFailed | Shutdown
