"""
Periodic polling of a modem on a background thread.

Two execution contexts:
    - the owner ("interactive") context calls start/stop/toggle and drains the inbox with process_messages().
      It owns the running flag, host and interval and never touches the network.
    - one worker thread per fetch cycle. It fetches, posts the outcome, waits out the interval in small ticks
      while watching for cancellation, then posts FetchIssued and exits. The owner spawns the next worker when
      it processes that message.

Fetch and wait are chained, so the cadence is fetch duration + interval and a slow modem delays the next
cycle rather than piling requests up. At most one worker is ever alive.
Each start() opens a new session; a FetchIssued still queued from an earlier session is dropped.
"""

import queue
import threading
import time
from collections.abc import Callable

import structlog

from err.exceptions import ModemError
from modem.messages import (
    FetchFailed,
    FetchIssued,
    FetchSucceeded,
    Message,
    PollToggled,
    Shutdown,
    StatusReceived,
)
from modem.models import ModemStatus
from modem.vendor import Vendor, fetch_status
from util.const import DEFAULT_POLL_INTERVAL_SECONDS, POLL_INTERVAL_PRESETS, POLL_TICK_SECONDS

log = structlog.get_logger(__name__)

FetchFunc = Callable[[Vendor, str], ModemStatus | ModemError]
Listener = Callable[[Message], None]


class PollingScheduler:
    def __init__(
        self,
        vendor: Vendor,
        fetch: FetchFunc = fetch_status,
        tick: float = POLL_TICK_SECONDS,
    ):
        self._vendor = vendor
        self._fetch = fetch
        self._tick = tick

        self._inbox: queue.Queue[Message] = queue.Queue()
        self._listeners: list[Listener] = []

        self._cancel = threading.Event()
        self._worker: threading.Thread | None = None

        self._running = False
        self._shutdown = False
        # Bumped by every start(); FetchIssued from an older session is stale
        self._session = 0
        self._host = ""
        self._interval = DEFAULT_POLL_INTERVAL_SECONDS

    @property
    def running(self) -> bool:
        return self._running

    @property
    def shutdown_requested(self) -> bool:
        return self._shutdown

    @property
    def host(self) -> str:
        return self._host

    @property
    def interval(self) -> int:
        return self._interval

    @property
    def worker_alive(self) -> bool:
        return self._worker is not None and self._worker.is_alive()

    def add_listener(self, listener: Listener) -> None:
        """`listener` is called from process_messages(), i.e. on the owner's thread, once per message."""
        self._listeners.append(listener)

    def post(self, message: Message) -> None:
        """Thread safe; used by the worker and by anything that wants to talk to the owner loop."""
        self._inbox.put(message)

    def toggle(self, host: str, interval: int) -> None:
        self.post(PollToggled(host=host, interval=interval))

    def start(self, host: str, interval: int) -> None:
        """Capture host/interval and ask for the first fetch right away."""
        if interval not in POLL_INTERVAL_PRESETS:
            raise ValueError(f"Poll interval must be one of {POLL_INTERVAL_PRESETS}, got {interval}")
        if self._running:
            log.warning("Poller already running", host=self._host, interval=self._interval)
            return

        # A worker from a previous session may still be winding down
        self._join_worker()

        self._host = host
        self._interval = interval
        self._cancel.clear()
        self._running = True
        self._session += 1
        log.info("Polling started", vendor=self._vendor.value, host=host, interval=interval)
        self.post(FetchIssued(session=self._session))

    def stop(self) -> None:
        """
        Signal the worker and wait for it to exit.

        Returns only once no worker is left, so nothing fetch related is posted afterwards.
        Worst case this blocks for the remainder of an in-flight request plus one tick.
        """
        was_running = self._running
        self._running = False
        self._cancel.set()
        self._join_worker()
        if was_running:
            log.info("Polling stopped", host=self._host)

    def process_messages(self, block: bool = False, timeout: float | None = None) -> int:
        """
        Drain the inbox in arrival order, acting on control messages and handing everything to the listeners.

        With block=True, waits up to `timeout` for the first message. Returns how many were processed.
        """
        processed = 0
        while True:
            try:
                message = self._inbox.get(block=block and processed == 0, timeout=timeout)
            except queue.Empty:
                return processed
            processed += 1
            if self._handle(message):
                self._notify(message)

    def run(self, timeout: float = 0.5) -> None:
        """Process messages until a Shutdown has been handled."""
        while not self._shutdown:
            self.process_messages(block=True, timeout=timeout)

    def _notify(self, message: Message) -> None:
        for listener in self._listeners:
            listener(message)

    def _handle(self, message: Message) -> bool:
        """Returns False for messages that should not reach the listeners."""
        match message:
            case PollToggled(host=host, interval=interval):
                if self._running:
                    self.stop()
                else:
                    self.start(host, interval)
            case FetchIssued(session=session):
                if not self._running or session != self._session:
                    # Posted by a worker just before stop(); that session is over
                    log.debug("Dropping stale fetch request", session=session, current=self._session)
                    return False
                self._spawn_worker()
            case Shutdown():
                self.stop()
                self._shutdown = True
        return True

    def _join_worker(self) -> None:
        if self._worker is None:
            return
        if self._worker is not threading.current_thread():
            self._worker.join()
        self._worker = None

    def _spawn_worker(self) -> None:
        # Never more than one worker: the previous one has already posted its FetchIssued and is on its way out
        self._join_worker()
        self._worker = threading.Thread(
            target=self._poll_cycle,
            # Worker gets its own copy and never reads our fields
            args=(self._vendor, self._host, self._interval, self._session, self._cancel),
            name="modem-poll",
            daemon=True,
        )
        self._worker.start()

    def _poll_cycle(self, vendor: Vendor, host: str, interval: int, session: int, cancel: threading.Event) -> None:
        try:
            result = self._fetch(vendor, host)
        # pylint: disable=broad-exception-caught
        except Exception as e:
            # Whatever a client raises, the chain carries on to the next cycle
            log.error("Unforeseen exception during fetch. Treating as non-fatal.", error=e)
            result = ModemError.UNKNOWN

        if isinstance(result, ModemError):
            log.warning("Fetch failed", host=host, error=result.label)
            self.post(FetchFailed(error=result))
        else:
            self.post(StatusReceived(status=result))
            self.post(FetchSucceeded())

        # Interval counts from the end of the fetch
        started = time.monotonic()
        while True:
            if cancel.wait(self._tick):
                log.debug("Poll worker cancelled", host=host)
                return
            if time.monotonic() - started >= interval:
                self.post(FetchIssued(session=session))
                return
