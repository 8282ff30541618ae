# registry/core/events.py
import logging
import threading
from dataclasses import dataclass
from typing import Callable, List, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WriterAdded:
    identity: str
    added_by: str


@dataclass(frozen=True)
class WriterRemoved:
    identity: str
    removed_by: str


@dataclass(frozen=True)
class OwnershipTransferred:
    previous_owner: str
    new_owner: str


@dataclass(frozen=True)
class RecordIssued:
    record_id: bytes
    display: str                    # title / student name, depending on schema
    submitter: str
    kind: str


@dataclass(frozen=True)
class RecordRevoked:
    record_id: bytes
    revoker: str


Event = Union[WriterAdded, WriterRemoved, OwnershipTransferred, RecordIssued, RecordRevoked]
Listener = Callable[[Event], None]


class EventBus:
    """
    Fire-and-forget notification fan-out. Listeners run synchronously in
    subscription order; one failing listener never affects the others or the ledger.
    """

    def __init__(self):
        self._listeners: List[Listener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener. Returns a callable that unsubscribes it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def publish(self, event: Event) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(event)
            except Exception:
                logger.exception("Listener %r failed on %s", listener, type(event).__name__)
