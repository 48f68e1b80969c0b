"""Push-notification registry between the data service and the page.

Responsibilities:
- Bridge the service's identity-based push channels to page observers
- Hand out an opaque ``Subscription`` handle per registration
- Deliver every push as a full replacement of the stream's collection

The broker is an owned instance, not a module-level singleton: whoever
builds the page constructs one around a ``DataService`` and ties
``start()`` / ``stop()`` to the page's mount / unmount.
"""

from __future__ import annotations

import itertools
import logging
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from core.service import DataService

logger = logging.getLogger(__name__)


class Stream(str, Enum):
    """The two independent push streams."""

    INSIGHTS = "insights"
    TOPICS = "topics"


@dataclass(frozen=True, eq=False)
class Subscription:
    """Opaque registration handle returned by ``SubscriptionBroker.subscribe``.

    Handles compare by identity, so two registrations of the same callback
    are always distinct.
    """

    stream: Stream
    callback: Callable[[Sequence[Any]], None] = field(repr=False)
    _seq: int = field(default=0, repr=False)


class SubscriptionBroker:
    """Delivers insights / topics snapshots to registered observers."""

    def __init__(self, service: DataService) -> None:
        self.service = service
        self._registrations: dict[Stream, list[Subscription]] = {
            stream: [] for stream in Stream
        }
        self._counter = itertools.count(1)
        self._lock = threading.RLock()
        # Exact callables handed to the service; needed again to unsubscribe.
        self._service_callbacks: dict[Stream, Callable[[Sequence[Any]], None]] = {}

    # ── Lifecycle ──────────────────────────────────────────────────────────

    @property
    def running(self) -> bool:
        return bool(self._service_callbacks)

    def start(self) -> None:
        """Attach to the service's push channels. Idempotent."""
        with self._lock:
            if self.running:
                return
            on_insights = self._dispatcher(Stream.INSIGHTS)
            on_topics = self._dispatcher(Stream.TOPICS)
            self.service.subscribe(on_insights)
            try:
                self.service.subscribe_to_topics(on_topics)
            except Exception:
                self.service.unsubscribe(on_insights)
                raise
            self._service_callbacks = {
                Stream.INSIGHTS: on_insights,
                Stream.TOPICS: on_topics,
            }
        logger.info("Subscription broker started")

    def stop(self) -> None:
        """Detach from the service. Idempotent; page registrations are kept."""
        with self._lock:
            if not self.running:
                return
            callbacks, self._service_callbacks = self._service_callbacks, {}
        try:
            self.service.unsubscribe(callbacks[Stream.INSIGHTS])
        finally:
            self.service.unsubscribe_from_topics(callbacks[Stream.TOPICS])
        logger.info("Subscription broker stopped")

    def _dispatcher(self, stream: Stream) -> Callable[[Sequence[Any]], None]:
        def dispatch(payload: Sequence[Any]) -> None:
            self.publish(stream, payload)

        return dispatch

    # ── Registry ───────────────────────────────────────────────────────────

    def subscribe(
        self,
        stream: Stream | str,
        callback: Callable[[Sequence[Any]], None],
    ) -> Subscription:
        """Register *callback* for *stream* and return its handle.

        No push is delivered at registration time; the first snapshot
        arrives with the service's next emission.

        Raises:
            ValueError: If *stream* is not a known stream name.
        """
        stream = Stream(stream)
        subscription = Subscription(stream, callback, next(self._counter))
        with self._lock:
            self._registrations[stream].append(subscription)
        logger.debug("Subscribed %r", subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> bool:
        """Remove the registration named by *subscription*.

        Returns:
            True if it was removed, False for a foreign or already-removed
            handle (in which case nothing changes).
        """
        with self._lock:
            registrations = self._registrations.get(subscription.stream, [])
            for index, registered in enumerate(registrations):
                if registered is subscription:
                    del registrations[index]
                    logger.debug("Unsubscribed %r", subscription)
                    return True
        logger.debug("Ignoring unknown subscription %r", subscription)
        return False

    def subscriber_count(self, stream: Stream | str) -> int:
        with self._lock:
            return len(self._registrations[Stream(stream)])

    # ── Delivery ───────────────────────────────────────────────────────────

    def publish(self, stream: Stream | str, payload: Sequence[Any]) -> None:
        """Deliver *payload* to every observer registered when delivery begins.

        Observers removed mid-delivery still get this push. An observer that
        raises is logged and skipped.
        """
        stream = Stream(stream)
        with self._lock:
            targets = list(self._registrations[stream])

        logger.debug("Publishing %d item(s) on %s to %d observer(s)",
                     len(payload), stream.value, len(targets))
        for subscription in targets:
            try:
                subscription.callback(payload)
            except Exception:
                logger.exception("Observer %r failed on %s push", subscription, stream.value)
