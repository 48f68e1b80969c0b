"""
The insights page: snapshot holder and lifecycle owner.

Flow
────
1. mount()
     → starts the broker and subscribes to both streams
     → the first insights push clears ``loading``
2. pushes
     → each push wholly replaces ``insights`` or ``topics``
3. user actions
     → routed to the ViewStateController, which issues topic commands
4. unmount()
     → unsubscribes by handle, stops the broker, disposes the controller
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from typing import Optional

from core.broker import Stream, Subscription, SubscriptionBroker
from core.commands import TopicCommandClient
from core.filtering import filter_insights
from core.models import CommandResult, Insight, Topic
from core.notifications import NotificationCenter
from core.view_state import ViewState, ViewStateController

logger = logging.getLogger(__name__)

LOAD_ERROR = "Unable to load insights. Showing cached data if available."


class InsightPage:
    """Page-local view of insights and topics, fed only by broker pushes."""

    def __init__(
        self,
        broker: SubscriptionBroker,
        commands: Optional[TopicCommandClient] = None,
        notifications: Optional[NotificationCenter] = None,
    ) -> None:
        self.broker = broker
        self.commands = commands or TopicCommandClient(broker.service)
        self.notifications = notifications or NotificationCenter()
        self.controller = ViewStateController(self.commands, self.notifications)

        self.insights: Sequence[Insight] = []
        self.topics: Sequence[Topic] = []
        self.loading = True
        self.error: Optional[str] = None
        self.search_term = ""
        self.topics_expanded = False

        self._subscriptions: list[Subscription] = []
        self._mounted = False
        self._lock = threading.RLock()

    # ── Lifecycle ──────────────────────────────────────────────────────────

    @property
    def mounted(self) -> bool:
        return self._mounted

    def mount(self) -> None:
        with self._lock:
            if self._mounted:
                return
            self._mounted = True
            # A page remounted after unmount needs a live controller again.
            if not self.controller.alive:
                self.controller = ViewStateController(self.commands, self.notifications)
            self._subscriptions = [
                self.broker.subscribe(Stream.INSIGHTS, self._on_insights),
                self.broker.subscribe(Stream.TOPICS, self._on_topics),
            ]
            try:
                self.broker.start()
            except Exception:
                logger.exception("Initial load failed")
                self.report_load_failure()
        logger.info("Insight page mounted")

    def report_load_failure(self) -> None:
        """Show the persistent inline notice instead of the spinner."""
        with self._lock:
            self.error = LOAD_ERROR
            self.loading = False

    def unmount(self) -> None:
        with self._lock:
            if not self._mounted:
                return
            self._mounted = False
            for subscription in self._subscriptions:
                self.broker.unsubscribe(subscription)
            self._subscriptions = []
            self.controller.dispose()
            self.broker.stop()
        logger.info("Insight page unmounted")

    # ── Push handlers ──────────────────────────────────────────────────────

    def _on_insights(self, insights: Sequence[Insight]) -> None:
        with self._lock:
            if not self._mounted:
                return
            self.insights = list(insights)
            self.loading = False
            self.error = None
        logger.debug("Insights snapshot replaced (%d)", len(insights))

    def _on_topics(self, topics: Sequence[Topic]) -> None:
        with self._lock:
            if not self._mounted:
                return
            self.topics = list(topics)
        logger.debug("Topics snapshot replaced (%d)", len(topics))

    # ── Derived state ──────────────────────────────────────────────────────

    @property
    def visible_insights(self) -> Sequence[Insight]:
        return filter_insights(self.insights, self.search_term)

    @property
    def view_state(self) -> ViewState:
        return self.controller.state

    def topic_ids(self) -> set[int]:
        return {topic.id for topic in self.topics}

    def find_topic(self, topic_id: int) -> Topic:
        for topic in self.topics:
            if topic.id == topic_id:
                return topic
        raise KeyError(topic_id)

    def find_insight(self, insight_id: int) -> Insight:
        for insight in self.insights:
            if insight.id == insight_id:
                return insight
        raise KeyError(insight_id)

    # ── User actions ───────────────────────────────────────────────────────
    # Each action runs under the page lock, so concurrent requests see
    # one another's dialog transitions and a confirm is issued once.

    def set_search_term(self, term: str) -> None:
        with self._lock:
            self.search_term = term

    def toggle_topics(self) -> bool:
        with self._lock:
            self.topics_expanded = not self.topics_expanded
            return self.topics_expanded

    def add_topic(self) -> None:
        with self._lock:
            self.controller.open_add_topic()

    def edit_topic(self, topic_id: int) -> None:
        """Open the edit dialog for a topic from the current snapshot.

        Raises:
            KeyError: If no topic with *topic_id* is in the snapshot.
        """
        with self._lock:
            self.controller.open_edit_topic(self.find_topic(topic_id))

    def watch_insight(self, insight_id: int) -> None:
        """Open the video dialog for an insight from the current snapshot.

        Raises:
            KeyError: If no insight with *insight_id* is in the snapshot.
        """
        with self._lock:
            self.controller.open_insight(self.find_insight(insight_id))

    def close_dialog(self) -> None:
        with self._lock:
            self.controller.close()

    def update_draft(self, name: Optional[str] = None, explanation: Optional[str] = None) -> None:
        with self._lock:
            self.controller.update_draft(name=name, explanation=explanation)

    def confirm(self) -> Optional[CommandResult]:
        with self._lock:
            return self.controller.confirm(known_ids=self.topic_ids())

    def delete_topic(self, topic_id: int) -> Optional[CommandResult]:
        with self._lock:
            return self.controller.delete_topic(topic_id)
