"""
External data service boundary.

The page consumes the service only through the ``DataService`` protocol:
two identity-based push channels (insights, topics) and three mutating
commands that answer with a ``CommandResult``.

``LocalDataService`` is the bundled implementation, backed by
``core.store`` (SQLite). It re-emits the topics channel after every
accepted command, which is how the page learns about its own mutations.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Sequence
from typing import Protocol

from core import store
from core.models import CommandResult, Insight, Topic, TopicDraft

logger = logging.getLogger(__name__)

InsightsCallback = Callable[[Sequence[Insight]], None]
TopicsCallback = Callable[[Sequence[Topic]], None]


class DataService(Protocol):
    """Contract the page relies on. Callbacks are matched by identity."""

    def subscribe(self, callback: InsightsCallback) -> None: ...

    def unsubscribe(self, callback: InsightsCallback) -> None: ...

    def subscribe_to_topics(self, callback: TopicsCallback) -> None: ...

    def unsubscribe_from_topics(self, callback: TopicsCallback) -> None: ...

    def save_topics(self, drafts: Sequence[TopicDraft]) -> CommandResult: ...

    def update_topic(self, topic_id: int, patch: TopicDraft) -> CommandResult: ...

    def soft_delete_topic(self, topic_id: int) -> CommandResult: ...


def _remove_by_identity(callbacks: list, callback: Callable) -> bool:
    """Remove the first entry that *is* ``callback``; equal-but-distinct objects stay."""
    for index, registered in enumerate(callbacks):
        if registered is callback:
            del callbacks[index]
            return True
    return False


def _deliver(callbacks: list, payload: Sequence, channel: str) -> None:
    for callback in callbacks:
        try:
            callback(payload)
        except Exception:
            logger.exception("Subscriber on %s channel raised", channel)


class LocalDataService:
    """SQLite-backed ``DataService`` with in-process push channels."""

    def __init__(self, emit_on_change: bool = True) -> None:
        self.emit_on_change = emit_on_change
        self._insight_callbacks: list[InsightsCallback] = []
        self._topic_callbacks: list[TopicsCallback] = []
        self._lock = threading.RLock()
        store.init_db()

    # ── Push channels ──────────────────────────────────────────────────────

    def subscribe(self, callback: InsightsCallback) -> None:
        with self._lock:
            self._insight_callbacks.append(callback)

    def unsubscribe(self, callback: InsightsCallback) -> None:
        with self._lock:
            if not _remove_by_identity(self._insight_callbacks, callback):
                logger.debug("unsubscribe: callback %r was not registered", callback)

    def subscribe_to_topics(self, callback: TopicsCallback) -> None:
        with self._lock:
            self._topic_callbacks.append(callback)

    def unsubscribe_from_topics(self, callback: TopicsCallback) -> None:
        with self._lock:
            if not _remove_by_identity(self._topic_callbacks, callback):
                logger.debug("unsubscribe_from_topics: callback %r was not registered", callback)

    def emit_insights(self) -> None:
        """Push the full insight list to every insights subscriber."""
        insights = store.list_insights()
        with self._lock:
            callbacks = list(self._insight_callbacks)
        _deliver(callbacks, insights, "insights")

    def emit_topics(self) -> None:
        """Push the live (not soft-deleted) topic list to every topics subscriber."""
        topics = store.list_topics()
        with self._lock:
            callbacks = list(self._topic_callbacks)
        _deliver(callbacks, topics, "topics")

    def emit(self) -> None:
        """Push both channels."""
        self.emit_insights()
        self.emit_topics()

    # ── Seeding ────────────────────────────────────────────────────────────

    def seed_insights(self, insights: Iterable[Insight]) -> int:
        count = store.upsert_insights(insights)
        if self.emit_on_change:
            self.emit_insights()
        return count

    # ── Commands ───────────────────────────────────────────────────────────

    def save_topics(self, drafts: Sequence[TopicDraft]) -> CommandResult:
        if not drafts:
            return CommandResult.fail("No topics to save.")
        if any(not draft.name.strip() for draft in drafts):
            return CommandResult.fail("Topic name must not be empty.")

        ids = store.insert_topics(drafts)
        self._changed()
        return CommandResult.ok(f"Saved {len(ids)} topic(s).")

    def update_topic(self, topic_id: int, patch: TopicDraft) -> CommandResult:
        if not patch.name.strip():
            return CommandResult.fail("Topic name must not be empty.")
        if not store.update_topic(topic_id, patch):
            return CommandResult.fail(f"Topic {topic_id} not found.")
        self._changed()
        return CommandResult.ok()

    def soft_delete_topic(self, topic_id: int) -> CommandResult:
        if not store.soft_delete_topic(topic_id):
            return CommandResult.fail(f"Topic {topic_id} not found.")
        self._changed()
        return CommandResult.ok()

    def _changed(self) -> None:
        if self.emit_on_change:
            self.emit_topics()
