"""Dialog state and draft buffers for the insights page.

The page shows at most one dialog. Its state is a single tagged value:

    Idle | AddingTopic(draft) | EditingTopic(topic_id, draft) | ViewingInsight(insight)

Opening a dialog while another is open replaces it; the replaced
dialog's draft is discarded. Topic lists are never patched here: a
successful command only closes the dialog, and the change becomes
visible when the data service pushes the new topics.
"""

from __future__ import annotations

import logging
from collections.abc import Collection
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional, Union

from core.models import CommandResult, Insight, Topic, TopicDraft
from core.notifications import NotificationCenter

if TYPE_CHECKING:
    from core.commands import TopicCommandClient

logger = logging.getLogger(__name__)


# ── States ─────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Idle:
    kind = "idle"


@dataclass(frozen=True)
class AddingTopic:
    draft: TopicDraft = field(default_factory=TopicDraft)
    kind = "adding_topic"


@dataclass(frozen=True)
class EditingTopic:
    topic_id: int
    draft: TopicDraft
    kind = "editing_topic"


@dataclass(frozen=True)
class ViewingInsight:
    insight: Insight
    kind = "viewing_insight"


ViewState = Union[Idle, AddingTopic, EditingTopic, ViewingInsight]

IDLE = Idle()


# ── Controller ─────────────────────────────────────────────────────────────


class ViewStateController:
    """Owns the current ``ViewState`` and runs the confirm flows.

    After ``dispose()`` the controller is dead: user actions are ignored
    and outcomes of commands still in flight are dropped.
    """

    ADD_SUCCESS = "New topic added successfully."
    ADD_FAILURE = "Failed to add topic. Please try again."
    UPDATE_SUCCESS = "Topic updated successfully."
    UPDATE_FAILURE = "Failed to update topic. Please try again."
    DELETE_SUCCESS = "Topic deleted successfully."
    DELETE_FAILURE = "Failed to delete topic. Please try again."

    def __init__(
        self,
        commands: TopicCommandClient,
        notifications: Optional[NotificationCenter] = None,
    ) -> None:
        self.commands = commands
        self.notifications = notifications or NotificationCenter()
        self.state: ViewState = IDLE
        self._alive = True

    @property
    def alive(self) -> bool:
        return self._alive

    def dispose(self) -> None:
        self._alive = False
        self.state = IDLE

    def _set(self, state: ViewState) -> None:
        if not self._alive:
            logger.debug("Ignoring transition to %s on disposed controller", state.kind)
            return
        if self.state is not IDLE and state is not IDLE:
            logger.debug("Replacing open %s dialog with %s", self.state.kind, state.kind)
        self.state = state

    # ── Opening / closing ──────────────────────────────────────────────────

    def open_add_topic(self) -> None:
        self._set(AddingTopic(TopicDraft(name="", explanation="")))

    def open_edit_topic(self, topic: Topic) -> None:
        self._set(EditingTopic(topic.id, topic.to_draft()))

    def open_insight(self, insight: Insight) -> None:
        self._set(ViewingInsight(insight))

    def close(self) -> None:
        self._set(IDLE)

    def update_draft(self, name: Optional[str] = None, explanation: Optional[str] = None) -> None:
        """Edit the buffer of the open add or edit dialog."""
        state = self.state
        if not isinstance(state, (AddingTopic, EditingTopic)):
            logger.debug("No draft to update in state %s", state.kind)
            return

        changes = {}
        if name is not None:
            changes["name"] = name
        if explanation is not None:
            changes["explanation"] = explanation
        draft = state.draft.model_copy(update=changes)

        if isinstance(state, AddingTopic):
            self._set(AddingTopic(draft))
        else:
            self._set(EditingTopic(state.topic_id, draft))

    # ── Commands ───────────────────────────────────────────────────────────

    def confirm(self, known_ids: Optional[Collection[int]] = None) -> Optional[CommandResult]:
        """Confirm whichever topic dialog is open."""
        if isinstance(self.state, AddingTopic):
            return self.confirm_add()
        if isinstance(self.state, EditingTopic):
            return self.confirm_update(known_ids)
        logger.debug("Nothing to confirm in state %s", self.state.kind)
        return None

    def confirm_add(self) -> Optional[CommandResult]:
        state = self.state
        if not self._alive or not isinstance(state, AddingTopic):
            return None
        result = self.commands.add_topic(state.draft)
        if result is None:
            return None
        self._apply(result, state, self.ADD_SUCCESS, self.ADD_FAILURE)
        return result

    def confirm_update(self, known_ids: Optional[Collection[int]] = None) -> Optional[CommandResult]:
        state = self.state
        if not self._alive or not isinstance(state, EditingTopic):
            return None
        result = self.commands.update_topic(state.topic_id, state.draft, known_ids)
        if result is None:
            return None
        self._apply(result, state, self.UPDATE_SUCCESS, self.UPDATE_FAILURE)
        return result

    def delete_topic(self, topic_id: int) -> Optional[CommandResult]:
        if not self._alive:
            return None
        result = self.commands.soft_delete_topic(topic_id)
        self._apply(result, None, self.DELETE_SUCCESS, self.DELETE_FAILURE)
        return result

    def _apply(
        self,
        result: CommandResult,
        origin: Optional[ViewState],
        success_text: str,
        failure_text: str,
    ) -> None:
        if not self._alive:
            logger.info("Dropping command outcome for disposed view: %r", result)
            return

        if not result.success:
            self.notifications.error(failure_text)
            return

        # Only close the dialog the command came from.
        if origin is not None and self.state is origin:
            self._set(IDLE)
        self.notifications.success(success_text)
