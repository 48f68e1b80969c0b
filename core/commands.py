"""Topic commands: add, update and soft-delete.

Every command either is not issued at all (client-side validation
rejection, signalled by ``None``) or produces a ``CommandResult``. A
service call that raises, or answers with something that is not a
result, is normalised into ``CommandResult(success=False)``. Nothing is
retried automatically and no snapshot is touched here: the page learns
about accepted mutations from the next topics push.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Collection
from typing import TYPE_CHECKING, Any, Optional

from pydantic import ValidationError

from core.models import CommandResult, TopicDraft

if TYPE_CHECKING:
    from core.service import DataService

logger = logging.getLogger(__name__)


def _normalise(raw: Any) -> CommandResult:
    if isinstance(raw, CommandResult):
        return raw
    try:
        return CommandResult.model_validate(raw)
    except ValidationError:
        logger.warning("Unparseable command result: %r", raw)
        return CommandResult.fail("Unexpected response from the data service.")


class TopicCommandClient:
    """Issues topic commands against a ``DataService``."""

    def __init__(self, service: DataService) -> None:
        self.service = service

    def _issue(self, name: str, call: Callable[[], Any]) -> CommandResult:
        logger.info("Issuing %s", name)
        try:
            result = _normalise(call())
        except Exception as exc:
            logger.exception("Command %s raised", name)
            return CommandResult.fail(str(exc) or exc.__class__.__name__)

        if result.success:
            logger.info("Command %s accepted", name)
        else:
            logger.warning("Command %s rejected: %s", name, result.message)
        return result

    def add_topic(self, draft: TopicDraft) -> Optional[CommandResult]:
        """Create a topic from *draft* as a single-element batch.

        Returns:
            The command result, or ``None`` if the name is blank and no
            command was issued.
        """
        if not draft.name.strip():
            return None
        payload = draft.model_copy()
        return self._issue("save_topics", lambda: self.service.save_topics([payload]))

    def update_topic(
        self,
        topic_id: int,
        patch: TopicDraft,
        known_ids: Optional[Collection[int]] = None,
    ) -> Optional[CommandResult]:
        """Overwrite the fields of topic *topic_id*.

        Args:
            topic_id: Identifier of an existing topic.
            patch: New field values.
            known_ids: Topic ids from the page's last topics push. When
                given, an id outside it is rejected without a round trip.

        Returns:
            The command result, or ``None`` if validation rejected the call.
        """
        if not patch.name.strip():
            return None
        if known_ids is not None and topic_id not in known_ids:
            logger.info("Not updating unknown topic id=%s", topic_id)
            return None
        payload = patch.model_copy()
        return self._issue(
            f"update_topic({topic_id})",
            lambda: self.service.update_topic(topic_id, payload),
        )

    def soft_delete_topic(self, topic_id: int) -> CommandResult:
        return self._issue(
            f"soft_delete_topic({topic_id})",
            lambda: self.service.soft_delete_topic(topic_id),
        )
