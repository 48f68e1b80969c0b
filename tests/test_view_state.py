"""Tests for core/view_state.py - dialog transitions and confirm flows."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from core.commands import TopicCommandClient
from core.models import CommandResult, Insight, Topic, TopicDraft
from core.view_state import (
    AddingTopic,
    EditingTopic,
    Idle,
    ViewingInsight,
    ViewStateController,
)


@pytest.fixture
def service() -> MagicMock:
    mock = MagicMock()
    mock.save_topics.return_value = CommandResult.ok()
    mock.update_topic.return_value = CommandResult.ok()
    mock.soft_delete_topic.return_value = CommandResult.ok()
    return mock


@pytest.fixture
def controller(service) -> ViewStateController:
    return ViewStateController(TopicCommandClient(service))


@pytest.fixture
def topic() -> Topic:
    return Topic(id=1, name="AI", explanation="Artificial intelligence")


@pytest.fixture
def insight() -> Insight:
    return Insight(id=10, title="Rates", description="Bond yields", video_url="https://v")


class TestTransitions:
    def test_starts_idle(self, controller):
        assert isinstance(controller.state, Idle)

    def test_open_add_starts_with_empty_draft(self, controller):
        controller.open_add_topic()
        assert controller.state == AddingTopic(TopicDraft(name="", explanation=""))

    def test_open_edit_copies_topic_fields(self, controller, topic):
        controller.open_edit_topic(topic)
        assert controller.state == EditingTopic(1, TopicDraft(name="AI", explanation="Artificial intelligence"))

    def test_open_insight_holds_reference(self, controller, insight):
        controller.open_insight(insight)
        assert isinstance(controller.state, ViewingInsight)
        assert controller.state.insight is insight

    def test_close_returns_to_idle(self, controller):
        controller.open_add_topic()
        controller.close()
        assert isinstance(controller.state, Idle)

    def test_second_dialog_replaces_first(self, controller, insight):
        controller.open_add_topic()
        controller.update_draft(name="half typed")
        controller.open_insight(insight)

        assert isinstance(controller.state, ViewingInsight)

        controller.open_add_topic()
        assert controller.state.draft.name == ""

    def test_update_draft_while_adding(self, controller):
        controller.open_add_topic()
        controller.update_draft(name="AI")
        controller.update_draft(explanation="Machine learning")
        assert controller.state.draft == TopicDraft(name="AI", explanation="Machine learning")

    def test_update_draft_leaves_topic_untouched(self, controller, topic):
        controller.open_edit_topic(topic)
        controller.update_draft(name="AI & ML")
        assert controller.state.draft.name == "AI & ML"
        assert topic.name == "AI"

    def test_update_draft_ignored_when_idle(self, controller):
        controller.update_draft(name="x")
        assert isinstance(controller.state, Idle)


class TestConfirmAdd:
    def test_whitespace_name_issues_nothing_and_stays_open(self, controller, service):
        controller.open_add_topic()
        controller.update_draft(name="  ")

        assert controller.confirm() is None
        service.save_topics.assert_not_called()
        assert isinstance(controller.state, AddingTopic)
        assert controller.notifications.pending == []

    def test_success_closes_and_notifies(self, controller, service):
        controller.open_add_topic()
        controller.update_draft(name="AI", explanation="x")

        result = controller.confirm()

        assert result.success
        assert isinstance(controller.state, Idle)
        [note] = controller.notifications.drain()
        assert note.description == "New topic added successfully."
        assert note.variant == "default"

    def test_success_reopen_gives_empty_draft(self, controller):
        controller.open_add_topic()
        controller.update_draft(name="AI")
        controller.confirm()
        controller.open_add_topic()
        assert controller.state.draft == TopicDraft(name="", explanation="")

    def test_failure_keeps_dialog_and_draft(self, controller, service):
        service.save_topics.return_value = CommandResult.fail("conflict")
        controller.open_add_topic()
        controller.update_draft(name="AI", explanation="x")
        before = controller.state

        result = controller.confirm()

        assert result.success is False
        assert controller.state == before
        [note] = controller.notifications.drain()
        assert note.variant == "destructive"
        assert note.description == "Failed to add topic. Please try again."

    def test_rejected_call_keeps_dialog(self, controller, service):
        service.save_topics.side_effect = ConnectionError("down")
        controller.open_add_topic()
        controller.update_draft(name="AI")

        controller.confirm()

        assert isinstance(controller.state, AddingTopic)


class TestConfirmUpdate:
    def test_success_closes_edit_dialog(self, controller, service, topic):
        controller.open_edit_topic(topic)
        controller.update_draft(name="AI & ML")

        result = controller.confirm(known_ids={1})

        assert result.success
        service.update_topic.assert_called_once_with(
            1, TopicDraft(name="AI & ML", explanation="Artificial intelligence")
        )
        assert isinstance(controller.state, Idle)

    def test_unknown_topic_is_not_sent(self, controller, service, topic):
        controller.open_edit_topic(topic)
        assert controller.confirm(known_ids={2}) is None
        service.update_topic.assert_not_called()
        assert isinstance(controller.state, EditingTopic)

    def test_failure_keeps_dialog(self, controller, service, topic):
        service.update_topic.return_value = CommandResult.fail("nope")
        controller.open_edit_topic(topic)
        controller.confirm(known_ids={1})
        assert isinstance(controller.state, EditingTopic)
        assert controller.notifications.drain()[0].description == (
            "Failed to update topic. Please try again."
        )

    def test_confirm_in_detail_dialog_does_nothing(self, controller, service, insight):
        controller.open_insight(insight)
        assert controller.confirm() is None
        service.save_topics.assert_not_called()
        service.update_topic.assert_not_called()


class TestDeleteTopic:
    def test_success_notifies_without_touching_dialog(self, controller, service, insight):
        controller.open_insight(insight)
        result = controller.delete_topic(1)

        assert result.success
        service.soft_delete_topic.assert_called_once_with(1)
        assert isinstance(controller.state, ViewingInsight)
        assert controller.notifications.drain()[0].description == "Topic deleted successfully."

    def test_failure_notifies(self, controller, service):
        service.soft_delete_topic.return_value = CommandResult.fail("gone")
        controller.delete_topic(1)
        [note] = controller.notifications.drain()
        assert note.variant == "destructive"


class TestLiveness:
    def test_outcome_after_dispose_is_dropped(self, controller, service):
        controller.open_add_topic()
        controller.update_draft(name="AI")

        def dispose_mid_flight(batch):
            controller.dispose()
            return CommandResult.ok()

        service.save_topics.side_effect = dispose_mid_flight
        controller.confirm()

        assert controller.notifications.pending == []
        assert not controller.alive

    def test_actions_after_dispose_are_ignored(self, controller, service):
        controller.dispose()
        controller.open_add_topic()
        assert isinstance(controller.state, Idle)
        assert controller.delete_topic(1) is None
        service.soft_delete_topic.assert_not_called()

    def test_success_does_not_close_a_newer_dialog(self, controller, service, insight):
        controller.open_add_topic()
        controller.update_draft(name="AI")

        def user_opens_video(batch):
            controller.open_insight(insight)
            return CommandResult.ok()

        service.save_topics.side_effect = user_opens_video
        controller.confirm()

        assert isinstance(controller.state, ViewingInsight)
