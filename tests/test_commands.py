"""Tests for core/commands.py - validation and result normalisation."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from core.commands import TopicCommandClient
from core.models import CommandResult, TopicDraft


@pytest.fixture
def service() -> MagicMock:
    mock = MagicMock()
    mock.save_topics.return_value = CommandResult.ok()
    mock.update_topic.return_value = CommandResult.ok()
    mock.soft_delete_topic.return_value = CommandResult.ok()
    return mock


@pytest.fixture
def client(service) -> TopicCommandClient:
    return TopicCommandClient(service)


class TestAddTopic:
    def test_blank_name_issues_nothing(self, client, service):
        assert client.add_topic(TopicDraft(name="  ")) is None
        service.save_topics.assert_not_called()

    def test_sends_single_element_batch(self, client, service):
        draft = TopicDraft(name="AI", explanation="Artificial intelligence")
        result = client.add_topic(draft)

        assert result.success
        (batch,), _ = service.save_topics.call_args
        assert batch == [draft]

    def test_batch_is_a_copy_of_the_draft(self, client, service):
        draft = TopicDraft(name="AI")
        client.add_topic(draft)
        (batch,), _ = service.save_topics.call_args
        assert batch[0] is not draft

    def test_failure_result_passes_through(self, client, service):
        service.save_topics.return_value = CommandResult.fail("duplicate")
        result = client.add_topic(TopicDraft(name="AI"))
        assert result == CommandResult(success=False, message="duplicate")

    def test_raised_error_becomes_failure(self, client, service):
        service.save_topics.side_effect = ConnectionError("network down")
        result = client.add_topic(TopicDraft(name="AI"))
        assert result.success is False
        assert result.message == "network down"

    def test_mapping_result_is_validated(self, client, service):
        service.save_topics.return_value = {"success": True}
        assert client.add_topic(TopicDraft(name="AI")) == CommandResult(success=True)

    def test_garbage_result_is_failure(self, client, service):
        service.save_topics.return_value = "ok"
        result = client.add_topic(TopicDraft(name="AI"))
        assert result.success is False

    def test_no_automatic_retry(self, client, service):
        service.save_topics.side_effect = TimeoutError()
        client.add_topic(TopicDraft(name="AI"))
        assert service.save_topics.call_count == 1


class TestUpdateTopic:
    def test_blank_name_issues_nothing(self, client, service):
        assert client.update_topic(1, TopicDraft(name="")) is None
        service.update_topic.assert_not_called()

    def test_unknown_id_issues_nothing(self, client, service):
        assert client.update_topic(7, TopicDraft(name="AI"), known_ids={1, 2}) is None
        service.update_topic.assert_not_called()

    def test_known_id_is_sent(self, client, service):
        patch = TopicDraft(name="AI & ML", explanation="")
        result = client.update_topic(1, patch, known_ids={1})

        assert result.success
        service.update_topic.assert_called_once_with(1, patch)

    def test_without_known_ids_is_sent(self, client, service):
        client.update_topic(5, TopicDraft(name="Rates"))
        service.update_topic.assert_called_once()


class TestSoftDeleteTopic:
    def test_issued_immediately(self, client, service):
        result = client.soft_delete_topic(3)
        assert result.success
        service.soft_delete_topic.assert_called_once_with(3)

    def test_raised_error_becomes_failure(self, client, service):
        service.soft_delete_topic.side_effect = RuntimeError()
        result = client.soft_delete_topic(3)
        assert result.success is False
        assert result.message == "RuntimeError"
