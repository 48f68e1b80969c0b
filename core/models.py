"""
Pydantic models shared across the Insight Board core.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict


class Insight(BaseModel):
    """A video-based content card. Read-only from the page's point of view."""

    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    description: str = ""
    thumbnail: str = ""
    video_url: str = ""
    youtube_url: str = ""


class TopicDraft(BaseModel):
    """The editable fields of a topic, with no identifier."""

    name: str = ""
    explanation: str = ""


class Topic(BaseModel):
    """A topic subscription as pushed by the data service."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    explanation: str = ""

    def to_draft(self) -> TopicDraft:
        return TopicDraft(name=self.name, explanation=self.explanation)


class CommandResult(BaseModel):
    """Acknowledgement returned by every mutating command."""

    success: bool
    message: Optional[str] = None

    @classmethod
    def ok(cls, message: Optional[str] = None) -> "CommandResult":
        return cls(success=True, message=message)

    @classmethod
    def fail(cls, message: str) -> "CommandResult":
        return cls(success=False, message=message)


class Notification(BaseModel):
    """A non-blocking toast shown to the user."""

    title: str
    description: str
    variant: Literal["default", "destructive"] = "default"
