"""
Core Domain Models

Input event, per-command result records and the per-invocation run state.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional


@dataclass(frozen=True)
class Message:
    """A single chat message as delivered by the host."""

    role: str
    content: str


@dataclass(frozen=True)
class DispatchEvent:
    """
    Incoming event from the chat host.

    Attributes:
        messages: Conversation so far; only the last message is scanned
        chat_id: Identifier of the chat the event belongs to
    """

    messages: tuple[Message, ...]
    chat_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DispatchEvent":
        """
        Build an event from the host payload.

        Accepts ``{"payload": {"messages": [...], "chatId": ...}}`` as sent by
        the host, or the inner mapping directly.
        """
        payload = data.get("payload") or data
        messages = tuple(
            Message(role=m.get("role", "assistant"), content=m.get("content") or "")
            for m in payload.get("messages", [])
        )
        return cls(messages=messages, chat_id=payload.get("chatId"))

    @classmethod
    def from_text(cls, text: str, chat_id: Optional[str] = None) -> "DispatchEvent":
        return cls(messages=(Message(role="assistant", content=text),), chat_id=chat_id)

    @property
    def message_count(self) -> int:
        return len(self.messages)

    @property
    def last_content(self) -> str:
        if not self.messages:
            return ""
        return self.messages[-1].content


@dataclass(frozen=True)
class ResultRecord:
    """
    Outcome of one processed command.

    Attributes:
        type: Command kind value (writeFile, googleSearch, ...)
        success: Whether the command succeeded
        data: Payload returned by the backend, if any
        error: Diagnostic for validation failures
        path: Target path (writeFile only)
        language: Fence language (writeFile only)
    """

    type: str
    success: bool
    data: Any = None
    error: Optional[str] = None
    path: Optional[str] = None
    language: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"type": self.type}
        if self.path is not None:
            result["path"] = self.path
        if self.language is not None:
            result["language"] = self.language
        result["success"] = self.success
        if self.error is not None:
            result["error"] = self.error
        if self.data is not None:
            result["data"] = self.data
        return result


@dataclass
class RunState:
    """
    Mutable state of a single dispatch call.

    Attributes:
        results: Result records in processing order
        stopped: Set once a terminal command has run
        auto_continue_disabled: Suppresses forced re-invocation on failure
    """

    results: list[ResultRecord] = field(default_factory=list)
    stopped: bool = False
    auto_continue_disabled: bool = False

    def record(self, result: ResultRecord) -> None:
        self.results.append(result)

    @property
    def all_successful(self) -> bool:
        return all(r.success for r in self.results)

    def results_as_dicts(self) -> list[dict[str, Any]]:
        return [r.to_dict() for r in self.results]
