"""
Command Records

This module defines the typed command records produced by the normalizer.
A command record represents one instruction found in model output:
- WriteFileCommand: persist fenced content to a path on the site
- ScriptCommand: run an inline javascript handler in the sandbox
- NamedCommand: any single-argument command (googleSearch, metaAction, ...)

Records are immutable; the executor consumes each one exactly once.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union


class CommandKind(str, Enum):
    """Closed set of command kinds understood by the dispatcher."""

    WRITE_FILE = "writeFile"
    JAVASCRIPT = "javascript"
    GOOGLE_SEARCH = "googleSearch"
    WEBPAGE_TO_TEXT = "webpageToText"
    VIEW_IMAGE = "viewImage"
    META_ACTION = "metaAction"
    SUGGESTION = "suggestion"
    JOB_COMPLETED = "jobCompleted"
    JOB_FAILED = "jobFailed"


# Kinds that may appear as name(arg) in model output
NAMED_COMMAND_KINDS = (
    CommandKind.GOOGLE_SEARCH,
    CommandKind.WEBPAGE_TO_TEXT,
    CommandKind.VIEW_IMAGE,
    CommandKind.META_ACTION,
    CommandKind.SUGGESTION,
    CommandKind.JOB_COMPLETED,
    CommandKind.JOB_FAILED,
)

# After one of these runs, the rest of the batch is skipped
TERMINAL_KINDS = frozenset(
    {CommandKind.META_ACTION, CommandKind.JOB_COMPLETED, CommandKind.JOB_FAILED}
)

EXECUTE_AND_CALLBACK = "execute_and_callback"
EXECUTE_AND_WAIT = "execute_and_wait"


class ArgumentKind(str, Enum):
    """How a command argument was interpreted."""

    TEXT = "text"
    JSON = "json"


@dataclass(frozen=True)
class CommandArgument:
    """
    Argument of a named command.

    Either the trimmed raw text, or the value obtained from a successful
    JSON parse. The kind records which of the two applies.

    Attributes:
        kind: TEXT when JSON parsing failed, JSON otherwise
        value: The trimmed string (TEXT) or the decoded JSON value (JSON)
    """

    kind: ArgumentKind
    value: Any

    @classmethod
    def text(cls, value: str) -> "CommandArgument":
        return cls(kind=ArgumentKind.TEXT, value=value)

    @classmethod
    def structured(cls, value: Any) -> "CommandArgument":
        return cls(kind=ArgumentKind.JSON, value=value)

    @property
    def is_structured(self) -> bool:
        return self.kind is ArgumentKind.JSON

    def as_text(self) -> str:
        """Render the argument as a string (JSON values are re-encoded)."""
        if self.kind is ArgumentKind.TEXT:
            return self.value
        if isinstance(self.value, str):
            return self.value
        return json.dumps(self.value, ensure_ascii=False)

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a field of a structured object argument."""
        if self.is_structured and isinstance(self.value, dict):
            return self.value.get(key, default)
        return default

    def equals_token(self, token: str) -> bool:
        """True when the argument is the string token, quoted or not."""
        return isinstance(self.value, str) and self.value == token


@dataclass(frozen=True)
class WriteFileCommand:
    """Write fenced content to a path on the remote site."""

    path: str
    language: str
    content: str

    @property
    def kind(self) -> CommandKind:
        return CommandKind.WRITE_FILE


@dataclass(frozen=True)
class ScriptCommand:
    """Inline javascript whose exported handler is executed in the sandbox."""

    content: str

    @property
    def kind(self) -> CommandKind:
        return CommandKind.JAVASCRIPT


@dataclass(frozen=True)
class NamedCommand:
    """A single-argument command such as googleSearch("query")."""

    name: CommandKind
    argument: CommandArgument

    @property
    def kind(self) -> CommandKind:
        return self.name

    def is_callback_request(self) -> bool:
        return self.name is CommandKind.META_ACTION and self.argument.equals_token(
            EXECUTE_AND_CALLBACK
        )


Command = Union[WriteFileCommand, ScriptCommand, NamedCommand]


def describe_command(command: Command) -> dict[str, Any]:
    """Summarize a command for logs and the CLI dry run."""
    if isinstance(command, WriteFileCommand):
        return {
            "type": command.kind.value,
            "target": command.path,
            "detail": f"{command.language}, {len(command.content)} chars",
        }
    if isinstance(command, ScriptCommand):
        return {
            "type": command.kind.value,
            "target": "",
            "detail": f"{len(command.content)} chars",
        }
    return {
        "type": command.kind.value,
        "target": command.argument.as_text(),
        "detail": command.argument.kind.value,
    }
