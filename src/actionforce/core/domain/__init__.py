"""Domain models for command dispatch."""

from actionforce.core.domain.commands import (
    ArgumentKind,
    Command,
    CommandArgument,
    CommandKind,
    NamedCommand,
    ScriptCommand,
    WriteFileCommand,
)
from actionforce.core.domain.directive import ContinuationDirective
from actionforce.core.domain.models import DispatchEvent, Message, ResultRecord, RunState

__all__ = [
    "ArgumentKind",
    "Command",
    "CommandArgument",
    "CommandKind",
    "ContinuationDirective",
    "DispatchEvent",
    "Message",
    "NamedCommand",
    "ResultRecord",
    "RunState",
    "ScriptCommand",
    "WriteFileCommand",
]
