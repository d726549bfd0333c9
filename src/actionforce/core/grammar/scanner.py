"""
Block Scanner

Single-pass scanner that finds every command block in a model message, in
document order. Three alternatives are tried at each position, first one
wins:

1. ``writeFile <path> ```<lang> <content> ``` ``
2. ``` ``javascript <content> `` ```
3. ``name(arg)`` or ``/name(arg)`` for the known command names

Each hit becomes a typed match so the normalizer never has to guess which
alternative fired.
"""

import re
from dataclasses import dataclass
from typing import Union

from actionforce.core.domain.commands import NAMED_COMMAND_KINDS

_WRITE_FILE = (
    r"writeFile\s+(?P<path>[^\s]+)\s*```(?P<language>\w+)\s*(?P<content>[\s\S]*?)```"
)
_SCRIPT = r"``javascript\s*(?P<script>[\s\S]*?)\s*``"
_COMMAND = r"/?(?P<name>{names})\((?P<argument>[^()]*)\)".format(
    names="|".join(kind.value for kind in NAMED_COMMAND_KINDS)
)

BATCH_PATTERN = re.compile(f"(?:{_WRITE_FILE}|{_SCRIPT}|{_COMMAND})")


@dataclass(frozen=True)
class WriteFileMatch:
    path: str
    language: str
    content: str
    raw: str


@dataclass(frozen=True)
class ScriptMatch:
    content: str
    raw: str


@dataclass(frozen=True)
class CommandMatch:
    name: str
    argument: str
    raw: str


ScanMatch = Union[WriteFileMatch, ScriptMatch, CommandMatch]


def _to_match(m: "re.Match[str]") -> ScanMatch:
    if m.group("path") is not None:
        return WriteFileMatch(
            path=m.group("path"),
            language=m.group("language"),
            content=m.group("content"),
            raw=m.group(0),
        )
    if m.group("script") is not None:
        return ScriptMatch(content=m.group("script"), raw=m.group(0))
    return CommandMatch(
        name=m.group("name"),
        argument=m.group("argument"),
        raw=m.group(0),
    )


def scan(text: str) -> list[ScanMatch]:
    """
    Find all command blocks in ``text``.

    Args:
        text: Content of the latest model message

    Returns:
        Typed matches in source order (empty when nothing is recognized)
    """
    if not text:
        return []
    return [_to_match(m) for m in BATCH_PATTERN.finditer(text)]
