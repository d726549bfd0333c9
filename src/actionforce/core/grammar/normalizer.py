"""
Block Normalizer

Turns scanner matches into command records. Argument parsing is best
effort: one layer of double quotes is removed, then a JSON parse is
attempted; when that fails the trimmed text is kept as-is.
"""

import json
from typing import Iterable, Optional

import structlog

from actionforce.core.domain.commands import (
    Command,
    CommandArgument,
    CommandKind,
    NamedCommand,
    ScriptCommand,
    WriteFileCommand,
)
from actionforce.core.domain.directive import ContinuationDirective
from actionforce.core.domain.models import RunState
from actionforce.core.grammar.scanner import CommandMatch, ScanMatch, ScriptMatch, WriteFileMatch

logger = structlog.get_logger().bind(component="normalizer")


def _reject_constant(name: str) -> None:
    raise ValueError(f"Non-standard JSON constant: {name}")


def parse_argument(raw: Optional[str]) -> CommandArgument:
    """
    Interpret the text between the parentheses of a named command.

    Args:
        raw: Captured argument text

    Returns:
        A structured argument when the (unquoted) text is valid JSON,
        otherwise a text argument holding the trimmed string
    """
    text = raw or ""
    if text.startswith('"') and text.endswith('"'):
        text = text[1:-1]

    try:
        return CommandArgument.structured(json.loads(text, parse_constant=_reject_constant))
    except (ValueError, RecursionError):
        return CommandArgument.text(text.strip())


def normalize_match(match: ScanMatch) -> Optional[Command]:
    """
    Build the command record for one match.

    Returns None for matches whose required fields are empty, e.g. a
    writeFile block with no content.
    """
    if isinstance(match, WriteFileMatch):
        if match.path and match.language and match.content:
            return WriteFileCommand(
                path=match.path.strip(),
                language=match.language.strip(),
                content=match.content.strip(),
            )
        return None

    if isinstance(match, ScriptMatch):
        if match.content:
            return ScriptCommand(content=match.content.strip())
        return None

    if isinstance(match, CommandMatch) and match.name:
        return NamedCommand(
            name=CommandKind(match.name), argument=parse_argument(match.argument)
        )
    return None


def normalize(
    matches: Iterable[ScanMatch],
    directive: ContinuationDirective,
    state: RunState,
) -> list[Command]:
    """
    Normalize all matches in order.

    A suggestion needs a human answer, so it cancels any pending model
    re-invocation and disables automatic continuation for the run.
    """
    commands: list[Command] = []
    for match in matches:
        command = normalize_match(match)
        if command is None:
            # TODO: report unrecognized blocks back to the model instead of dropping them
            logger.debug("match.dropped", raw=match.raw[:80])
            continue

        if command.kind is CommandKind.SUGGESTION:
            directive.cancel_model_turn()
            state.auto_continue_disabled = True

        commands.append(command)
    return commands
