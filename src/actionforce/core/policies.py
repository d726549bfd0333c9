"""
Command policies applied between normalization and execution.

- Callback ordering: only the last ``metaAction(execute_and_callback)``
  survives, and it runs last.
- Lazy-output guard: writeFile content with elision comments
  (``// ...``, ``// same as before``) is never persisted.
"""

from typing import Sequence

from actionforce.core.domain.commands import Command, NamedCommand

LAZY_COMMENT_MARKER = "//"
LAZY_PATTERNS = ("...", "same")


def order_callbacks(commands: Sequence[Command]) -> list[Command]:
    """
    Move the final execute_and_callback request to the end of the batch.

    All earlier occurrences are dropped; other commands keep their
    relative order.
    """
    last_callback = None
    for command in commands:
        if isinstance(command, NamedCommand) and command.is_callback_request():
            last_callback = command

    ordered = [
        c
        for c in commands
        if not (isinstance(c, NamedCommand) and c.is_callback_request())
    ]
    if last_callback is not None:
        ordered.append(last_callback)
    return ordered


def detect_lazy_output(text: str) -> bool:
    """Return True if any line is a comment eliding part of the source."""
    for line in text.split("\n"):
        stripped = line.strip()
        if not stripped.startswith(LAZY_COMMENT_MARKER):
            continue
        comment = stripped[len(LAZY_COMMENT_MARKER):].strip().lower()
        if any(pattern in comment for pattern in LAZY_PATTERNS):
            return True
    return False


def lazy_output_message(path: str) -> str:
    return (
        "Lazy comment detected in writeFile block, please provide complete "
        f"source code for path: {path}"
    )
