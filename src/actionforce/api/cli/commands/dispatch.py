"""Dispatch commands - run or preview the commands in a model message."""

import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import typer

from actionforce.api.cli.output_formatter import OutputFormat, OutputFormatter
from actionforce.application.dispatcher import plan_commands
from actionforce.application.factory import DispatcherFactory
from actionforce.core.domain.commands import describe_command
from actionforce.core.domain.directive import ContinuationDirective
from actionforce.core.domain.models import DispatchEvent, RunState


def _read_input(source: Optional[Path]) -> str:
    if source is None or str(source) == "-":
        return sys.stdin.read()
    if not source.exists():
        raise typer.BadParameter(f"File not found: {source}")
    return source.read_text(encoding="utf-8")


def _build_event(text: str, as_event: bool, chat_id: Optional[str]) -> DispatchEvent:
    if not as_event:
        return DispatchEvent.from_text(text, chat_id=chat_id)
    try:
        payload: Dict[str, Any] = json.loads(text)
    except json.JSONDecodeError as e:
        raise typer.BadParameter(f"Event is not valid JSON: {e}")
    return DispatchEvent.from_dict(payload)


def dispatch(
    ctx: typer.Context,
    source: Optional[Path] = typer.Argument(
        None, help="File holding the model message (reads stdin when omitted)"
    ),
    as_event: bool = typer.Option(
        False, "--event", "-e", help="Treat the input as a full host event JSON"
    ),
    chat_id: Optional[str] = typer.Option(None, "--chat-id", help="Chat id for job updates"),
    output_format: OutputFormat = typer.Option(
        OutputFormat.TABLE, "--output", "-o", help="Output format"
    ),
):
    """Execute every command found in a model message.

    Examples:
        actionforce dispatch reply.md
        cat event.json | actionforce dispatch --event -o json
    """
    global_opts = ctx.obj or {}
    event = _build_event(_read_input(source), as_event, chat_id)

    factory = DispatcherFactory(config_dir=global_opts.get("config_dir", "configs"))
    dispatcher = factory.create_dispatcher(profile=global_opts.get("profile", "dev"))

    envelope = asyncio.run(dispatcher.handle(event))
    OutputFormatter.format_envelope(envelope, output_format)

    if "error" in envelope or "error" in (envelope.get("data") or {}):
        raise typer.Exit(code=1)


def scan(
    source: Optional[Path] = typer.Argument(
        None, help="File holding the model message (reads stdin when omitted)"
    ),
    message_count: int = typer.Option(
        1, "--messages", "-m", help="Conversation length used to seed continuation"
    ),
):
    """Show the commands a dispatch would run, without calling any backend."""
    text = _read_input(source)
    directive = ContinuationDirective.for_conversation(message_count)
    state = RunState(auto_continue_disabled=directive.exceeded)

    commands = plan_commands(text, directive, state)
    OutputFormatter.format_plan([describe_command(c) for c in commands], directive.actions)
