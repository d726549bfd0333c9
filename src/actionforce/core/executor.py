"""
Command Executor

Runs normalized commands strictly in order against the backends and
records one ResultRecord per command. metaAction, jobCompleted and
jobFailed are terminal: nothing after them in the batch runs.

Soft failures (non-OK write, no search results, unreadable page, lazy
output) are recorded and the batch continues. Exceptions raised by a
backend are not caught here; they abort the batch and are handled by the
dispatcher.
"""

import asyncio
from typing import Any, Awaitable, Callable, Mapping, Optional, Sequence

import structlog

from actionforce.core.domain.commands import (
    EXECUTE_AND_CALLBACK,
    EXECUTE_AND_WAIT,
    TERMINAL_KINDS,
    Command,
    CommandKind,
    NamedCommand,
    ScriptCommand,
    WriteFileCommand,
)
from actionforce.core.domain.directive import ContinuationDirective
from actionforce.core.domain.models import DispatchEvent, ResultRecord, RunState
from actionforce.core.interfaces.backends import (
    HostCapabilitiesProtocol,
    ScriptRunnerProtocol,
    SearchClientProtocol,
    SiteClientProtocol,
)
from actionforce.core.policies import detect_lazy_output, lazy_output_message

HANDLER_EXPORT = "module.exports"
HANDLER_EXPORT_STATEMENT = "\nmodule.exports = { handler };"

DEFAULT_WEBPAGE_MAX_CHARS = 5000

JOB_ICONS = {
    CommandKind.JOB_COMPLETED: "\U0001f7e2",
    CommandKind.JOB_FAILED: "\U0001f534",
}


def interpolate_secrets(source: str, secrets: Mapping[str, str]) -> str:
    """Replace configured secret placeholders; unknown ones stay verbatim."""
    for placeholder, value in secrets.items():
        source = source.replace(placeholder, value)
    return source


def map_search_items(items: Optional[Sequence[dict[str, Any]]]) -> Optional[list[dict[str, Any]]]:
    """Reduce Custom Search items to title, link, snippet and og:image."""
    if items is None:
        return None
    mapped = []
    for item in items:
        metatags = (item.get("pagemap") or {}).get("metatags") or [{}]
        first_tags = metatags[0] if isinstance(metatags[0], dict) else {}
        mapped.append(
            {
                "title": item.get("title"),
                "link": item.get("link"),
                "snippet": item.get("snippet"),
                "image": first_tags.get("og:image", item.get("image")),
            }
        )
    return mapped


class CommandExecutor:
    """
    Sequential executor for one batch of commands.

    The executor is stateless between calls; per-call state lives in the
    RunState and ContinuationDirective passed to ``execute``.
    """

    def __init__(
        self,
        site: SiteClientProtocol,
        host: HostCapabilitiesProtocol,
        script_runner: ScriptRunnerProtocol,
        search_client: Optional[SearchClientProtocol] = None,
        secrets: Optional[Mapping[str, str]] = None,
        webpage_max_chars: int = DEFAULT_WEBPAGE_MAX_CHARS,
    ):
        """
        Args:
            site: Receives file writes and job callbacks
            host: Host platform capabilities (encrypt, chat, search, pages)
            script_runner: Sandbox for javascript blocks
            search_client: Direct search API; searches go through the host when None
            secrets: Placeholder -> value map interpolated into scripts
            webpage_max_chars: Truncation limit for extracted page text
        """
        self.site = site
        self.host = host
        self.script_runner = script_runner
        self.search_client = search_client
        self.secrets = dict(secrets or {})
        self.webpage_max_chars = webpage_max_chars
        self.logger = structlog.get_logger().bind(component="command_executor")

        self._handlers: dict[CommandKind, Callable[..., Awaitable[None]]] = {
            CommandKind.WRITE_FILE: self._write_file,
            CommandKind.JAVASCRIPT: self._run_script,
            CommandKind.GOOGLE_SEARCH: self._google_search,
            CommandKind.WEBPAGE_TO_TEXT: self._webpage_to_text,
            CommandKind.VIEW_IMAGE: self._view_image,
            CommandKind.SUGGESTION: self._suggestion,
            CommandKind.META_ACTION: self._meta_action,
            CommandKind.JOB_COMPLETED: self._job_finished,
            CommandKind.JOB_FAILED: self._job_finished,
        }

    async def execute(
        self,
        commands: Sequence[Command],
        event: DispatchEvent,
        state: RunState,
        directive: ContinuationDirective,
    ) -> RunState:
        """
        Execute commands in order until the batch ends or a terminal command ran.

        Args:
            commands: Ordered, normalized commands
            event: The event being handled (for the chat id)
            state: Run state receiving the result records
            directive: Continuation flags, mutated by metaAction

        Returns:
            The same RunState, filled in
        """
        for command in commands:
            if state.stopped:
                break

            if isinstance(command, WriteFileCommand) and detect_lazy_output(command.content):
                self.logger.warning("command.lazy_output", path=command.path)
                state.record(
                    ResultRecord(
                        type=command.kind.value,
                        path=command.path,
                        success=False,
                        error=lazy_output_message(command.path),
                    )
                )
                continue

            if command.kind in TERMINAL_KINDS:
                state.stopped = True

            handler = self._handlers[command.kind]
            self.logger.info("command.started", type=command.kind.value)
            await handler(command, event, state, directive)
            self.logger.info(
                "command.completed",
                type=command.kind.value,
                success=state.results[-1].success if state.results else None,
            )

        return state

    async def _write_file(
        self,
        command: WriteFileCommand,
        event: DispatchEvent,
        state: RunState,
        directive: ContinuationDirective,
    ) -> None:
        status = await self.site.write_file(command.path, command.content)
        state.record(
            ResultRecord(
                type=command.kind.value,
                path=command.path,
                language=command.language,
                success=status == 200,
            )
        )

    async def _run_script(
        self,
        command: ScriptCommand,
        event: DispatchEvent,
        state: RunState,
        directive: ContinuationDirective,
    ) -> None:
        source = interpolate_secrets(command.content, self.secrets)
        if HANDLER_EXPORT not in source:
            source += HANDLER_EXPORT_STATEMENT

        data = await self.script_runner.run(source)
        failed = isinstance(data, dict) and bool(data.get("error"))
        state.record(ResultRecord(type=command.kind.value, success=not failed, data=data))

    async def _google_search(
        self,
        command: NamedCommand,
        event: DispatchEvent,
        state: RunState,
        directive: ContinuationDirective,
    ) -> None:
        query = command.argument.as_text()
        if self.search_client is None:
            items = await self.host.google_search(query, {"q": query})
        else:
            items = await self.search_client.search(query)

        data = map_search_items(items)
        state.record(
            ResultRecord(
                type=command.kind.value,
                success=bool(data),
                data=data or {"error": "No results found"},
            )
        )

    async def _webpage_to_text(
        self,
        command: NamedCommand,
        event: DispatchEvent,
        state: RunState,
        directive: ContinuationDirective,
    ) -> None:
        response = await self.host.webpage_to_text(command.argument.as_text())
        if response and isinstance(response.get("content"), str):
            response = {**response, "content": response["content"][: self.webpage_max_chars]}

        has_url = bool(response and response.get("url"))
        state.record(
            ResultRecord(
                type=command.kind.value,
                success=has_url,
                data=response if has_url else {"error": "Unable to read website"},
            )
        )

    async def _view_image(
        self,
        command: NamedCommand,
        event: DispatchEvent,
        state: RunState,
        directive: ContinuationDirective,
    ) -> None:
        url = command.argument.as_text()
        state.record(
            ResultRecord(
                type=command.kind.value,
                success=True,
                data=[
                    {"type": "text", "text": f"Image URL: {url}"},
                    {"type": "image_url", "image_url": {"url": url}},
                ],
            )
        )

    async def _suggestion(
        self,
        command: NamedCommand,
        event: DispatchEvent,
        state: RunState,
        directive: ContinuationDirective,
    ) -> None:
        # Continuation was already disabled while normalizing
        state.record(
            ResultRecord(type=command.kind.value, success=True, data=command.argument.value)
        )

    async def _meta_action(
        self,
        command: NamedCommand,
        event: DispatchEvent,
        state: RunState,
        directive: ContinuationDirective,
    ) -> None:
        if command.argument.equals_token(EXECUTE_AND_CALLBACK):
            if not state.auto_continue_disabled:
                directive.request_model_turn()
        elif command.argument.equals_token(EXECUTE_AND_WAIT):
            directive.cancel_model_turn()

        state.record(
            ResultRecord(type=command.kind.value, success=True, data=command.argument.value)
        )

    async def _job_finished(
        self,
        command: NamedCommand,
        event: DispatchEvent,
        state: RunState,
        directive: ContinuationDirective,
    ) -> None:
        argument = command.argument
        if argument.is_structured and isinstance(argument.value, dict):
            post_id = argument.get("post_id")
            message = argument.get("message") or ""
        else:
            post_id = None
            message = argument.as_text()

        encrypted_title = await self.host.encrypt(message)

        notifications = [
            self.host.update_chat(
                title=encrypted_title,
                chat_icon=JOB_ICONS[command.kind],
                chat_id=event.chat_id,
            )
        ]
        if post_id:
            notifications.append(self.site.notify_job_finished(post_id, message))

        await asyncio.gather(*notifications)
        self.logger.info("job.finished", type=command.kind.value, post_id=post_id)
        state.record(ResultRecord(type=command.kind.value, success=True, data=argument.value))
