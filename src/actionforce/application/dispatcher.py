"""
Application Layer - Action Dispatcher

Entry point for one host event. The dispatcher wires the pipeline:

    last message -> scan -> normalize -> order callbacks -> execute -> envelope

and guarantees the host always gets a structured envelope back: hard
failures raised while executing are logged and converted into an error
response instead of propagating.
"""

import uuid
from datetime import datetime
from typing import Any, Mapping, Union

import structlog

from actionforce.core.continuation import (
    completion_response,
    continue_response,
    failure_response,
    no_commands_response,
)
from actionforce.core.domain.commands import Command
from actionforce.core.domain.directive import (
    DEFAULT_MAX_SELF_INVOKE_MESSAGES,
    ContinuationDirective,
)
from actionforce.core.domain.models import DispatchEvent, RunState
from actionforce.core.executor import CommandExecutor
from actionforce.core.grammar.normalizer import normalize
from actionforce.core.grammar.scanner import scan
from actionforce.core.policies import order_callbacks

logger = structlog.get_logger()


def plan_commands(
    text: str, directive: ContinuationDirective, state: RunState
) -> list[Command]:
    """Scan, normalize and order the commands found in text, without running them."""
    return order_callbacks(normalize(scan(text), directive, state))


class ActionDispatcher:
    """
    Extracts commands from model output and executes them.

    Each call to ``handle`` is independent: it owns its RunState and
    ContinuationDirective, so one dispatcher can serve many events.
    """

    def __init__(
        self,
        executor: CommandExecutor,
        max_self_invoke_messages: int = DEFAULT_MAX_SELF_INVOKE_MESSAGES,
    ):
        self.executor = executor
        self.max_self_invoke_messages = max_self_invoke_messages
        self.logger = logger.bind(component="action_dispatcher")

    async def handle(
        self, event: Union[DispatchEvent, Mapping[str, Any]]
    ) -> dict[str, Any]:
        """
        Handle one host event.

        Args:
            event: A DispatchEvent or the raw host payload

        Returns:
            ``{"type": "CONTINUE"}`` when the last message holds no command,
            otherwise a ``data``/``error`` envelope merged with ``_meta_actions``
        """
        if not isinstance(event, DispatchEvent):
            event = DispatchEvent.from_dict(event)

        run_id = uuid.uuid4().hex[:12]
        log = self.logger.bind(run_id=run_id, chat_id=event.chat_id)
        start_time = datetime.now()

        text = event.last_content
        matches = scan(text)
        if not matches:
            log.debug("dispatch.no_match")
            return continue_response()

        directive = ContinuationDirective.for_conversation(
            event.message_count, self.max_self_invoke_messages
        )
        state = RunState(auto_continue_disabled=directive.exceeded)

        commands = order_callbacks(normalize(matches, directive, state))
        if not commands:
            log.info("dispatch.no_commands", matches=len(matches))
            return no_commands_response(directive)

        log.info(
            "dispatch.started",
            commands=[c.kind.value for c in commands],
            message_count=event.message_count,
            meta_actions=directive.actions,
        )

        try:
            await self.executor.execute(commands, event, state, directive)
        except Exception as e:
            log.error(
                "dispatch.failed",
                error=str(e),
                error_type=type(e).__name__,
                completed=len(state.results),
            )
            return failure_response(e, state, directive)

        response = completion_response(state, directive)
        log.info(
            "dispatch.completed",
            success=state.all_successful,
            results=len(state.results),
            meta_actions=directive.actions,
            duration_seconds=(datetime.now() - start_time).total_seconds(),
        )
        return response
