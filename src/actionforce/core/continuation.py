"""
Continuation Controller

Builds the response envelope returned to the host and applies the final
continuation rules: any failure forces exactly one model re-invocation,
unless automatic continuation is disabled for this run.
"""

from typing import Any

from actionforce.core.domain.directive import ContinuationDirective
from actionforce.core.domain.errors import error_payload
from actionforce.core.domain.models import RunState

CONTINUE_RESPONSE = {"type": "CONTINUE"}

SUCCESS_MESSAGE = "All operations completed successfully"
FAILURE_MESSAGE = "Some operations failed"
NO_COMMANDS_MESSAGE = "No valid blocks or commands found"


def continue_response() -> dict[str, Any]:
    return dict(CONTINUE_RESPONSE)


def no_commands_response(directive: ContinuationDirective) -> dict[str, Any]:
    return {"error": NO_COMMANDS_MESSAGE, **directive.to_dict()}


def completion_response(state: RunState, directive: ContinuationDirective) -> dict[str, Any]:
    """Envelope for a batch that ran to the end or to a terminal command."""
    results = state.results_as_dicts()
    if state.all_successful:
        return {
            "data": {"message": SUCCESS_MESSAGE, "results": results},
            **directive.to_dict(),
        }

    if not state.auto_continue_disabled:
        directive.force_single_turn()
    return {
        "data": {"error": FAILURE_MESSAGE, "results": results},
        **directive.to_dict(),
    }


def failure_response(
    exc: Exception, state: RunState, directive: ContinuationDirective
) -> dict[str, Any]:
    """Envelope for a batch aborted by an exception."""
    if not state.auto_continue_disabled:
        directive.force_single_turn()
    return {"error": error_payload(exc), **directive.to_dict()}
