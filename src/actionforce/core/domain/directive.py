"""
Continuation Directive

Flags telling the host whether to invoke the language model again after a
dispatch. One directive is created per incoming event, threaded through the
normalizer and executor by reference, and serialized into the response.
"""

from dataclasses import dataclass, field
from typing import Any

REQUEST_CHAT_MODEL = "REQUEST_CHAT_MODEL"
REQUEST_CHAT_MODEL_EXCEEDED = "REQUEST_CHAT_MODEL_EXCEEDED"

DEFAULT_MAX_SELF_INVOKE_MESSAGES = 50


@dataclass
class ContinuationDirective:
    """
    Mutable set of continuation flags for one invocation.

    Attributes:
        actions: Ordered flag list, serialized as ``_meta_actions``
    """

    actions: list[str] = field(default_factory=list)

    @classmethod
    def for_conversation(
        cls,
        message_count: int,
        max_self_invoke_messages: int = DEFAULT_MAX_SELF_INVOKE_MESSAGES,
    ) -> "ContinuationDirective":
        """
        Pre-seed the directive from the conversation length.

        Long conversations get the exceeded flag instead of the automatic
        re-invoke flag, which disables self-invocation for the whole run.
        """
        if message_count > max_self_invoke_messages:
            return cls(actions=[REQUEST_CHAT_MODEL_EXCEEDED])
        return cls(actions=[REQUEST_CHAT_MODEL])

    @property
    def exceeded(self) -> bool:
        return REQUEST_CHAT_MODEL_EXCEEDED in self.actions

    def request_model_turn(self) -> None:
        if REQUEST_CHAT_MODEL not in self.actions:
            self.actions.append(REQUEST_CHAT_MODEL)

    def cancel_model_turn(self) -> None:
        self.actions = [a for a in self.actions if a != REQUEST_CHAT_MODEL]

    def force_single_turn(self) -> None:
        """Replace every flag with exactly one re-invoke request."""
        self.actions = [REQUEST_CHAT_MODEL]

    def to_dict(self) -> dict[str, Any]:
        return {"_meta_actions": list(self.actions)}
