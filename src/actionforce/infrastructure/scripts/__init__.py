"""Script sandbox adapters."""

from actionforce.infrastructure.scripts.node_runner import NodeScriptRunner

__all__ = ["NodeScriptRunner"]
