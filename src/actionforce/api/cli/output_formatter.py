"""
Output formatting for the CLI.
"""

from enum import Enum
from typing import Any, Dict, List

import yaml
from rich.console import Console
from rich.json import JSON
from rich.table import Table

console = Console()


class OutputFormat(str, Enum):
    """Available output formats."""
    TABLE = "table"
    JSON = "json"
    YAML = "yaml"


class OutputFormatter:
    """Renders dispatch envelopes and command plans."""

    @staticmethod
    def format_envelope(envelope: Dict[str, Any], format_type: OutputFormat) -> None:
        """Show a dispatcher response."""
        if format_type == OutputFormat.YAML:
            console.print(yaml.dump(envelope, default_flow_style=False, indent=2, allow_unicode=True))
            return
        if format_type == OutputFormat.JSON:
            console.print(JSON.from_data(envelope))
            return

        data = envelope.get("data") or {}
        results = data.get("results")
        if not results:
            console.print(JSON.from_data(envelope))
            return

        table = Table(title=data.get("message") or data.get("error"))
        table.add_column("#", style="dim")
        table.add_column("Type", style="cyan", no_wrap=True)
        table.add_column("Status", style="yellow")
        table.add_column("Detail", style="white")
        for index, result in enumerate(results, start=1):
            status = "[green]ok[/green]" if result.get("success") else "[red]failed[/red]"
            detail = result.get("error") or result.get("path") or str(result.get("data", ""))
            if len(detail) > 60:
                detail = detail[:57] + "..."
            table.add_row(str(index), result.get("type", ""), status, detail)
        console.print(table)
        console.print(f"[bold]meta actions:[/bold] {envelope.get('_meta_actions', [])}")

    @staticmethod
    def format_plan(commands: List[Dict[str, Any]], meta_actions: List[str]) -> None:
        """Show the ordered commands a dispatch would execute."""
        if not commands:
            console.print("[yellow]No commands found[/yellow]")
            return

        table = Table(title="Planned Commands")
        table.add_column("#", style="dim")
        table.add_column("Type", style="cyan", no_wrap=True)
        table.add_column("Target", style="green")
        table.add_column("Detail", style="white")
        for index, command in enumerate(commands, start=1):
            target = command.get("target", "")
            if len(target) > 50:
                target = target[:47] + "..."
            table.add_row(str(index), command["type"], target, command.get("detail", ""))
        console.print(table)
        console.print(f"[bold]meta actions:[/bold] {meta_actions}")
