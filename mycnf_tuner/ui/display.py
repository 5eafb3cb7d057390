"""
Result formatting - diff table, JSON report and config export.
"""

import json
from datetime import datetime
from typing import Dict, Any, Optional

from rich.console import Console
from rich.table import Table
from rich import box

from ..protocol.context import HostResources
from ..protocol.tuning import ApplyResult, TuningParameters, TuningRatios


class DiffView:
    """
    Display configuration differences.

    Shows the current file value next to the value about to be written.
    """

    # Hints for the keys that dominate memory use
    IMPACT_HINTS = {
        'innodb_buffer_pool_size': '+++ cache',
        'innodb_buffer_pool_instances': '+ concurrency',
        'max_connections': '+ memory',
        'tmp_table_size': '+ temp tables',
        'max_heap_table_size': '+ temp tables',
        'innodb_log_file_size': '+ write',
    }

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    @staticmethod
    def changes(before: Dict[str, Optional[str]], after: Dict[str, str]) -> Dict[str, tuple]:
        """Keys whose value differs, mapped to (before, after)."""
        result = {}
        for key, new_val in after.items():
            old_val = before.get(key)
            if old_val != new_val:
                result[key] = (old_val, new_val)
        return result

    def display(self, before: Dict[str, Optional[str]], after: Dict[str, str]):
        """Display configuration diff."""
        changes = self.changes(before, after)
        if not changes:
            self.console.print("[dim]Configuration file already matches the calculated values.[/]")
            return

        table = Table(title="Configuration Changes", box=box.ROUNDED)
        table.add_column("Parameter", style="cyan")
        table.add_column("Before", style="red")
        table.add_column("", width=3)
        table.add_column("After", style="green")
        table.add_column("Impact", style="yellow")

        for key, (old_val, new_val) in changes.items():
            impact = self.IMPACT_HINTS.get(key, '')
            table.add_row(key, old_val if old_val is not None else '-', "→", new_val, impact)

        self.console.print(table)


def build_report(
    resources: HostResources,
    ratios: TuningRatios,
    params: TuningParameters,
    report: Dict[str, str],
    target: str,
    section: str,
    result: Optional[ApplyResult] = None,
    dry_run: bool = False,
) -> Dict[str, Any]:
    """Structured report for --json output."""
    data: Dict[str, Any] = {
        "generated_at": datetime.now().isoformat(timespec="seconds"),
        "target": {"path": target, "section": section},
        "dry_run": dry_run,
        "resources": resources.to_dict(),
        "ratios": ratios.to_dict(),
        "breakdown": params.breakdown.to_dict() if params.breakdown else {},
        "calculated": dict(report),
        "parameters": dict(params.values),
    }
    if result is not None:
        data["result"] = result.to_dict()
        data["restart_required"] = result.changed
    return data


def report_to_json(data: Dict[str, Any], indent: int = 2) -> str:
    return json.dumps(data, indent=indent)


def export_section(params: TuningParameters, section: str) -> str:
    """The managed keys as a standalone `[section]` block."""
    lines = [f"[{section}]"]
    lines.extend(f"{key} = {value}" for key, value in params.items())
    return "\n".join(lines) + "\n"
