"""
ConsoleUI - Rich-based console interface.

Prints the detected resources, the computed parameters and the outcome
of writing the config file.
"""

from pathlib import Path
from typing import Dict, List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich import box
from rich.markup import escape

from ..protocol.context import HostResources
from ..protocol.errors import TunerError
from ..protocol.tuning import ApplyResult, SizingBreakdown, TuningRatios

RESTART_COMMANDS = (
    "sudo systemctl restart mysql",
    "sudo systemctl restart mariadb",
)


class ConsoleUI:
    """
    Rich console interface for mycnf_tuner.
    """

    def __init__(self, quiet: bool = False, console: Optional[Console] = None):
        self.quiet = quiet
        self.console = console or Console()
        self.err_console = Console(stderr=True)

    def print(self, *args, **kwargs):
        """Print to console."""
        if self.quiet:
            return
        self.console.print(*args, **kwargs)

    def print_header(self, title: str):
        """Print a section header."""
        if self.quiet:
            return
        self.console.print()
        self.console.rule(f"[bold blue]{title}[/]")

    def print_banner(self):
        """Print application banner."""
        if self.quiet:
            return

        banner = """
[bold cyan]MySQL Optimization Tool[/]
[dim]Sizes MySQL/MariaDB settings from the server hardware[/]
        """
        self.console.print(Panel(banner.strip(), border_style="cyan"))

    def print_resources(self, resources: HostResources, db_memory: Optional[int] = None):
        """Display detected host resources."""
        if self.quiet:
            return

        self.print_header("Host Resources")

        table = Table(show_header=False, box=None)
        table.add_column("Key", style="dim")
        table.add_column("Value")

        table.add_row("Total RAM", f"{resources.total_memory_mb} MB ({resources.total_memory_gb} GB)")
        if db_memory is not None:
            table.add_row("Memory for MySQL", f"{db_memory} MB")
        table.add_row("CPU cores", f"{resources.cpu_cores} (active cores: {resources.active_cores})")

        self.console.print(table)

    def print_breakdown(self, breakdown: SizingBreakdown, ratios: TuningRatios):
        """Display how the memory budget was split."""
        if self.quiet:
            return

        table = Table(title="Memory Budget", show_header=False, box=None)
        table.add_column("Key", style="dim")
        table.add_column("Value", justify="right")

        table.add_row("max_connections", str(ratios.max_connections))
        table.add_row("Memory per connection", f"{ratios.mem_per_connection_mb} MB")
        table.add_row("Total memory for all connections", f"{breakdown.connections_memory} MB")
        table.add_row("Memory left for InnoDB and caches", f"{breakdown.remaining_memory} MB")
        table.add_row("Memory left for other caches", f"{breakdown.remaining_other_buffers} MB")

        self.console.print()
        self.console.print(table)

    def print_parameters(self, values: Dict[str, str]):
        """Display computed parameter values."""
        if self.quiet:
            return

        self.print_header("Calculated Values")

        table = Table(box=box.SIMPLE)
        table.add_column("Parameter", style="cyan")
        table.add_column("Value", justify="right", style="green")

        for key, value in values.items():
            table.add_row(key, value)

        self.console.print(table)

    def print_apply_result(self, result: ApplyResult):
        """Display what happened to the config file."""
        if self.quiet:
            return

        self.print_header("Configuration File")

        if result.created:
            self.console.print(f"[yellow]WARNING:[/] {escape(result.path)} not found, created a new configuration file")
        if result.backup_path:
            self.console.print(f"Backed up existing configuration file: [bold]{escape(result.backup_path)}[/]")

        self.console.print(
            f"[green]{len(result.updated)}[/] updated, "
            f"[green]{len(result.inserted)}[/] added, "
            f"[dim]{len(result.unchanged)} unchanged[/]"
        )
        self.console.print("[bold green]Configuration successfully updated.[/]")

    def print_restart_notice(self):
        """Tell the operator to restart the database service."""
        if self.quiet:
            return

        lines = ["You need to restart the MySQL/MariaDB service:"]
        lines.extend(f"  [bold]{cmd}[/]" for cmd in RESTART_COMMANDS)
        self.console.print()
        self.console.print(Panel("\n".join(lines), border_style="yellow", title="Restart Required"))

    def print_backups(self, path: Path, backups: List[Path]):
        """List existing backups of the config file."""
        if not backups:
            self.console.print(f"[dim]No backups found for {path}[/]")
            return

        table = Table(title=f"Backups of {path.name}", caption=f"{len(backups)} backup(s)", box=box.ROUNDED)
        table.add_column("Backup", style="cyan", overflow="fold")
        table.add_column("Size", justify="right")

        for backup in backups:
            table.add_row(str(backup), f"{backup.stat().st_size:,} B")

        self.console.print(table)

    def print_error(self, error):
        """Display an error. Always shown, even in quiet mode."""
        if isinstance(error, TunerError):
            body = f"[bold]{escape(error.message)}[/]"
            if error.hint:
                body += f"\n[dim]{escape(error.hint)}[/]"
            title = error.error_type.value.replace("_", " ").title()
        else:
            body = escape(str(error))
            title = "Error"

        self.err_console.print(Panel(body, title=f"[red]{title}[/]", border_style="red"))
