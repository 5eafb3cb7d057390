"""
CLI - Command-line interface for mycnf_tuner.

detect -> compute -> report -> (backup) -> patch -> restart notice.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler

from .config import Config, create_example_config, TARGET_ENV_VAR
from .discovery import ResourceDetector, DetectorConfig
from .protocol.errors import TunerError, ConfigurationError
from .tuning import (
    compute_parameters,
    report_values,
    ConfigFileWriter,
    BackupManager,
    DEFAULT_CONFIG_PATH,
)
from .ui import ConsoleUI, DiffView, build_report, report_to_json, export_section

logger = logging.getLogger("mycnf_tuner")


def parse_args(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="mycnf-tuner",
        description="Size MySQL/MariaDB settings from the server hardware and write them to my.cnf",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Examples:
    sudo mycnf-tuner
    mycnf-tuner --dry-run
    mycnf-tuner -f ./my.cnf --max-connections 200 --mem-per-connection 16

    # Size for another host and print the [mysqld] block
    mycnf-tuner --memory-mb 32768 --cpus 16 --export > tuned.cnf

    # Write an example config file, then use it
    mycnf-tuner --init-config mycnf-tuner.toml
    mycnf-tuner -c mycnf-tuner.toml

Environment Variables:
    {TARGET_ENV_VAR}    Target config file (default: {DEFAULT_CONFIG_PATH})
        """,
    )

    # Target
    parser.add_argument(
        "-f", "--file",
        help=f"MySQL/MariaDB config file to update (default: {DEFAULT_CONFIG_PATH})"
    )
    parser.add_argument(
        "--section",
        help="Section receiving the settings (default: mysqld)"
    )
    parser.add_argument(
        "-c", "--config",
        help="mycnf-tuner TOML config file"
    )
    parser.add_argument(
        "--init-config",
        metavar="PATH",
        help="Write an example mycnf-tuner config file and exit"
    )

    # ==================== Sizing ====================
    sizing_group = parser.add_argument_group('Sizing')

    sizing_group.add_argument(
        "--memory-mb",
        type=int,
        help="Total memory in MB (default: detected)"
    )
    sizing_group.add_argument(
        "--cpus",
        type=int,
        help="Logical CPU count (default: detected)"
    )
    sizing_group.add_argument(
        "--memory-percent",
        type=int,
        help="Percent of total memory for MySQL (default: 75)"
    )
    sizing_group.add_argument(
        "--max-connections",
        type=int,
        help="Maximum number of connections (default: 100)"
    )
    sizing_group.add_argument(
        "--mem-per-connection",
        type=int,
        help="Average memory per connection in MB (default: 8)"
    )
    sizing_group.add_argument(
        "--buffer-pool-percent",
        type=int,
        help="Percent of memory left after connections for the InnoDB buffer pool (default: 75)"
    )

    # ==================== Operation Modes ====================
    mode_group = parser.add_argument_group('Operation Modes')

    mode_group.add_argument(
        "--dry-run",
        action="store_true",
        help="Show calculated values and changes without writing"
    )
    mode_group.add_argument(
        "--export",
        action="store_true",
        help="Print the managed section to stdout instead of writing the file"
    )
    mode_group.add_argument(
        "--list-backups",
        action="store_true",
        help="List backups of the config file and exit"
    )

    # ==================== Output ====================
    output_group = parser.add_argument_group('Output')

    output_group.add_argument(
        "--json",
        action="store_true",
        help="Print the report as JSON"
    )
    output_group.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Only print errors"
    )
    output_group.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Print debug messages"
    )

    return parser.parse_args(argv)


def setup_logging(verbose: bool = False):
    """Route log records to stderr through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def load_config(args) -> Config:
    """Config file, then CLI overrides, then validation."""
    config = Config.load(args.config).override_from_args(args)
    errors = config.validate()
    if errors:
        raise ConfigurationError(
            "Invalid configuration:\n" + "\n".join(f"  - {e}" for e in errors)
        )
    return config


def run(args, ui: ConsoleUI) -> int:
    """Run one tuning pass. Raises TunerError on failure."""
    if args.init_config:
        try:
            path = create_example_config(args.init_config)
        except FileExistsError as e:
            raise ConfigurationError(str(e)) from e
        ui.print(f"[green]Created example config:[/] {path}")
        return 0

    config = load_config(args)
    if config._config_file:
        logger.debug("Loaded config from %s", config._config_file)

    target = Path(config.target.path)

    if args.list_backups:
        ui.print_backups(target, BackupManager().list_backups(target))
        return 0

    writer = ConfigFileWriter(target, section=config.target.section)
    if not args.export:
        writer.check_target()

    detector = ResourceDetector(DetectorConfig(
        memory_mb=config.host.memory_mb,
        cpu_cores=config.host.cpus,
    ))
    resources = detector.detect()

    ratios = config.ratios()
    params = compute_parameters(resources, ratios)
    report = report_values(params)

    if args.export:
        sys.stdout.write(export_section(params, config.target.section))
        return 0

    ui.print_banner()
    ui.print_resources(resources, db_memory=params.breakdown.db_memory)
    ui.print_breakdown(params.breakdown, ratios)
    ui.print_parameters(report)

    before = writer.current_values(params.keys())
    after = dict(params.values)
    if not ui.quiet:
        ui.print_header(f"Changes to {target}")
        DiffView(ui.console).display(before, after)

    if args.dry_run:
        if args.json:
            data = build_report(resources, ratios, params, report,
                                str(target), config.target.section, dry_run=True)
            data["changes"] = {k: {"before": b, "after": a}
                               for k, (b, a) in DiffView.changes(before, after).items()}
            print(report_to_json(data))
        ui.print("\n[dim]Dry run: no changes written.[/]")
        return 0

    result = writer.apply(params.items())

    if args.json:
        data = build_report(resources, ratios, params, report,
                            str(target), config.target.section, result=result)
        print(report_to_json(data))

    ui.print_apply_result(result)
    ui.print_restart_notice()
    return 0


def main(argv: Optional[List[str]] = None):
    """Main entry point."""
    args = parse_args(argv)
    setup_logging(args.verbose)

    # JSON output replaces the rich report
    ui = ConsoleUI(quiet=args.quiet or args.json)

    try:
        exit_code = run(args, ui)
    except TunerError as e:
        if args.json:
            print(e.to_json())
        else:
            ui.print_error(e)
        logger.debug("Aborted with %s", e.error_type.value, exc_info=True)
        sys.exit(e.exit_code)
    except KeyboardInterrupt:
        ui.print("\nInterrupted by user")
        sys.exit(130)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
