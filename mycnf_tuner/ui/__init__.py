"""
UI module - Rich console interface.

Provides:
- Resource and parameter report
- Configuration diff display
- JSON report and config export
"""

from .console import ConsoleUI
from .display import DiffView, build_report, report_to_json, export_section

__all__ = [
    "ConsoleUI",
    "DiffView",
    "build_report",
    "report_to_json",
    "export_section",
]
