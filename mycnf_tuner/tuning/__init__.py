"""
Tuning module - Computes parameters and writes them to the config file.

Components:
- compute_parameters / format_size: the sizing formulas
- ConfigFileWriter: line-oriented upserts with atomic replace
- BackupManager: timestamped backups before modification
"""

from .calculator import compute_parameters, format_size, report_values
from .writer import ConfigFileWriter, ConfigDocument, DEFAULT_CONFIG_PATH, DEFAULT_SECTION
from .snapshot import BackupManager

__all__ = [
    "compute_parameters",
    "format_size",
    "report_values",
    "ConfigFileWriter",
    "ConfigDocument",
    "DEFAULT_CONFIG_PATH",
    "DEFAULT_SECTION",
    "BackupManager",
]
