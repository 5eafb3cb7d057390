"""
mycnf_tuner - MySQL/MariaDB configuration sizing tool

Computes memory, cache and connection settings from the host's RAM and
CPU count and upserts them into my.cnf, backing the file up first.

Usage:
    # As a module
    python -m mycnf_tuner --dry-run

    # Programmatically
    from mycnf_tuner import ResourceDetector, TuningRatios, compute_parameters

    resources = ResourceDetector().detect()
    params = compute_parameters(resources, TuningRatios(max_connections=200))
    ConfigFileWriter("/etc/mysql/my.cnf").apply(params.items())
"""

__version__ = "1.0.0"

# Main exports
from .discovery import ResourceDetector
from .tuning import compute_parameters, format_size, ConfigFileWriter, BackupManager
from .config import Config

# Protocol exports
from .protocol import (
    HostResources,
    TuningRatios,
    TuningParameters,
    ApplyResult,
    TunerError,
    SizingConflict,
    ConfigurationError,
    ConfigPermissionDenied,
    DetectionFailure,
)

__all__ = [
    # Version
    "__version__",
    # Components
    "ResourceDetector",
    "compute_parameters",
    "format_size",
    "ConfigFileWriter",
    "BackupManager",
    "Config",
    # Protocol
    "HostResources",
    "TuningRatios",
    "TuningParameters",
    "ApplyResult",
    # Errors
    "TunerError",
    "SizingConflict",
    "ConfigurationError",
    "ConfigPermissionDenied",
    "DetectionFailure",
]
