"""
Protocol definitions for mycnf_tuner.

Dataclasses passed between the detector, calculator, writer and UI:
- HostResources: detected memory and CPU count
- TuningRatios: editable ratios for the calculator
- TuningParameters / SizingBreakdown: calculator output
- ApplyResult: what the writer changed
- TunerError and subclasses: fatal errors with exit codes
"""

from .context import HostResources
from .tuning import (
    TuningRatios,
    TuningParameters,
    SizingBreakdown,
    ApplyResult,
    COMPUTED_KEYS,
    HARDENING_DEFAULTS,
    MANAGED_KEYS,
)
from .errors import (
    ErrorType,
    TunerError,
    SizingConflict,
    ConfigurationError,
    ConfigPermissionDenied,
    ConfigFileError,
    DetectionFailure,
)

__all__ = [
    "HostResources",
    "TuningRatios",
    "TuningParameters",
    "SizingBreakdown",
    "ApplyResult",
    "COMPUTED_KEYS",
    "HARDENING_DEFAULTS",
    "MANAGED_KEYS",
    "ErrorType",
    "TunerError",
    "SizingConflict",
    "ConfigurationError",
    "ConfigPermissionDenied",
    "ConfigFileError",
    "DetectionFailure",
]
