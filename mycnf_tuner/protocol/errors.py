"""
Error taxonomy for mycnf_tuner.

Every failure aborts the run. Each error knows its type and the process
exit code the CLI should return.
"""

from enum import Enum
from typing import Dict, Any, Optional
import json


class ErrorType(str, Enum):
    """Types of errors that can occur."""
    SIZING_CONFLICT = "SIZING_CONFLICT"
    INVALID_CONFIGURATION = "INVALID_CONFIGURATION"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    DETECTION_FAILURE = "DETECTION_FAILURE"
    FILE_ACCESS_FAILURE = "FILE_ACCESS_FAILURE"


EXIT_CODES = {
    ErrorType.SIZING_CONFLICT: 1,
    ErrorType.INVALID_CONFIGURATION: 2,
    ErrorType.PERMISSION_DENIED: 3,
    ErrorType.DETECTION_FAILURE: 4,
    ErrorType.FILE_ACCESS_FAILURE: 5,
}


class TunerError(Exception):
    """Base class for fatal tuner errors."""

    error_type: ErrorType = ErrorType.INVALID_CONFIGURATION

    def __init__(self, message: str, hint: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.hint = hint

    @property
    def exit_code(self) -> int:
        return EXIT_CODES[self.error_type]

    def details(self) -> Dict[str, Any]:
        """Extra fields for the error payload."""
        return {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        result = {
            "error_type": self.error_type.value,
            "message": self.message,
            "exit_code": self.exit_code,
        }
        if self.hint:
            result["hint"] = self.hint
        details = self.details()
        if details:
            result["details"] = details
        return result

    def to_json(self, indent: int = 2) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)


class SizingConflict(TunerError):
    """Connection memory meets or exceeds the database memory budget."""

    error_type = ErrorType.SIZING_CONFLICT

    def __init__(self, connections_memory: int, db_memory: int,
                 max_connections: int, mem_per_connection_mb: int):
        self.connections_memory = connections_memory
        self.db_memory = db_memory
        self.max_connections = max_connections
        self.mem_per_connection_mb = mem_per_connection_mb
        super().__init__(
            f"max_connections x memory per connection ({max_connections} x "
            f"{mem_per_connection_mb} MB = {connections_memory} MB) exceeds the "
            f"memory available to MySQL ({db_memory} MB)",
            hint="Reduce max_connections or the memory per connection.",
        )

    def details(self) -> Dict[str, Any]:
        return {
            "connections_memory_mb": self.connections_memory,
            "db_memory_mb": self.db_memory,
            "max_connections": self.max_connections,
            "mem_per_connection_mb": self.mem_per_connection_mb,
        }


class ConfigurationError(TunerError):
    """Operator configuration is missing, unreadable or inconsistent."""

    error_type = ErrorType.INVALID_CONFIGURATION


class ConfigPermissionDenied(TunerError):
    """Cannot create or write the target file, its directory or a backup."""

    error_type = ErrorType.PERMISSION_DENIED

    def __init__(self, path, action: str = "write"):
        self.path = str(path)
        super().__init__(
            f"Could not {action} {self.path}: permission denied",
            hint="Check your write permissions or re-run with sudo: sudo mycnf-tuner",
        )

    def details(self) -> Dict[str, Any]:
        return {"path": self.path}


class DetectionFailure(TunerError):
    """Host memory or CPU count could not be determined."""

    error_type = ErrorType.DETECTION_FAILURE


class ConfigFileError(TunerError):
    """The target file, its directory or a backup cannot be read or written."""

    error_type = ErrorType.FILE_ACCESS_FAILURE

    def __init__(self, path, action: str = "write", reason: Optional[str] = None):
        self.path = str(path)
        self.reason = reason
        message = f"Could not {action} {self.path}"
        if reason:
            message += f": {reason}"
        super().__init__(
            message,
            hint="Check that the path is a regular file on a writable filesystem with free space.",
        )

    @classmethod
    def from_os_error(cls, path, action: str, error: OSError) -> "ConfigFileError":
        return cls(path, action=action, reason=error.strerror or str(error))

    def details(self) -> Dict[str, Any]:
        result = {"path": self.path}
        if self.reason:
            result["reason"] = self.reason
        return result
