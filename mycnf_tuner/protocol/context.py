"""
HostResources - what the tuner knows about the machine.
"""

from dataclasses import dataclass, asdict
from typing import Dict, Any


@dataclass(frozen=True)
class HostResources:
    """Total memory and logical CPU count, read once per run."""
    total_memory_mb: int
    cpu_cores: int

    @property
    def total_memory_gb(self) -> int:
        return self.total_memory_mb // 1024

    @property
    def active_cores(self) -> int:
        """Half of the logical cores, as reported to the operator."""
        return max(1, self.cpu_cores // 2)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        result = asdict(self)
        result["total_memory_gb"] = self.total_memory_gb
        result["active_cores"] = self.active_cores
        return result
