"""
ResourceDetector - Reads total memory and CPU count of the local host.

Uses /proc and standard OS tools. Linux only.
"""

import logging
import re
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..protocol.context import HostResources
from ..protocol.errors import DetectionFailure

logger = logging.getLogger(__name__)


@dataclass
class DetectorConfig:
    """Configuration for resource detection."""
    proc_root: Path = Path("/proc")
    memory_mb: Optional[int] = None   # skip memory detection when set
    cpu_cores: Optional[int] = None   # skip CPU detection when set


class ResourceDetector:
    """
    Detects HostResources for the parameter calculator.

    Memory is mandatory: every size depends on it, so a host whose
    memory cannot be read is a fatal error rather than a default.
    """

    def __init__(self, config: Optional[DetectorConfig] = None):
        self.config = config or DetectorConfig()
        self.proc_root = Path(self.config.proc_root)

    def _run_command(self, cmd: list) -> str:
        """Run a local command and return its stripped stdout."""
        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except OSError as e:
            logger.debug("Could not run %s: %s", cmd[0], e)
            return ""
        return result.stdout.strip()

    def detect(self) -> HostResources:
        """Read memory and CPU count, honouring configured overrides."""
        if self.config.memory_mb is not None:
            memory_mb = self.config.memory_mb
            logger.debug("Using configured memory: %d MB", memory_mb)
        else:
            memory_mb = self.get_total_memory_mb()

        if self.config.cpu_cores is not None:
            cpu_cores = self.config.cpu_cores
            logger.debug("Using configured CPU count: %d", cpu_cores)
        else:
            cpu_cores = self.get_cpu_cores()

        if memory_mb <= 0:
            raise DetectionFailure(f"Invalid total memory: {memory_mb} MB")
        if cpu_cores <= 0:
            raise DetectionFailure(f"Invalid CPU count: {cpu_cores}")

        return HostResources(total_memory_mb=memory_mb, cpu_cores=cpu_cores)

    def get_total_memory_mb(self) -> int:
        """Total physical memory in MB, from MemTotal in /proc/meminfo."""
        meminfo_path = self.proc_root / "meminfo"
        try:
            meminfo = meminfo_path.read_text()
        except OSError as e:
            raise DetectionFailure(
                f"Cannot read {meminfo_path}: {e.strerror or e}",
                hint="Total memory is required to size MySQL buffers.",
            ) from e

        total_match = re.search(r'^MemTotal:\s*(\d+)\s*kB', meminfo, re.MULTILINE)
        if not total_match:
            raise DetectionFailure(f"MemTotal not found in {meminfo_path}")

        memory_mb = int(total_match.group(1)) // 1024
        if memory_mb <= 0:
            raise DetectionFailure(f"MemTotal in {meminfo_path} is below 1 MB")

        logger.debug("Detected %d MB of memory from %s", memory_mb, meminfo_path)
        return memory_mb

    def get_cpu_cores(self) -> int:
        """Logical CPU count from /proc/cpuinfo, falling back to nproc."""
        cpuinfo_path = self.proc_root / "cpuinfo"
        try:
            cpuinfo = cpuinfo_path.read_text()
            cores = len(re.findall(r'^processor\s*:', cpuinfo, re.MULTILINE))
            if cores > 0:
                logger.debug("Detected %d CPU cores from %s", cores, cpuinfo_path)
                return cores
        except OSError as e:
            logger.debug("Cannot read %s: %s", cpuinfo_path, e)

        nproc = self._run_command(["nproc"])
        if nproc.isdigit() and int(nproc) > 0:
            logger.debug("Detected %s CPU cores from nproc", nproc)
            return int(nproc)

        raise DetectionFailure("Could not determine the number of CPU cores")
