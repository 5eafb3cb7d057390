"""
BackupManager - Copies the config file aside before it is modified.

Backups live next to the original as <path>.<YYYYMMDD_HHMMSS>.bak and
are never deleted by mycnf_tuner.
"""

import logging
import re
import shutil
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

from ..protocol.errors import ConfigFileError, ConfigPermissionDenied

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


class BackupManager:
    """
    Creates and lists timestamped backups of a config file.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        """
        Initialize backup manager.

        Args:
            clock: Returns the current time (default: datetime.now)
        """
        self.clock = clock or datetime.now

    def backup_path_for(self, path: Path) -> Path:
        """Next free backup path for `path`."""
        path = Path(path)
        timestamp = self.clock().strftime(TIMESTAMP_FORMAT)
        candidate = path.with_name(f"{path.name}.{timestamp}.bak")

        # Two runs within the same second must not clobber each other
        counter = 1
        while candidate.exists():
            candidate = path.with_name(f"{path.name}.{timestamp}.{counter}.bak")
            counter += 1

        return candidate

    def create(self, path: Path) -> Path:
        """
        Copy `path` verbatim to a new backup file.

        Returns:
            Path of the backup

        Raises:
            ConfigPermissionDenied: the backup cannot be written
            ConfigFileError: any other filesystem failure
        """
        source = Path(path)
        backup_path = self.backup_path_for(source)
        try:
            shutil.copy2(source, backup_path)
        except PermissionError as e:
            raise ConfigPermissionDenied(backup_path, action="create backup") from e
        except OSError as e:
            raise ConfigFileError.from_os_error(backup_path, "create backup", e) from e

        logger.debug("Backed up %s to %s", source, backup_path)
        return backup_path

    def list_backups(self, path: Path) -> List[Path]:
        """Existing backups of `path`, newest first."""
        path = Path(path)
        if not path.parent.is_dir():
            return []

        pattern = re.compile(
            re.escape(path.name) + r"\.(\d{8}_\d{6})(?:\.(\d+))?\.bak$"
        )
        found = []
        for candidate in path.parent.iterdir():
            match = pattern.match(candidate.name)
            if match:
                found.append((match.group(1), int(match.group(2) or 0), candidate))

        found.sort(key=lambda item: (item[0], item[1]), reverse=True)
        return [item[2] for item in found]
