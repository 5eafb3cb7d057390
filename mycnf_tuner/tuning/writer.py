"""
ConfigFileWriter - Upserts tuning parameters into a my.cnf style file.

The file is treated as plain lines. Only lines of managed keys change;
every other line is written back byte for byte. The new content replaces
the old file atomically (temp file in the same directory, then rename).
"""

import logging
import os
import re
import shutil
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from ..protocol.errors import ConfigFileError, ConfigPermissionDenied
from ..protocol.tuning import ApplyResult
from .snapshot import BackupManager

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "/etc/mysql/my.cnf"
DEFAULT_SECTION = "mysqld"
NEW_FILE_MODE = 0o644

# Bytes that are not UTF-8 round-trip unchanged
FILE_ENCODING = "utf-8"
FILE_ERRORS = "surrogateescape"


def _key_pattern(key: str):
    return re.compile(r"^" + re.escape(key) + r"\s*=")


class ConfigDocument:
    """An ordered list of config file lines, line endings included."""

    def __init__(self, lines: Optional[List[str]] = None):
        self.lines: List[str] = list(lines or [])

    @classmethod
    def parse(cls, text: str) -> "ConfigDocument":
        # Only "\n" ends a line; other Unicode line breaks stay inside it
        return cls([line for line in re.split(r"(?<=\n)", text) if line])

    @classmethod
    def new(cls, section: str, created_at: datetime) -> "ConfigDocument":
        """Skeleton for a file that does not exist yet."""
        return cls([
            f"[{section}]\n",
            "# MySQL/MariaDB configuration\n",
            f"# Created on: {created_at.strftime('%a %b %d %H:%M:%S %Y')}\n",
            "\n",
        ])

    def render(self) -> str:
        return "".join(self.lines)

    def find_section(self, section: str) -> Optional[int]:
        """Index of the first `[section]` header line, or None."""
        header = f"[{section}]"
        for index, line in enumerate(self.lines):
            if line.strip() == header:
                return index
        return None

    def get(self, key: str) -> Optional[str]:
        """Value of the first `key = value` line, or None."""
        pattern = _key_pattern(key)
        for line in self.lines:
            if pattern.match(line):
                return line.split("=", 1)[1].strip()
        return None

    def upsert(self, section: str, key: str, value: str) -> str:
        """
        Set `key = value`.

        Returns:
            "updated", "unchanged" or "inserted"
        """
        pattern = _key_pattern(key)
        new_line = f"{key} = {value}"

        matched = False
        changed = False
        for index, line in enumerate(self.lines):
            if not pattern.match(line):
                continue
            matched = True
            body = line.rstrip("\r\n")
            ending = line[len(body):] or "\n"
            if body != new_line:
                self.lines[index] = new_line + ending
                changed = True

        if matched:
            return "updated" if changed else "unchanged"

        header_index = self.find_section(section)
        if header_index is not None:
            header = self.lines[header_index]
            if not header.endswith("\n"):
                self.lines[header_index] = header + "\n"
            self.lines.insert(header_index + 1, new_line + "\n")
        else:
            if self.lines and not self.lines[-1].endswith("\n"):
                self.lines[-1] += "\n"
            self.lines.extend(["\n", f"[{section}]\n", new_line + "\n"])
        return "inserted"


class ConfigFileWriter:
    """
    Applies TuningParameters to a config file.

    Usage:
        writer = ConfigFileWriter("/etc/mysql/my.cnf")
        writer.check_target()
        result = writer.apply(params.items())
    """

    def __init__(
        self,
        path=DEFAULT_CONFIG_PATH,
        section: str = DEFAULT_SECTION,
        backup_manager: Optional[BackupManager] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.path = Path(path)
        self.section = section
        self.clock = clock or datetime.now
        self.backup_manager = backup_manager or BackupManager(clock=self.clock)

    @property
    def exists(self) -> bool:
        return self.path.is_file()

    @property
    def real_path(self) -> Path:
        """Target with symlinks resolved, so a link such as /etc/alternatives survives the rename."""
        return Path(os.path.realpath(self.path))

    def check_target(self):
        """
        Raises:
            ConfigFileError: the path exists but is not a regular file
        """
        if self.path.exists() and not self.path.is_file():
            raise ConfigFileError(self.path, action="update", reason="not a regular file")

    def load(self) -> ConfigDocument:
        """Current file contents, or the new-file skeleton."""
        if not self.exists:
            return ConfigDocument.new(self.section, self.clock())
        try:
            with open(self.path, "r", encoding=FILE_ENCODING, errors=FILE_ERRORS, newline="") as f:
                return ConfigDocument.parse(f.read())
        except PermissionError as e:
            raise ConfigPermissionDenied(self.path, action="read") from e
        except OSError as e:
            raise ConfigFileError.from_os_error(self.path, "read", e) from e

    def current_values(self, keys: Iterable[str]) -> Dict[str, Optional[str]]:
        """Values currently set for `keys` (None where absent)."""
        if not self.exists:
            return {key: None for key in keys}
        document = self.load()
        return {key: document.get(key) for key in keys}

    def preview(self, parameters: Iterable[Tuple[str, str]]) -> Tuple[ConfigDocument, ApplyResult]:
        """Apply the upserts in memory without touching the disk."""
        result = ApplyResult(path=str(self.path), created=not self.exists)
        document = self.load()

        for key, value in parameters:
            outcome = document.upsert(self.section, key, value)
            getattr(result, outcome).append(key)

        return document, result

    def apply(self, parameters: Iterable[Tuple[str, str]]) -> ApplyResult:
        """
        Back up the file if it exists, then write the upserted content.

        Raises:
            ConfigPermissionDenied: directory, file or backup cannot be written
            ConfigFileError: any other filesystem failure
        """
        self.check_target()
        document, result = self.preview(parameters)

        if result.created:
            self._ensure_directory()
            logger.info("Creating new configuration file %s", self.path)
        else:
            result.backup_path = str(self.backup_manager.create(self.path))

        self._write_atomic(document.render(), created=result.created)
        logger.debug(
            "Wrote %s: %d updated, %d inserted, %d unchanged",
            self.path, len(result.updated), len(result.inserted), len(result.unchanged),
        )
        return result

    def _ensure_directory(self):
        directory = self.real_path.parent
        if directory.is_dir():
            return
        logger.info("Directory %s not found, creating", directory)
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except PermissionError as e:
            raise ConfigPermissionDenied(directory, action="create directory") from e
        except OSError as e:
            raise ConfigFileError.from_os_error(directory, "create directory", e) from e

    def _write_atomic(self, content: str, created: bool):
        target = self.real_path
        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{target.name}.", suffix=".tmp", dir=target.parent
            )
        except PermissionError as e:
            raise ConfigPermissionDenied(self.path, action="write") from e
        except OSError as e:
            raise ConfigFileError.from_os_error(self.path, "write", e) from e

        try:
            with os.fdopen(fd, "w", encoding=FILE_ENCODING, errors=FILE_ERRORS, newline="") as f:
                f.write(content)
            if created:
                os.chmod(tmp_name, NEW_FILE_MODE)
            else:
                shutil.copymode(target, tmp_name)
            os.replace(tmp_name, target)
        except PermissionError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise ConfigPermissionDenied(self.path, action="write") from e
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise ConfigFileError.from_os_error(self.path, "write", e) from e
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
