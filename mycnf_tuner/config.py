"""
Configuration management for mycnf_tuner.

Supports:
- TOML config files
- Environment variables
- Command-line overrides
- Sensible defaults

Priority (highest to lowest):
1. Command-line arguments
2. Environment variables
3. Config file
4. Defaults
"""

import os
from pathlib import Path
from dataclasses import dataclass, field, fields
from typing import Optional, Dict, Any, List

try:
    import tomllib  # Python 3.11+
except ImportError:
    import tomli as tomllib

from .protocol.errors import ConfigurationError
from .protocol.tuning import TuningRatios
from .tuning.writer import DEFAULT_CONFIG_PATH, DEFAULT_SECTION


# Environment variable overriding the target my.cnf path
TARGET_ENV_VAR = "MYCNF_TUNER_FILE"

# Default config file locations (searched in order)
CONFIG_SEARCH_PATHS = [
    Path.cwd() / "mycnf-tuner.toml",
    Path.home() / ".config" / "mycnf-tuner" / "config.toml",
    Path("/etc/mycnf-tuner.toml"),
]


@dataclass
class TargetConfig:
    """The file being tuned."""
    path: str = DEFAULT_CONFIG_PATH
    section: str = DEFAULT_SECTION

    def __post_init__(self):
        env_path = os.environ.get(TARGET_ENV_VAR)
        if env_path:
            self.path = env_path


@dataclass
class HostConfig:
    """Resource overrides. None means detect from the running host."""
    memory_mb: Optional[int] = None
    cpus: Optional[int] = None


@dataclass
class MemoryConfig:
    """Memory budget and connections."""
    db_percent: int = 75
    max_connections: int = 100
    mem_per_connection_mb: int = 8


@dataclass
class InnoDBConfig:
    """InnoDB sizing."""
    buffer_pool_percent: int = 75
    log_file_size_mb: int = 256
    log_buffer_size_mb: int = 16


@dataclass
class BuffersConfig:
    """Per-buffer share of memory left after the InnoDB buffer pool."""
    join_percent: int = 10
    read_percent: int = 5
    read_rnd_percent: int = 5
    sort_percent: int = 5
    tmp_table_percent: int = 15
    max_heap_table_percent: int = 15

    @property
    def total_percent(self) -> int:
        return (self.join_percent + self.read_percent + self.read_rnd_percent
                + self.sort_percent + self.tmp_table_percent + self.max_heap_table_percent)


@dataclass
class TimeoutsConfig:
    """Timeouts in seconds."""
    connect: int = 90
    interactive: int = 90
    wait: int = 90


@dataclass
class TableCacheConfig:
    """Table cache sizing."""
    open_cache: int = 2000
    definition_percent: int = 5
    cache_percent: int = 10


@dataclass
class OutputConfig:
    """Output configuration."""
    quiet: bool = False
    verbose: bool = False


SECTIONS = {
    "target": TargetConfig,
    "host": HostConfig,
    "memory": MemoryConfig,
    "innodb": InnoDBConfig,
    "buffers": BuffersConfig,
    "timeouts": TimeoutsConfig,
    "table_cache": TableCacheConfig,
    "output": OutputConfig,
}


@dataclass
class Config:
    """Main configuration container."""
    target: TargetConfig = field(default_factory=TargetConfig)
    host: HostConfig = field(default_factory=HostConfig)
    memory: MemoryConfig = field(default_factory=MemoryConfig)
    innodb: InnoDBConfig = field(default_factory=InnoDBConfig)
    buffers: BuffersConfig = field(default_factory=BuffersConfig)
    timeouts: TimeoutsConfig = field(default_factory=TimeoutsConfig)
    table_cache: TableCacheConfig = field(default_factory=TableCacheConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    # Source tracking
    _config_file: Optional[Path] = None

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> "Config":
        """
        Load configuration from file.

        Args:
            config_path: Explicit path to config file. If None, searches default locations.

        Returns:
            Config instance with loaded values
        """
        config = cls()

        if config_path:
            path = Path(config_path)
            if not path.exists():
                raise ConfigurationError(f"Config file not found: {config_path}")
        else:
            path = cls._find_config_file()

        if path:
            config = cls._load_from_file(path)
            config._config_file = path

        return config

    @classmethod
    def _find_config_file(cls) -> Optional[Path]:
        """Find config file in default locations."""
        for path in CONFIG_SEARCH_PATHS:
            if path.exists():
                return path
        return None

    @classmethod
    def _load_from_file(cls, path: Path) -> "Config":
        """Load config from TOML file."""
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML in {path}: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Cannot read config file {path}: {e.strerror or e}") from e

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create Config from dictionary."""
        config = cls()

        unknown = set(data) - set(SECTIONS)
        if unknown:
            raise ConfigurationError(
                f"Unknown config section(s): {', '.join(sorted(unknown))}"
            )

        for name, section_cls in SECTIONS.items():
            if name not in data:
                continue
            table = data[name]
            if not isinstance(table, dict):
                raise ConfigurationError(f"[{name}] must be a table")

            known = {f.name for f in fields(section_cls)}
            extra = set(table) - known
            if extra:
                raise ConfigurationError(
                    f"Unknown option(s) in [{name}]: {', '.join(sorted(extra))}"
                )

            current = getattr(config, name)
            values = {f.name: table.get(f.name, getattr(current, f.name))
                      for f in fields(section_cls)}
            setattr(config, name, section_cls(**values))

        return config

    def override_from_args(self, args) -> "Config":
        """
        Override config values from argparse namespace.

        Args with value None are ignored (keeping config file values).
        """
        # Target overrides
        if getattr(args, "file", None):
            self.target.path = args.file
        if getattr(args, "section", None):
            self.target.section = args.section

        # Host overrides
        if getattr(args, "memory_mb", None) is not None:
            self.host.memory_mb = args.memory_mb
        if getattr(args, "cpus", None) is not None:
            self.host.cpus = args.cpus

        # Sizing overrides
        if getattr(args, "memory_percent", None) is not None:
            self.memory.db_percent = args.memory_percent
        if getattr(args, "max_connections", None) is not None:
            self.memory.max_connections = args.max_connections
        if getattr(args, "mem_per_connection", None) is not None:
            self.memory.mem_per_connection_mb = args.mem_per_connection
        if getattr(args, "buffer_pool_percent", None) is not None:
            self.innodb.buffer_pool_percent = args.buffer_pool_percent

        # Output overrides
        if getattr(args, "quiet", None):
            self.output.quiet = True
        if getattr(args, "verbose", None):
            self.output.verbose = True

        return self

    def validate(self) -> List[str]:
        """
        Validate configuration.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        def check_int(label: str, value, minimum: int, maximum: Optional[int] = None):
            if isinstance(value, bool) or not isinstance(value, int):
                errors.append(f"{label} must be an integer (got {value!r})")
                return
            if value < minimum or (maximum is not None and value > maximum):
                bound = f"between {minimum} and {maximum}" if maximum is not None else f"at least {minimum}"
                errors.append(f"{label} must be {bound} (got {value})")

        # Target
        if not self.target.path:
            errors.append("Target config file path is required")
        if not self.target.section or any(c in self.target.section for c in "[]\n"):
            errors.append(f"Invalid section name: {self.target.section!r}")

        # Host
        if self.host.memory_mb is not None:
            check_int("host.memory_mb", self.host.memory_mb, 1)
        if self.host.cpus is not None:
            check_int("host.cpus", self.host.cpus, 1)

        # Memory
        check_int("memory.db_percent", self.memory.db_percent, 1, 100)
        check_int("memory.max_connections", self.memory.max_connections, 1)
        check_int("memory.mem_per_connection_mb", self.memory.mem_per_connection_mb, 1)

        # InnoDB
        check_int("innodb.buffer_pool_percent", self.innodb.buffer_pool_percent, 0, 100)
        check_int("innodb.log_file_size_mb", self.innodb.log_file_size_mb, 1)
        check_int("innodb.log_buffer_size_mb", self.innodb.log_buffer_size_mb, 1)

        # Buffers
        buffer_fields = [f.name for f in fields(BuffersConfig)]
        for name in buffer_fields:
            check_int(f"buffers.{name}", getattr(self.buffers, name), 0, 100)
        if not any(e.startswith("buffers.") for e in errors) and self.buffers.total_percent > 100:
            errors.append(
                f"buffers percentages add up to {self.buffers.total_percent}%, "
                "they must not exceed 100%"
            )

        # Timeouts
        for name in ("connect", "interactive", "wait"):
            check_int(f"timeouts.{name}", getattr(self.timeouts, name), 1)

        # Table cache
        check_int("table_cache.open_cache", self.table_cache.open_cache, 1)
        check_int("table_cache.definition_percent", self.table_cache.definition_percent, 0, 100)
        check_int("table_cache.cache_percent", self.table_cache.cache_percent, 0, 100)

        return errors

    def ratios(self) -> TuningRatios:
        """Frozen calculator input built from this configuration."""
        return TuningRatios(
            memory_percent_for_db=self.memory.db_percent,
            max_connections=self.memory.max_connections,
            mem_per_connection_mb=self.memory.mem_per_connection_mb,
            innodb_buffer_pool_percent=self.innodb.buffer_pool_percent,
            innodb_log_file_size_mb=self.innodb.log_file_size_mb,
            innodb_log_buffer_size_mb=self.innodb.log_buffer_size_mb,
            join_buffer_percent=self.buffers.join_percent,
            read_buffer_percent=self.buffers.read_percent,
            read_rnd_buffer_percent=self.buffers.read_rnd_percent,
            sort_buffer_percent=self.buffers.sort_percent,
            tmp_table_percent=self.buffers.tmp_table_percent,
            max_heap_table_percent=self.buffers.max_heap_table_percent,
            connect_timeout=self.timeouts.connect,
            interactive_timeout=self.timeouts.interactive,
            wait_timeout=self.timeouts.wait,
            table_open_cache=self.table_cache.open_cache,
            table_definition_cache_percent=self.table_cache.definition_percent,
            table_cache_percent=self.table_cache.cache_percent,
        )

    def summary(self, include_config_path: bool = True) -> str:
        """Generate human-readable config summary."""
        lines = []

        if include_config_path:
            if self._config_file:
                lines.append(f"Config: {self._config_file}")
            else:
                lines.append("Config: (defaults)")

        lines.append(f"Target: {self.target.path} [{self.target.section}]")
        lines.append(f"MySQL memory: {self.memory.db_percent}% of RAM")
        lines.append(
            f"Connections: {self.memory.max_connections} x {self.memory.mem_per_connection_mb} MB"
        )
        lines.append(f"InnoDB buffer pool: {self.innodb.buffer_pool_percent}% of remaining memory")

        return "\n".join(lines)


EXAMPLE_CONFIG = """# mycnf-tuner configuration

[target]
path = "/etc/mysql/my.cnf"
section = "mysqld"

# Uncomment to size for a different host instead of detecting this one
# [host]
# memory_mb = 16384
# cpus = 8

[memory]
db_percent = 75              # share of total RAM given to MySQL/MariaDB
max_connections = 100
mem_per_connection_mb = 8

[innodb]
buffer_pool_percent = 75     # share of MySQL memory left after connections
log_file_size_mb = 256
log_buffer_size_mb = 16

# Share of memory left after the InnoDB buffer pool
[buffers]
join_percent = 10
read_percent = 5
read_rnd_percent = 5
sort_percent = 5
tmp_table_percent = 15
max_heap_table_percent = 15

[timeouts]
connect = 90
interactive = 90
wait = 90

[table_cache]
open_cache = 2000
definition_percent = 5       # share of MySQL memory
cache_percent = 10           # share of MySQL memory
"""


def create_example_config(path: str = "mycnf-tuner.toml") -> Path:
    """Create example config file."""
    target = Path(path)

    if target.exists():
        raise FileExistsError(f"Config file already exists: {path}")

    target.write_text(EXAMPLE_CONFIG)
    return target
