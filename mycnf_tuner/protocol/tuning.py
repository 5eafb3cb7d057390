"""
Tuning Protocol - ratios in, parameters out.

TuningRatios is the operator-editable input to the calculator,
TuningParameters is the ordered key/value set handed to the writer.
"""

from collections import OrderedDict
from dataclasses import dataclass, field, asdict
from typing import Dict, List, Optional, Any, Iterator, Tuple


# Keys the calculator derives or passes through, in upsert order.
COMPUTED_KEYS = (
    "table_open_cache",
    "table_definition_cache",
    "table_cache",
    "max_heap_table_size",
    "tmp_table_size",
    "sort_buffer_size",
    "read_rnd_buffer_size",
    "read_buffer_size",
    "join_buffer_size",
    "thread_cache_size",
    "innodb_log_buffer_size",
    "innodb_log_file_size",
    "innodb_buffer_pool_instances",
    "innodb_buffer_pool_size",
    "max_connections",
    "wait_timeout",
    "interactive_timeout",
    "connect_timeout",
)

# Fixed hardening defaults, upserted after the computed keys.
HARDENING_DEFAULTS = (
    ("long_query_time", "5"),
    ("slow-query-log-file", "/var/log/mysql/mysql-slow.log"),
    ("slow-query-log", "0"),
    ("back_log", "100"),
    ("max_binlog_size", "100M"),
    ("expire_logs_days", "10"),
    ("skip-external-locking", "1"),
    ("skip-name-resolve", "1"),
    ("log-queries-not-using-indexes", "1"),
    ("innodb_file_per_table", "ON"),
    ("innodb_stats_on_metadata", "OFF"),
    ("performance_schema", "ON"),
    ("collation-server", "utf8mb4_general_ci"),
    ("character-set-server", "utf8mb4"),
)

MANAGED_KEYS = COMPUTED_KEYS + tuple(key for key, _ in HARDENING_DEFAULTS)


@dataclass(frozen=True)
class TuningRatios:
    """
    Editable ratios and constants for the parameter calculator.

    Percent fields are whole numbers (75 means 75%). Sizes are in MB,
    timeouts in seconds.
    """
    memory_percent_for_db: int = 75

    # Connections
    max_connections: int = 100
    mem_per_connection_mb: int = 8

    # InnoDB (percent of memory left after connections)
    innodb_buffer_pool_percent: int = 75
    innodb_log_file_size_mb: int = 256
    innodb_log_buffer_size_mb: int = 16

    # Percent of memory left after the buffer pool
    join_buffer_percent: int = 10
    read_buffer_percent: int = 5
    read_rnd_buffer_percent: int = 5
    sort_buffer_percent: int = 5
    tmp_table_percent: int = 15
    max_heap_table_percent: int = 15

    # Timeouts
    connect_timeout: int = 90
    interactive_timeout: int = 90
    wait_timeout: int = 90

    # Table cache
    table_open_cache: int = 2000
    table_definition_cache_percent: int = 5
    table_cache_percent: int = 10

    @property
    def other_buffer_percents(self) -> Dict[str, int]:
        return {
            "join_buffer_percent": self.join_buffer_percent,
            "read_buffer_percent": self.read_buffer_percent,
            "read_rnd_buffer_percent": self.read_rnd_buffer_percent,
            "sort_buffer_percent": self.sort_buffer_percent,
            "tmp_table_percent": self.tmp_table_percent,
            "max_heap_table_percent": self.max_heap_table_percent,
        }

    def problems(self) -> List[str]:
        """
        Ratios that would overcommit memory or yield negative sizes.

        Returns:
            List of messages (empty if the ratios are usable)
        """
        problems = []
        percents = {
            "memory_percent_for_db": self.memory_percent_for_db,
            "innodb_buffer_pool_percent": self.innodb_buffer_pool_percent,
            "table_definition_cache_percent": self.table_definition_cache_percent,
            "table_cache_percent": self.table_cache_percent,
        }
        percents.update(self.other_buffer_percents)
        for name, value in percents.items():
            if not 0 <= value <= 100:
                problems.append(f"{name} must be between 0 and 100 (got {value})")

        for name in ("max_connections", "mem_per_connection_mb",
                     "innodb_log_file_size_mb", "innodb_log_buffer_size_mb"):
            if getattr(self, name) < 0:
                problems.append(f"{name} must not be negative (got {getattr(self, name)})")

        total = sum(self.other_buffer_percents.values())
        if total > 100:
            problems.append(
                f"buffer percentages add up to {total}%, they must not exceed 100%"
            )
        return problems

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)


@dataclass(frozen=True)
class SizingBreakdown:
    """Intermediate memory figures, all in MB."""
    db_memory: int
    connections_memory: int
    remaining_memory: int
    innodb_buffer_pool_size: int
    remaining_other_buffers: int

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)


@dataclass
class TuningParameters:
    """
    Ordered mapping of parameter name to formatted value.

    Iteration follows upsert order. The raw MB figures behind the
    formatted sizes are kept in `sizes_mb` for reporting and checks.
    """
    values: "OrderedDict[str, str]" = field(default_factory=OrderedDict)
    sizes_mb: Dict[str, int] = field(default_factory=dict)
    breakdown: Optional[SizingBreakdown] = None

    def __iter__(self) -> Iterator[str]:
        return iter(self.values)

    def __len__(self) -> int:
        return len(self.values)

    def __getitem__(self, key: str) -> str:
        return self.values[key]

    def __contains__(self, key) -> bool:
        return key in self.values

    def items(self) -> List[Tuple[str, str]]:
        return list(self.values.items())

    def keys(self) -> List[str]:
        return list(self.values.keys())

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        result: Dict[str, Any] = {"parameters": dict(self.values)}
        if self.breakdown:
            result["breakdown"] = self.breakdown.to_dict()
        return result


@dataclass
class ApplyResult:
    """What the writer did to the target file."""
    path: str
    created: bool = False
    backup_path: Optional[str] = None
    updated: List[str] = field(default_factory=list)
    inserted: List[str] = field(default_factory=list)
    unchanged: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.created or self.updated or self.inserted)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {k: v for k, v in asdict(self).items() if v is not None}
