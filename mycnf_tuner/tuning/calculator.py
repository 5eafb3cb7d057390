"""
Parameter calculator - derives MySQL/MariaDB settings from host resources.

All arithmetic is integer MB with truncating division.
"""

from collections import OrderedDict

from ..protocol.context import HostResources
from ..protocol.errors import ConfigurationError, SizingConflict
from ..protocol.tuning import (
    TuningRatios,
    TuningParameters,
    SizingBreakdown,
    HARDENING_DEFAULTS,
)

MAX_BUFFER_POOL_INSTANCES = 8


def format_size(size_mb: int) -> str:
    """Render MB as whole gigabytes from 1024 MB up, else as megabytes."""
    if size_mb >= 1024:
        return f"{size_mb // 1024}G"
    return f"{size_mb}M"


def percent_of(value: int, percent: int) -> int:
    return value * percent // 100


def compute_parameters(resources: HostResources, ratios: TuningRatios) -> TuningParameters:
    """
    Compute the tuning parameters for a host.

    Raises:
        ConfigurationError: ratios would overcommit memory
        SizingConflict: connection memory leaves nothing for InnoDB and caches
    """
    problems = ratios.problems()
    if problems:
        raise ConfigurationError(
            "Invalid tuning ratios:\n" + "\n".join(f"  - {p}" for p in problems)
        )

    db_memory = percent_of(resources.total_memory_mb, ratios.memory_percent_for_db)
    connections_memory = ratios.max_connections * ratios.mem_per_connection_mb

    if connections_memory >= db_memory:
        raise SizingConflict(
            connections_memory=connections_memory,
            db_memory=db_memory,
            max_connections=ratios.max_connections,
            mem_per_connection_mb=ratios.mem_per_connection_mb,
        )

    remaining_memory = db_memory - connections_memory
    innodb_buffer_pool_size = percent_of(remaining_memory, ratios.innodb_buffer_pool_percent)
    innodb_buffer_pool_instances = max(
        1, min(MAX_BUFFER_POOL_INSTANCES, innodb_buffer_pool_size // 1024)
    )
    remaining_other_buffers = remaining_memory - innodb_buffer_pool_size

    sizes_mb = {
        "max_heap_table_size": percent_of(remaining_other_buffers, ratios.max_heap_table_percent),
        "tmp_table_size": percent_of(remaining_other_buffers, ratios.tmp_table_percent),
        "sort_buffer_size": percent_of(remaining_other_buffers, ratios.sort_buffer_percent),
        "read_rnd_buffer_size": percent_of(remaining_other_buffers, ratios.read_rnd_buffer_percent),
        "read_buffer_size": percent_of(remaining_other_buffers, ratios.read_buffer_percent),
        "join_buffer_size": percent_of(remaining_other_buffers, ratios.join_buffer_percent),
        "innodb_log_buffer_size": ratios.innodb_log_buffer_size_mb,
        "innodb_log_file_size": ratios.innodb_log_file_size_mb,
        "innodb_buffer_pool_size": innodb_buffer_pool_size,
        "query_cache_size": percent_of(db_memory, 10),
    }

    values = OrderedDict()
    values["table_open_cache"] = str(ratios.table_open_cache)
    values["table_definition_cache"] = str(
        percent_of(db_memory, ratios.table_definition_cache_percent)
    )
    values["table_cache"] = str(percent_of(db_memory, ratios.table_cache_percent))
    for key in ("max_heap_table_size", "tmp_table_size", "sort_buffer_size",
                "read_rnd_buffer_size", "read_buffer_size", "join_buffer_size"):
        values[key] = format_size(sizes_mb[key])
    values["thread_cache_size"] = str(percent_of(ratios.max_connections, 10))
    values["innodb_log_buffer_size"] = format_size(sizes_mb["innodb_log_buffer_size"])
    values["innodb_log_file_size"] = format_size(sizes_mb["innodb_log_file_size"])
    values["innodb_buffer_pool_instances"] = str(innodb_buffer_pool_instances)
    values["innodb_buffer_pool_size"] = format_size(innodb_buffer_pool_size)
    values["max_connections"] = str(ratios.max_connections)
    values["wait_timeout"] = str(ratios.wait_timeout)
    values["interactive_timeout"] = str(ratios.interactive_timeout)
    values["connect_timeout"] = str(ratios.connect_timeout)

    for key, value in HARDENING_DEFAULTS:
        values[key] = value

    breakdown = SizingBreakdown(
        db_memory=db_memory,
        connections_memory=connections_memory,
        remaining_memory=remaining_memory,
        innodb_buffer_pool_size=innodb_buffer_pool_size,
        remaining_other_buffers=remaining_other_buffers,
    )

    return TuningParameters(values=values, sizes_mb=sizes_mb, breakdown=breakdown)


def report_values(params: TuningParameters) -> "OrderedDict[str, str]":
    """
    Values shown to the operator, in report order.

    query_cache_size is reported only; it is never written to the file.
    """
    report = OrderedDict()
    for key in ("max_connections", "innodb_buffer_pool_size",
                "innodb_buffer_pool_instances", "innodb_log_file_size",
                "innodb_log_buffer_size", "thread_cache_size"):
        report[key] = params[key]
    report["query_cache_size"] = format_size(params.sizes_mb["query_cache_size"])
    for key in ("join_buffer_size", "read_buffer_size", "read_rnd_buffer_size",
                "sort_buffer_size", "tmp_table_size", "max_heap_table_size",
                "table_cache", "table_definition_cache", "table_open_cache",
                "connect_timeout", "interactive_timeout", "wait_timeout"):
        report[key] = params[key]
    return report
