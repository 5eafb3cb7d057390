import dataclasses

import pytest

from mycnf_tuner.protocol import (
    HostResources,
    TuningRatios,
    SizingConflict,
    ConfigurationError,
    ErrorType,
    MANAGED_KEYS,
)
from mycnf_tuner.tuning import compute_parameters, format_size, report_values


OTHER_BUFFER_KEYS = (
    "join_buffer_size", "read_buffer_size", "read_rnd_buffer_size",
    "sort_buffer_size", "tmp_table_size", "max_heap_table_size",
)


@pytest.mark.parametrize("size_mb, expected", [
    (0, "0M"),
    (16, "16M"),
    (1023, "1023M"),
    (1024, "1G"),
    (2047, "1G"),
    (2048, "2G"),
    (8616, "8G"),
])
def test_format_size(size_mb, expected):
    assert format_size(size_mb) == expected


def test_sixteen_gigabyte_host():
    params = compute_parameters(HostResources(16384, 8), TuningRatios())
    b = params.breakdown

    assert b.db_memory == 12288
    assert b.connections_memory == 800
    assert b.remaining_memory == 11488
    assert b.innodb_buffer_pool_size == 8616
    assert b.remaining_other_buffers == 2872

    assert params["innodb_buffer_pool_size"] == "8G"
    assert params["innodb_buffer_pool_instances"] == "8"
    assert params["join_buffer_size"] == "287M"
    assert params["read_buffer_size"] == "143M"
    assert params["read_rnd_buffer_size"] == "143M"
    assert params["sort_buffer_size"] == "143M"
    assert params["tmp_table_size"] == "430M"
    assert params["max_heap_table_size"] == "430M"
    assert params["thread_cache_size"] == "10"
    assert params["table_cache"] == "1228"
    assert params["table_definition_cache"] == "614"
    assert params["innodb_log_file_size"] == "256M"
    assert params["innodb_log_buffer_size"] == "16M"


def test_passthrough_values():
    ratios = TuningRatios(table_open_cache=4000, connect_timeout=10,
                          interactive_timeout=20, wait_timeout=30, max_connections=150)
    params = compute_parameters(HostResources(16384, 8), ratios)

    assert params["table_open_cache"] == "4000"
    assert params["connect_timeout"] == "10"
    assert params["interactive_timeout"] == "20"
    assert params["wait_timeout"] == "30"
    assert params["max_connections"] == "150"
    assert params["thread_cache_size"] == "15"


def test_sizing_conflict_aborts():
    ratios = TuningRatios(max_connections=2000, mem_per_connection_mb=10)

    with pytest.raises(SizingConflict) as excinfo:
        compute_parameters(HostResources(4096, 4), ratios)

    error = excinfo.value
    assert error.db_memory == 3072
    assert error.connections_memory == 20000
    assert error.error_type == ErrorType.SIZING_CONFLICT
    assert error.exit_code != 0
    assert "20000" in error.message and "3072" in error.message


def test_connections_equal_to_budget_is_a_conflict():
    # 1000 MB * 75% = 750 MB = 75 connections * 10 MB
    ratios = TuningRatios(max_connections=75, mem_per_connection_mb=10)
    with pytest.raises(SizingConflict):
        compute_parameters(HostResources(1000, 1), ratios)


def test_buffer_pool_instances_floor_to_one():
    params = compute_parameters(HostResources(2048, 2), TuningRatios())

    assert params.breakdown.innodb_buffer_pool_size == 552
    assert params["innodb_buffer_pool_instances"] == "1"
    assert params["innodb_buffer_pool_size"] == "552M"


def test_buffer_pool_instances_capped_at_eight():
    params = compute_parameters(HostResources(262144, 64), TuningRatios())
    assert params["innodb_buffer_pool_instances"] == "8"


@pytest.mark.parametrize("total_mb", [1100, 1536, 2048, 3000, 4096, 8192, 16384, 65536, 1048576])
def test_no_overcommit(total_mb):
    params = compute_parameters(HostResources(total_mb, 4), TuningRatios())
    b = params.breakdown

    others = sum(params.sizes_mb[key] for key in OTHER_BUFFER_KEYS)
    assert b.connections_memory + b.innodb_buffer_pool_size + others <= b.db_memory


def test_parameters_follow_upsert_order():
    params = compute_parameters(HostResources(16384, 8), TuningRatios())
    assert tuple(params.keys()) == MANAGED_KEYS


def test_hardening_defaults_included():
    params = compute_parameters(HostResources(16384, 8), TuningRatios())

    assert params["slow-query-log-file"] == "/var/log/mysql/mysql-slow.log"
    assert params["skip-name-resolve"] == "1"
    assert params["character-set-server"] == "utf8mb4"
    assert params["collation-server"] == "utf8mb4_general_ci"
    assert params["performance_schema"] == "ON"


def test_query_cache_is_reported_not_written():
    params = compute_parameters(HostResources(16384, 8), TuningRatios())
    report = report_values(params)

    assert report["query_cache_size"] == "1G"
    assert "query_cache_size" not in params
    assert "thread_concurrency" not in report


def test_ratios_are_immutable():
    ratios = TuningRatios()
    with pytest.raises(dataclasses.FrozenInstanceError):
        ratios.max_connections = 5


def test_overcommitting_buffer_ratios_rejected():
    ratios = TuningRatios(tmp_table_percent=100, max_heap_table_percent=100,
                          join_buffer_percent=100)

    with pytest.raises(ConfigurationError) as excinfo:
        compute_parameters(HostResources(16384, 8), ratios)

    assert "315%" in excinfo.value.message
    assert excinfo.value.error_type == ErrorType.INVALID_CONFIGURATION


def test_percent_out_of_range_rejected():
    ratios = TuningRatios(innodb_buffer_pool_percent=150)

    with pytest.raises(ConfigurationError, match="innodb_buffer_pool_percent"):
        compute_parameters(HostResources(16384, 8), ratios)


def test_default_ratios_have_no_problems():
    assert TuningRatios().problems() == []
    assert sum(TuningRatios().other_buffer_percents.values()) == 55
