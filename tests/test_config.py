import argparse

import pytest

from mycnf_tuner.config import Config, create_example_config, TARGET_ENV_VAR
from mycnf_tuner.protocol import TuningRatios, ConfigurationError


def write_toml(tmp_path, text):
    path = tmp_path / "mycnf-tuner.toml"
    path.write_text(text)
    return path


def test_defaults():
    config = Config.load()

    assert config.target.path == "/etc/mysql/my.cnf"
    assert config.target.section == "mysqld"
    assert config.validate() == []
    assert config.ratios() == TuningRatios()


def test_load_from_toml(tmp_path):
    path = write_toml(tmp_path, """
[target]
path = "/srv/mysql/my.cnf"

[memory]
max_connections = 250
mem_per_connection_mb = 12

[buffers]
join_percent = 20

[table_cache]
open_cache = 4000
""")
    config = Config.load(str(path))
    ratios = config.ratios()

    assert config._config_file == path
    assert config.target.path == "/srv/mysql/my.cnf"
    assert config.target.section == "mysqld"
    assert ratios.max_connections == 250
    assert ratios.mem_per_connection_mb == 12
    assert ratios.join_buffer_percent == 20
    assert ratios.read_buffer_percent == 5
    assert ratios.table_open_cache == 4000


def test_missing_explicit_file(tmp_path):
    with pytest.raises(ConfigurationError, match="not found"):
        Config.load(str(tmp_path / "missing.toml"))


def test_invalid_toml(tmp_path):
    path = write_toml(tmp_path, "[memory\nmax_connections = ")
    with pytest.raises(ConfigurationError, match="Invalid TOML"):
        Config.load(str(path))


def test_unknown_section_and_option(tmp_path):
    with pytest.raises(ConfigurationError, match="postgres"):
        Config.load(str(write_toml(tmp_path, "[postgres]\nshared_buffers = 1\n")))

    with pytest.raises(ConfigurationError, match="max_conections"):
        Config.load(str(write_toml(tmp_path, "[memory]\nmax_conections = 1\n")))


def test_env_overrides_file(tmp_path, monkeypatch):
    path = write_toml(tmp_path, '[target]\npath = "/from/file.cnf"\n')
    monkeypatch.setenv(TARGET_ENV_VAR, "/from/env.cnf")

    assert Config.load(str(path)).target.path == "/from/env.cnf"


def test_args_override_everything(tmp_path, monkeypatch):
    path = write_toml(tmp_path, "[memory]\nmax_connections = 250\n")
    monkeypatch.setenv(TARGET_ENV_VAR, "/from/env.cnf")
    args = argparse.Namespace(
        file="/from/args.cnf", section=None, memory_mb=4096, cpus=None,
        memory_percent=60, max_connections=50, mem_per_connection=None,
        buffer_pool_percent=None, quiet=True, verbose=False,
    )

    config = Config.load(str(path)).override_from_args(args)

    assert config.target.path == "/from/args.cnf"
    assert config.host.memory_mb == 4096
    assert config.host.cpus is None
    assert config.memory.db_percent == 60
    assert config.memory.max_connections == 50
    assert config.memory.mem_per_connection_mb == 8
    assert config.output.quiet


def test_validate_reports_every_problem():
    config = Config()
    config.memory.db_percent = 0
    config.memory.max_connections = -1
    config.innodb.buffer_pool_percent = 150
    config.timeouts.wait = "90"

    errors = config.validate()

    assert any("memory.db_percent" in e for e in errors)
    assert any("memory.max_connections" in e for e in errors)
    assert any("innodb.buffer_pool_percent" in e for e in errors)
    assert any("timeouts.wait" in e for e in errors)


def test_other_buffers_cannot_exceed_remaining_memory():
    config = Config()
    config.buffers.tmp_table_percent = 50
    config.buffers.max_heap_table_percent = 50

    errors = config.validate()

    assert len(errors) == 1
    assert "125%" in errors[0]


def test_bad_section_name():
    config = Config()
    config.target.section = "[mysqld]"
    assert config.validate()


def test_example_config_round_trip(tmp_path):
    path = create_example_config(str(tmp_path / "example.toml"))
    config = Config.load(str(path))

    assert config.validate() == []
    assert config.ratios() == TuningRatios()

    with pytest.raises(FileExistsError):
        create_example_config(str(path))


def test_summary_mentions_target():
    summary = Config().summary()
    assert "Config: (defaults)" in summary
    assert "/etc/mysql/my.cnf [mysqld]" in summary
