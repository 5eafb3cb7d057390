from datetime import datetime

import pytest

import mycnf_tuner.config


MEMINFO = """MemTotal:       16777216 kB
MemFree:         1234567 kB
MemAvailable:    8765432 kB
Buffers:          123456 kB
Cached:          2345678 kB
"""


def cpuinfo(cores):
    blocks = []
    for n in range(cores):
        blocks.append(
            f"processor\t: {n}\n"
            "vendor_id\t: GenuineIntel\n"
            "model name\t: Intel(R) Xeon(R) CPU E5-2680 v4 @ 2.40GHz\n"
        )
    return "\n".join(blocks)


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """Keep the host's config files and environment out of the tests."""
    monkeypatch.delenv(mycnf_tuner.config.TARGET_ENV_VAR, raising=False)
    monkeypatch.setattr(mycnf_tuner.config, "CONFIG_SEARCH_PATHS", [])


@pytest.fixture
def fake_proc(tmp_path):
    proc = tmp_path / "proc"
    proc.mkdir()
    (proc / "meminfo").write_text(MEMINFO)
    (proc / "cpuinfo").write_text(cpuinfo(8))
    return proc


@pytest.fixture
def fixed_clock():
    return lambda: datetime(2024, 1, 2, 3, 4, 5)


@pytest.fixture
def cnf_path(tmp_path):
    return tmp_path / "etc" / "mysql" / "my.cnf"
