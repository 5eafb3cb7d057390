import pytest

from mycnf_tuner.discovery import ResourceDetector, DetectorConfig
from mycnf_tuner.protocol import DetectionFailure, ErrorType

from .conftest import cpuinfo


def test_detects_memory_and_cores(fake_proc):
    resources = ResourceDetector(DetectorConfig(proc_root=fake_proc)).detect()

    assert resources.total_memory_mb == 16384
    assert resources.cpu_cores == 8
    assert resources.total_memory_gb == 16
    assert resources.active_cores == 4


def test_memory_rounds_down_to_whole_megabytes(fake_proc):
    (fake_proc / "meminfo").write_text("MemTotal:        8152940 kB\nMemFree: 1 kB\n")
    detector = ResourceDetector(DetectorConfig(proc_root=fake_proc))

    assert detector.get_total_memory_mb() == 7961


def test_missing_meminfo_is_fatal(fake_proc):
    (fake_proc / "meminfo").unlink()
    detector = ResourceDetector(DetectorConfig(proc_root=fake_proc))

    with pytest.raises(DetectionFailure) as excinfo:
        detector.detect()
    assert excinfo.value.error_type == ErrorType.DETECTION_FAILURE


def test_meminfo_without_total_is_fatal(fake_proc):
    (fake_proc / "meminfo").write_text("MemFree:         1234567 kB\n")

    with pytest.raises(DetectionFailure, match="MemTotal"):
        ResourceDetector(DetectorConfig(proc_root=fake_proc)).detect()


def test_falls_back_to_nproc(fake_proc, monkeypatch):
    (fake_proc / "cpuinfo").unlink()
    detector = ResourceDetector(DetectorConfig(proc_root=fake_proc))
    monkeypatch.setattr(detector, "_run_command", lambda cmd: "6")

    assert detector.detect().cpu_cores == 6


def test_no_cpu_count_is_fatal(fake_proc, monkeypatch):
    (fake_proc / "cpuinfo").write_text("")
    detector = ResourceDetector(DetectorConfig(proc_root=fake_proc))
    monkeypatch.setattr(detector, "_run_command", lambda cmd: "")

    with pytest.raises(DetectionFailure):
        detector.detect()


def test_overrides_skip_detection(tmp_path):
    # no /proc files at all under tmp_path
    config = DetectorConfig(proc_root=tmp_path, memory_mb=32768, cpu_cores=16)
    resources = ResourceDetector(config).detect()

    assert resources.total_memory_mb == 32768
    assert resources.cpu_cores == 16


def test_single_core_reports_one_active_core(fake_proc):
    (fake_proc / "cpuinfo").write_text(cpuinfo(1))
    resources = ResourceDetector(DetectorConfig(proc_root=fake_proc)).detect()

    assert resources.cpu_cores == 1
    assert resources.active_cores == 1
