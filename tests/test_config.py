import pytest

from config import AppConfig, SchedulingConfig


def test_defaults():
    config = SchedulingConfig()
    assert config.week_start_day == 0
    assert config.week_start_name == "Monday"
    assert config.penalty_points == 50
    assert config.max_staff_headroom == 2
    assert config.optimizer_scope == "same_shift"
    assert config.optimizer_max_passes == 1


def test_invalid_values_rejected():
    with pytest.raises(ValueError):
        SchedulingConfig(week_start_day=7)
    with pytest.raises(ValueError):
        SchedulingConfig(optimizer_max_passes=-1)


def test_load_reads_environment(monkeypatch):
    monkeypatch.setenv("SHIFT_WEEK_START_DAY", "6")
    monkeypatch.setenv("SHIFT_OPTIMIZER_SCOPE", "same_date")
    monkeypatch.setenv("SHIFT_OPTIMIZER_MAX_PASSES", "3")
    monkeypatch.setenv("SHIFT_RESPECT_LEAVE", "no")
    monkeypatch.setenv("SHIFT_DATA_DIR", "/srv/rosters")
    monkeypatch.setenv("SHIFT_VERBOSE", "0")
    monkeypatch.setenv("SHIFT_SCHEDULE_ID", "w51")

    config = AppConfig.load()

    assert config.scheduling.week_start_name == "Sunday"
    assert config.scheduling.optimizer_scope == "same_date"
    assert config.scheduling.optimizer_max_passes == 3
    assert not config.scheduling.respect_leave_requests
    assert config.data_dir == "/srv/rosters"
    assert not config.verbose
    assert config.default_schedule_id == "w51"


def test_bad_integer_falls_back(monkeypatch):
    monkeypatch.setenv("SHIFT_WEEK_START_DAY", "monday")
    monkeypatch.delenv("SHIFT_SCHEDULE_ID", raising=False)
    config = AppConfig.load()
    assert config.scheduling.week_start_day == 0
    assert config.default_schedule_id is None
