from pathlib import Path

import pytest

from agents.base_agent import BaseAgent
from benchmark import clear_profile_data
from storage import ScheduleRepository

SAMPLE_DATA_DIR = Path(__file__).resolve().parent.parent / "data"


@pytest.fixture(autouse=True)
def _reset_shared_state():
    yield
    BaseAgent.close_file_logging()
    clear_profile_data()


@pytest.fixture
def repository():
    return ScheduleRepository()


@pytest.fixture
def sample_data_dir():
    return SAMPLE_DATA_DIR
