from pathlib import Path

import pytest

DATA_DIR = Path(__file__).parent / "data"


@pytest.fixture
def log_path() -> Path:
    return DATA_DIR / "test.log"


@pytest.fixture
def log_lines(log_path) -> list[str]:
    return log_path.read_text(encoding="utf-8").splitlines()


@pytest.fixture(autouse=True)
def _color_enabled(monkeypatch):
    monkeypatch.delenv("NO_COLOR", raising=False)
