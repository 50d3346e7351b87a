# tests/conftest.py
from pathlib import Path

import pytest

DATA_DIR = Path(__file__).resolve().parent / "data"


def read_data(name: str) -> str:
    return (DATA_DIR / name).read_text(encoding="utf-8")


@pytest.fixture
def data_dir() -> Path:
    return DATA_DIR
