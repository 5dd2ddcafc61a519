import logging
import os
from pathlib import Path

import pytest

from clusterbench.logging_utils import get_logger

REPO_ROOT = Path(__file__).resolve().parents[1]


@pytest.fixture
def pythonpath(monkeypatch):
    """Make the package importable by ``python -m`` subprocesses."""
    current = os.environ.get("PYTHONPATH")
    value = str(REPO_ROOT) if not current else os.pathsep.join([str(REPO_ROOT), current])
    monkeypatch.setenv("PYTHONPATH", value)
    return value


class _Collect(logging.Handler):
    def __init__(self):
        super().__init__(level=logging.DEBUG)
        self.records: list[logging.LogRecord] = []

    def emit(self, record):
        self.records.append(record)


@pytest.fixture
def pipeline_log():
    """Records emitted by the ``clusterbench.pipeline`` logger."""
    logger = get_logger("clusterbench.pipeline")
    handler = _Collect()
    logger.addHandler(handler)
    previous = logger.level
    logger.setLevel(logging.INFO)
    yield handler.records
    logger.removeHandler(handler)
    logger.setLevel(previous)
