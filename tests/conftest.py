import os
from pathlib import Path

import pytest

from tocsync.toc import persistence


class FakeTrash:
    """Stand-in for send2trash that remembers what it discarded."""

    def __init__(self, error: Exception | None = None):
        self.error = error
        self.discarded = []

    def __call__(self, path):
        if self.error is not None:
            raise self.error
        path = Path(path)
        self.discarded.append((path, path.read_text(encoding="utf-8")))
        os.remove(path)


@pytest.fixture
def trash(monkeypatch):
    fake = FakeTrash()
    monkeypatch.setattr(persistence, "send2trash", fake)
    return fake


@pytest.fixture
def broken_trash(monkeypatch):
    fake = FakeTrash(error=PermissionError("trash is not available"))
    monkeypatch.setattr(persistence, "send2trash", fake)
    return fake
