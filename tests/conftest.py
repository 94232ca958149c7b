from __future__ import annotations

import pytest
import structlog

class FakeConnection:
    """Records every command line written by the code under test."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.buffer = b""

    def write(self, data: bytes) -> int:
        if self.fail:
            raise OSError("broken pipe")
        self.buffer += data
        return len(data)

    @property
    def lines(self) -> list[str]:
        return self.buffer.decode("utf-8").splitlines()

class RecordingVerifier:
    def __init__(self, result: bool = True, error: Exception | None = None):
        self.result = result
        self.error = error
        self.calls: list[tuple[str, str]] = []

    def __call__(self, username: str, password: str) -> bool:
        self.calls.append((username, password))
        if self.error is not None:
            raise self.error
        return self.result

def must_not_be_called(username: str, password: str) -> bool:
    pytest.fail(f"verifier called with {username!r}")

@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()

@pytest.fixture
def conn():
    return FakeConnection()

@pytest.fixture
def verifier():
    return RecordingVerifier()
