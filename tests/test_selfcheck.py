"""Tests for the startup self-check."""

import pytest
from structlog.testing import capture_logs

import mgmtauth.protocol.selfcheck as selfcheck
from mgmtauth.protocol.middleware import AuthMiddleware
from mgmtauth.protocol.state import Phase
from mgmtauth.verifiers import with_timeout
from conftest import FakeConnection

import structlog


def test_self_check_passes():
    with capture_logs() as logs:
        assert selfcheck.security_self_check(structlog.get_logger()) is True
    assert logs[-1]["event"] == "security_self_check_passed"
    assert all(e.get("status") != "FAILED" for e in logs)


def test_self_check_fails_on_foreign_match(monkeypatch):
    monkeypatch.setattr(selfcheck, "FOREIGN_LINES", [">CLIENT:ENV,END"])
    with capture_logs():
        with pytest.raises(RuntimeError):
            selfcheck.security_self_check(structlog.get_logger())


def test_hung_verifier_with_timeout_is_denied():
    import threading
    release = threading.Event()

    def hung(u, p):
        release.wait(5)
        return True

    conn = FakeConnection()
    mw = AuthMiddleware(with_timeout(hung, 0.05))
    mw.start(conn)
    try:
        for line in [">CLIENT:CONNECT,5,0", ">CLIENT:ENV,username=alice",
                     ">CLIENT:ENV,password=secret", ">CLIENT:ENV,END"]:
            mw.consume_line(line)
    finally:
        release.set()
    assert conn.lines == ["state on", "client-deny 5 0 internal error"]
    assert mw.phase is Phase.IDLE
