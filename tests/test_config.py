"""Tests for settings loading."""

import pytest

from mgmtauth.core.config import ManagementSettings
from mgmtauth.core.errors import ConfigError


def test_defaults():
    s = ManagementSettings()
    assert (s.host, s.port) == ("127.0.0.1", 7505)
    assert s.password is None
    assert s.verify_timeout_s is None
    assert s.log_level == "info"
    assert s.strict is False


def test_from_env():
    s = ManagementSettings.from_env(environ={
        "MGMTAUTH_HOST": "10.0.0.1",
        "MGMTAUTH_PORT": "7000",
        "MGMTAUTH_VERIFY_TIMEOUT_S": "2.5",
        "MGMTAUTH_LOG_LEVEL": "DEBUG",
        "MGMTAUTH_STRICT": "true",
        "MGMTAUTH_PASSWORD": "",
        "OTHER_PORT": "1",
    })
    assert s.host == "10.0.0.1"
    assert s.port == 7000
    assert s.verify_timeout_s == 2.5
    assert s.log_level == "debug"
    assert s.strict is True
    assert s.password is None


def test_load_ignores_unset_values():
    s = ManagementSettings.load(host=None, port=8000)
    assert s.host == "127.0.0.1"
    assert s.port == 8000


@pytest.mark.parametrize("values", [
    {"port": 0},
    {"port": 70000},
    {"verify_timeout_s": 0},
    {"log_level": "loud"},
    {"host": "  "},
])
def test_invalid_values_raise_config_error(values):
    with pytest.raises(ConfigError):
        ManagementSettings.load(**values)


def test_from_env_invalid_port():
    with pytest.raises(ConfigError):
        ManagementSettings.from_env(environ={"MGMTAUTH_PORT": "http"})
