import pytest

from quotealert.settings import ConfigError, env_bool, env_float, monitoring_from_env

ENV_KEYS = (
    "QUOTE_CHECK_INTERVAL_S",
    "QUOTE_FETCH_TIMEOUT_S",
    "ALERT_COOLDOWN_ENABLED",
    "ALERT_COOLDOWN_MINUTES",
    "ALERT_REQUIRE_CONFIGURED_DISPATCHER",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for k in ENV_KEYS:
        monkeypatch.delenv(k, raising=False)


def test_defaults():
    s = monitoring_from_env()
    assert s.check_interval_s == 60.0
    assert s.cooldown_enabled is True
    assert s.cooldown_seconds == 3600.0
    assert s.require_configured_dispatcher is False


def test_overrides(monkeypatch):
    monkeypatch.setenv("QUOTE_CHECK_INTERVAL_S", "15")
    monkeypatch.setenv("ALERT_COOLDOWN_ENABLED", "false")
    monkeypatch.setenv("ALERT_COOLDOWN_MINUTES", "0.5")
    monkeypatch.setenv("ALERT_REQUIRE_CONFIGURED_DISPATCHER", "yes")
    s = monitoring_from_env()
    assert s.check_interval_s == 15.0
    assert s.cooldown_enabled is False
    assert s.cooldown_seconds == 30.0
    assert s.require_configured_dispatcher is True


@pytest.mark.parametrize("value", ["0", "-5", "abc", "nan", "inf", "-inf"])
def test_bad_interval_is_fatal(monkeypatch, value):
    monkeypatch.setenv("QUOTE_CHECK_INTERVAL_S", value)
    with pytest.raises(ConfigError):
        monitoring_from_env()


def test_zero_cooldown_allowed_negative_rejected(monkeypatch):
    monkeypatch.setenv("ALERT_COOLDOWN_MINUTES", "0")
    assert monitoring_from_env().cooldown_seconds == 0.0
    monkeypatch.setenv("ALERT_COOLDOWN_MINUTES", "-1")
    with pytest.raises(ConfigError):
        monitoring_from_env()


def test_env_bool_rejects_garbage(monkeypatch):
    monkeypatch.setenv("SOME_FLAG", "maybe")
    with pytest.raises(ConfigError):
        env_bool("SOME_FLAG", True)


def test_blank_values_fall_back_to_default(monkeypatch):
    monkeypatch.setenv("SOME_NUM", "   ")
    assert env_float("SOME_NUM", 7.0) == 7.0


@pytest.mark.parametrize("value", ["nan", "inf"])
def test_non_finite_cooldown_is_fatal(monkeypatch, value):
    monkeypatch.setenv("ALERT_COOLDOWN_MINUTES", value)
    with pytest.raises(ConfigError):
        monitoring_from_env()
