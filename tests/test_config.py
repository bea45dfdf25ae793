"""
Unit tests for configuration module.
"""
import pytest
from pydantic import ValidationError

from core.config import Settings, get_settings, reset_settings

REQUIRED = {
    "OPENAI_API_KEY": "test-key",
    "FIREFLY_URL": "http://firefly.test",
    "FIREFLY_PERSONAL_TOKEN": "token",
}

OPTIONAL = [
    "APP_NAME", "HOST", "PORT", "LOG_LEVEL", "ENABLE_UI", "STATIC_DIR", "FIREFLY_TAG",
    "FIREFLY_TIMEOUT", "OPENAI_BASE_URL", "OPENAI_MODEL", "OPENAI_TIMEOUT", "OPENAI_VERIFY_SSL",
    "JOB_TIMEOUT_SECONDS", "CLEANUP_INTERVAL_SECONDS", "JOB_RETENTION_SECONDS", "SUBSCRIBER_QUEUE_SIZE",
]


@pytest.fixture
def env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)  # no stray .env file
    for key in OPTIONAL:
        monkeypatch.delenv(key, raising=False)
    for key, value in REQUIRED.items():
        monkeypatch.setenv(key, value)
    return monkeypatch


def test_settings_defaults(env):
    """Test default configuration values."""
    settings = get_settings()
    assert settings.host == "0.0.0.0"
    assert settings.port == 3000
    assert settings.log_level == "INFO"
    assert settings.enable_ui is False
    assert settings.openai_model == "gpt-3.5-turbo"
    assert settings.openai_base_url == "https://api.openai.com/v1"
    assert settings.firefly_tag == "AI categorized"
    assert settings.job_timeout_seconds == 30
    assert settings.cleanup_interval_seconds == 3600
    assert settings.job_retention_seconds == 86400


def test_settings_require_credentials(env):
    env.delenv("OPENAI_API_KEY")
    with pytest.raises(ValidationError):
        get_settings()


def test_settings_validation_port(env):
    """Test port validation."""
    env.setenv("PORT", "99999")
    with pytest.raises(ValidationError):
        get_settings()


def test_settings_validation_log_level(env):
    """Test log level validation."""
    env.setenv("LOG_LEVEL", "INVALID")
    with pytest.raises(ValidationError):
        get_settings()


def test_settings_log_level_is_uppercased(env):
    env.setenv("LOG_LEVEL", "debug")
    assert get_settings().log_level == "DEBUG"


def test_settings_reject_non_positive_timeout(env):
    env.setenv("JOB_TIMEOUT_SECONDS", "0")
    with pytest.raises(ValidationError):
        get_settings()


def test_settings_strip_trailing_slash(env):
    env.setenv("FIREFLY_URL", "http://firefly.test/")
    assert get_settings().firefly_url == "http://firefly.test"


def test_static_path_only_when_enabled(env, tmp_path):
    (tmp_path / "public").mkdir()
    assert get_settings().static_path() is None

    reset_settings()
    env.setenv("ENABLE_UI", "true")
    assert get_settings().static_path() is not None


def test_settings_singleton(env):
    """Test settings singleton behavior."""
    settings1 = get_settings()
    settings2 = get_settings()
    assert settings1 is settings2

    reset_settings()
    assert get_settings() is not settings1


def test_settings_accept_explicit_values():
    settings = Settings(**REQUIRED, PORT=8080)
    assert settings.port == 8080
