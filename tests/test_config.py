"""Tests for settings loading."""

import pytest

from contribmetrics.config import DEFAULT_API_URL, DEFAULT_TIMEOUT, load_settings


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    # setenv first so values written by load_dotenv are undone after each test
    for name in ("CONTRIB_API_URL", "CONTRIB_API_TOKEN", "CONTRIB_API_TIMEOUT"):
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return tmp_path / ".env"


class TestLoadSettings:
    def test_defaults(self, clean_env):
        settings = load_settings(clean_env)
        assert settings.api_url == DEFAULT_API_URL
        assert settings.token is None
        assert settings.timeout == DEFAULT_TIMEOUT

    def test_from_environment(self, clean_env, monkeypatch):
        monkeypatch.setenv("CONTRIB_API_URL", "https://dash.example.org/api/")
        monkeypatch.setenv("CONTRIB_API_TOKEN", "secret")
        monkeypatch.setenv("CONTRIB_API_TIMEOUT", "30")
        settings = load_settings(clean_env)
        assert settings.api_url == "https://dash.example.org/api"
        assert settings.token == "secret"
        assert settings.timeout == 30

    def test_from_env_file(self, clean_env):
        clean_env.write_text("CONTRIB_API_TOKEN=from-file\n")
        settings = load_settings(clean_env)
        assert settings.token == "from-file"

    @pytest.mark.parametrize("value", ["soon", "0", "-5"])
    def test_bad_timeout(self, clean_env, monkeypatch, value):
        monkeypatch.setenv("CONTRIB_API_TIMEOUT", value)
        with pytest.raises(ValueError):
            load_settings(clean_env)
