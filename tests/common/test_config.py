from __future__ import annotations

from datetime import timedelta

import pytest

from dmphub.config import (
    ConfigurationError,
    MissingConfigurationError,
    env_seconds,
    get_registry_config,
    optional_env_var,
    require_env_vars,
)


def test_require_env_vars_returns_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", " value ")

    result = require_env_vars(["EXAMPLE_VAR"])

    assert result["EXAMPLE_VAR"] == "value"


def test_require_env_vars_raises_when_any_missing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MISSING_VAR", raising=False)
    monkeypatch.setenv("BLANK_VAR", "   ")

    with pytest.raises(MissingConfigurationError) as exc:
        require_env_vars(["MISSING_VAR", "BLANK_VAR"])

    assert "BLANK_VAR, MISSING_VAR" in str(exc.value)


def test_optional_env_var_falls_back_on_blank(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "  ")

    assert optional_env_var("EXAMPLE_VAR", "default") == "default"


def test_env_seconds(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("WINDOW", raising=False)
    assert env_seconds("WINDOW", 60.0) == 60.0

    monkeypatch.setenv("WINDOW", "90")
    assert env_seconds("WINDOW", 60.0) == 90.0

    monkeypatch.setenv("WINDOW", "soon")
    with pytest.raises(ConfigurationError):
        env_seconds("WINDOW", 60.0)

    monkeypatch.setenv("WINDOW", "-1")
    with pytest.raises(ConfigurationError):
        env_seconds("WINDOW", 60.0)


def test_registry_config_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DMP_ID_SHOULDER", "10.48321/D1")
    monkeypatch.setenv("DMP_ID_BASE_URL", "https://doi.org")
    monkeypatch.setenv("DMP_API_BASE_URL", "https://api.example.org")
    monkeypatch.setenv("DMPHUB_VERSION_WINDOW_SECONDS", "1800")

    config = get_registry_config()

    assert config.dmp_id_shoulder == "10.48321/D1"
    assert config.dmp_id_base_url == "https://doi.org/"
    assert config.api_base_url == "https://api.example.org/"
    assert config.version_window == timedelta(minutes=30)


def test_registry_config_requires_a_shoulder(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DMP_ID_SHOULDER", raising=False)

    with pytest.raises(MissingConfigurationError):
        get_registry_config()
