import json
from pathlib import Path

import pytest

from methoddocs.config import Settings, SettingsError, load_settings


def test_defaults() -> None:
    settings = load_settings(environ={})

    assert settings.store_backend == "sqlite"
    assert settings.port == 5000
    assert settings.cors_origins == ["*"]
    assert settings.api_url == "http://127.0.0.1:5000"


def test_environment_overrides() -> None:
    settings = load_settings(environ={
        "METHODDOCS_STORE": "memory",
        "METHODDOCS_DB_PATH": "/tmp/x.sqlite",
        "METHODDOCS_CORS_ORIGINS": "http://localhost:3000, https://docs.example.com",
        "METHODDOCS_LOG_LEVEL": "DEBUG",
        "PORT": "8080",
    })

    assert settings.store_backend == "memory"
    assert settings.db_path == "/tmp/x.sqlite"
    assert settings.cors_origins == ["http://localhost:3000", "https://docs.example.com"]
    assert settings.log_level == "debug"
    assert settings.port == 8080


def test_prefixed_port_wins_over_plain_port() -> None:
    settings = load_settings(environ={"PORT": "8080", "METHODDOCS_PORT": "9090"})

    assert settings.port == 9090


def test_file_then_environment(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"host": "0.0.0.0", "port": 7000, "cors_origins": ["http://a"]}),
                    encoding="utf-8")

    settings = load_settings(path, environ={"METHODDOCS_PORT": "7001"})

    assert settings.host == "0.0.0.0"
    assert settings.cors_origins == ["http://a"]
    assert settings.port == 7001


def test_settings_path_from_environment(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"store_backend": "memory"}), encoding="utf-8")

    settings = load_settings(environ={"METHODDOCS_SETTINGS": str(path)})

    assert settings.store_backend == "memory"


@pytest.mark.parametrize("environ", [
    {"METHODDOCS_STORE": "mongo"},
    {"PORT": "http"},
    {"PORT": "70000"},
    {"METHODDOCS_LOG_LEVEL": "chatty"},
])
def test_invalid_values_raise(environ: dict) -> None:
    with pytest.raises(SettingsError):
        load_settings(environ=environ)


def test_unreadable_file_raises(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(SettingsError):
        load_settings(path, environ={})


def test_round_trip_dict() -> None:
    settings = Settings(port=6000, cors_origins=["http://a", "http://b"])

    assert Settings.from_dict(settings.to_dict()) == settings
