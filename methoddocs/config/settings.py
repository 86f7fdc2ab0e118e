"""Settings: configuration for the API server and the terminal client

Resolution order (later wins):
1. Dataclass defaults
2. JSON settings file (explicit path or METHODDOCS_SETTINGS)
3. Environment variables
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional

logger = logging.getLogger(__name__)

STORE_BACKENDS = ("sqlite", "memory")
LOG_LEVELS = ("debug", "info", "warning", "error")


class SettingsError(ValueError):
    """Raised when a configuration value is invalid"""
    pass


@dataclass
class Settings:
    """Settings: global configuration"""

    store_backend: str = "sqlite"
    db_path: str = "store/methods.sqlite"

    host: str = "127.0.0.1"
    port: int = 5000
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "info"

    # Base URL the terminal client talks to
    api_url: str = "http://127.0.0.1:5000"

    def validate(self) -> "Settings":
        if self.store_backend not in STORE_BACKENDS:
            raise SettingsError(
                f"store_backend must be one of {', '.join(STORE_BACKENDS)} (got {self.store_backend!r})"
            )
        if not 0 < self.port < 65536:
            raise SettingsError(f"port out of range: {self.port}")
        if self.log_level not in LOG_LEVELS:
            raise SettingsError(
                f"log_level must be one of {', '.join(LOG_LEVELS)} (got {self.log_level!r})"
            )
        return self

    def to_dict(self) -> Dict:
        """Convert to dictionary"""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping) -> "Settings":
        """Create from dictionary"""
        defaults = cls()
        return cls(
            store_backend=data.get("store_backend", defaults.store_backend),
            db_path=data.get("db_path", defaults.db_path),
            host=data.get("host", defaults.host),
            port=_as_int("port", data.get("port", defaults.port)),
            cors_origins=_as_list(data.get("cors_origins", defaults.cors_origins)),
            log_level=str(data.get("log_level", defaults.log_level)).lower(),
            api_url=data.get("api_url", defaults.api_url),
        )


# Environment variable -> settings key
ENV_VARS = {
    "METHODDOCS_STORE": "store_backend",
    "METHODDOCS_DB_PATH": "db_path",
    "METHODDOCS_HOST": "host",
    "PORT": "port",
    "METHODDOCS_PORT": "port",
    "METHODDOCS_CORS_ORIGINS": "cors_origins",
    "METHODDOCS_LOG_LEVEL": "log_level",
    "METHODDOCS_API_URL": "api_url",
}


def load_settings(
    path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """
    Load settings from file and environment

    Args:
        path: JSON settings file; defaults to $METHODDOCS_SETTINGS if set
        environ: Environment mapping (os.environ by default)

    Returns:
        Validated Settings

    Raises:
        SettingsError: If the file is unreadable or a value is invalid
    """
    env = os.environ if environ is None else environ
    data: Dict = {}

    if path is None and env.get("METHODDOCS_SETTINGS"):
        path = Path(env["METHODDOCS_SETTINGS"])

    if path is not None:
        try:
            with open(path, "r", encoding="utf-8") as f:
                loaded = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise SettingsError(f"Failed to load settings from {path}: {e}") from e
        if not isinstance(loaded, dict):
            raise SettingsError(f"Settings file must contain a JSON object: {path}")
        data.update(loaded)

    # METHODDOCS_PORT is listed after PORT so it takes precedence
    for var, key in ENV_VARS.items():
        if env.get(var):
            data[key] = env[var]

    settings = Settings.from_dict(data).validate()
    logger.debug(f"Loaded settings: {settings.to_dict()}")
    return settings


def _as_int(key: str, value) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise SettingsError(f"{key} must be an integer (got {value!r})") from e


def _as_list(value) -> List[str]:
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return [str(item) for item in value]
