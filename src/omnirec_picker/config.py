"""Configuration management for the OmniRec picker.

Configuration priority (highest to lowest):
1. CLI overrides (passed to load_config)
2. Environment variables (OMNIREC_PICKER_*, plus OMNIREC_FALLBACK_PICKER)
3. Config file (~/.config/omnirec/picker.yaml)
4. Built-in defaults
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Any

import yaml
from platformdirs import user_config_dir

from .consent.external import DEFAULT_DIALOG_BINARY
from .fallback import DEFAULT_FALLBACK_PICKER

ENV_PREFIX = "OMNIREC_PICKER"
# Read without the prefix
ENV_FALLBACK_PICKER = "OMNIREC_FALLBACK_PICKER"
CONFIG_DIR = Path(user_config_dir("omnirec"))
DEFAULT_CONFIG_PATH = CONFIG_DIR / "picker.yaml"

CONSENT_BACKENDS = {"auto", "gtk", "external"}


@dataclass
class Config:
    """Picker configuration."""

    # Delegates
    fallback_picker: str = DEFAULT_FALLBACK_PICKER
    dialog_binary: str = DEFAULT_DIALOG_BINARY
    consent_backend: str = "auto"

    # Service connection (socket_path None = resolve from XDG_RUNTIME_DIR)
    socket_path: Optional[Path] = None
    connect_timeout_ms: int = 3000
    read_timeout_ms: int = 5000

    # Diagnostics
    log_file: Optional[Path] = Path("/tmp/omnirec-picker.log")
    emit_events: bool = True

    def __post_init__(self):
        # Convert string paths to Path objects
        if isinstance(self.socket_path, str):
            self.socket_path = Path(self.socket_path)
        if isinstance(self.log_file, str):
            self.log_file = Path(self.log_file)

    @property
    def connect_timeout(self) -> float:
        return self.connect_timeout_ms / 1000.0

    @property
    def read_timeout(self) -> float:
        return self.read_timeout_ms / 1000.0


PATH_KEYS = {"socket_path", "log_file"}
INT_KEYS = {"connect_timeout_ms", "read_timeout_ms"}


def _env(name: str) -> Optional[str]:
    return os.environ.get(f"{ENV_PREFIX}_{name}")


def _config_path_from_env() -> Optional[Path]:
    value = _env("CONFIG") or _env("CONFIG_PATH")
    if value:
        return Path(value).expanduser()
    return None


def _load_config_file(path: Path, strict: bool = False) -> dict:
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except Exception as exc:
        if strict:
            raise ValueError(f"Failed to parse config file {path}: {exc}")
        return {}

    if not isinstance(data, dict):
        if strict:
            raise ValueError(f"Config file {path} must be a mapping")
        return {}

    return data


def _expand_path(value: Any) -> Any:
    if value is None:
        return value
    return str(Path(value).expanduser())


def config_defaults() -> dict:
    return {
        "fallback_picker": DEFAULT_FALLBACK_PICKER,
        "dialog_binary": DEFAULT_DIALOG_BINARY,
        "consent_backend": "auto",
        "socket_path": None,
        "connect_timeout_ms": 3000,
        "read_timeout_ms": 5000,
        "log_file": "/tmp/omnirec-picker.log",
        "emit_events": True,
    }


def _load_env_overrides() -> dict:
    config: dict[str, Any] = {}

    mapping = {
        "FALLBACK_PICKER": "fallback_picker",
        "DIALOG_BINARY": "dialog_binary",
        "CONSENT_BACKEND": "consent_backend",
        "SOCKET_PATH": "socket_path",
        "CONNECT_TIMEOUT_MS": "connect_timeout_ms",
        "READ_TIMEOUT_MS": "read_timeout_ms",
        "LOG_FILE": "log_file",
    }

    for env_name, key in mapping.items():
        value = _env(env_name)
        if value is None:
            continue
        if key in PATH_KEYS:
            # An empty value switches the path off
            config[key] = _expand_path(value) if value else None
        elif key in INT_KEYS:
            try:
                config[key] = int(value)
            except ValueError:
                continue
        else:
            config[key] = value

    value = _env("EMIT_EVENTS")
    if value is not None:
        config["emit_events"] = value.lower() in ("true", "1", "yes", "on")

    fallback = os.environ.get(ENV_FALLBACK_PICKER)
    if fallback:
        config["fallback_picker"] = fallback

    return config


def resolve_config_path(config_path: Optional[Path] = None) -> Path:
    return config_path or _config_path_from_env() or DEFAULT_CONFIG_PATH


def load_config(
    config_path: Optional[Path] = None,
    overrides: Optional[dict] = None,
    strict: bool = False,
) -> Config:
    """Load configuration from all sources."""
    resolved_path = resolve_config_path(config_path)

    config_dict = config_defaults()
    file_config = _load_config_file(resolved_path, strict=strict)
    config_dict.update(
        {k: v for k, v in file_config.items() if k in config_dict}
    )
    config_dict.update(_load_env_overrides())

    if overrides:
        for key, value in overrides.items():
            if value is not None:
                config_dict[key] = value

    for key in PATH_KEYS:
        if key in config_dict and config_dict[key] is not None:
            config_dict[key] = _expand_path(config_dict[key])

    return Config(**config_dict)


def config_schema() -> dict:
    return {
        "$schema": "https://json-schema.org/draft/2020-12/schema",
        "type": "object",
        "properties": {
            "fallback_picker": {"type": "string"},
            "dialog_binary": {"type": "string"},
            "consent_backend": {"type": "string", "enum": sorted(CONSENT_BACKENDS)},
            "socket_path": {"type": ["string", "null"]},
            "connect_timeout_ms": {"type": "integer", "minimum": 1},
            "read_timeout_ms": {"type": "integer", "minimum": 1},
            "log_file": {"type": ["string", "null"]},
            "emit_events": {"type": "boolean"},
        },
        "additionalProperties": False,
    }


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_config_dict(data: Any) -> list[str]:
    errors: list[str] = []
    if not isinstance(data, dict):
        return ["Config must be a mapping/object"]

    props = config_schema().get("properties", {})

    for key in data.keys():
        if key not in props:
            errors.append(f"Unknown config key: {key}")

    def check_type(key: str, value: Any, expected: str) -> None:
        if expected == "string" and not isinstance(value, str):
            errors.append(f"{key} must be a string")
        elif expected == "integer" and not _is_int(value):
            errors.append(f"{key} must be an integer")
        elif expected == "boolean" and not isinstance(value, bool):
            errors.append(f"{key} must be a boolean")

    for key, value in data.items():
        if key not in props:
            continue
        prop = props[key]
        expected = prop.get("type")
        if isinstance(expected, list):
            if value is None and "null" in expected:
                continue
            if "string" in expected and isinstance(value, str):
                continue
            errors.append(f"{key} must be one of types: {', '.join(expected)}")
            continue
        if isinstance(expected, str):
            check_type(key, value, expected)

        if key == "consent_backend" and value not in CONSENT_BACKENDS:
            errors.append(f"consent_backend must be one of: {', '.join(sorted(CONSENT_BACKENDS))}")
        if key in INT_KEYS and _is_int(value) and value < 1:
            errors.append(f"{key} must be >= 1")

    return errors


def validate_config_file(config_path: Optional[Path] = None) -> list[str]:
    path = resolve_config_path(config_path)
    if not path.exists():
        return []
    data = _load_config_file(path, strict=True)
    return validate_config_dict(data)


def config_to_dict(config: Config) -> dict:
    def _format(value: Any) -> Any:
        if isinstance(value, Path):
            return str(value)
        return value

    return {
        "fallback_picker": config.fallback_picker,
        "dialog_binary": config.dialog_binary,
        "consent_backend": config.consent_backend,
        "socket_path": _format(config.socket_path),
        "connect_timeout_ms": config.connect_timeout_ms,
        "read_timeout_ms": config.read_timeout_ms,
        "log_file": _format(config.log_file),
        "emit_events": config.emit_events,
    }
