"""JSON configuration for the identification server.

Every section is optional; missing keys fall back to the dataclass defaults.
Secrets are never stored in the file, only the name of the environment
variable that holds them.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..ai.gemini_client import (
    API_VERSIONS,
    DEFAULT_BASE_URL,
    DEFAULT_MODEL,
    FALLBACK_MODELS,
    GeminiSettings,
)


@dataclass
class ServerSection:
    host: str = "0.0.0.0"
    port: int = 8080


@dataclass
class StorageSection:
    records_root: str = "data/identifications"


@dataclass
class GeminiSection:
    api_key_env: str = "GEMINI_API_KEY"
    base_url: str = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL
    fallback_models: list[str] = field(default_factory=lambda: list(FALLBACK_MODELS))
    api_versions: list[str] = field(default_factory=lambda: list(API_VERSIONS))
    timeout: float = 30.0

    def to_settings(self, api_key: str) -> GeminiSettings:
        return GeminiSettings(
            api_key=api_key,
            base_url=self.base_url,
            default_model=self.model,
            fallback_models=tuple(self.fallback_models),
            api_versions=tuple(self.api_versions),
            timeout=self.timeout,
        )


@dataclass
class ClassifierSection:
    gemini: GeminiSection = field(default_factory=GeminiSection)


@dataclass
class AppConfig:
    server: ServerSection = field(default_factory=ServerSection)
    storage: StorageSection = field(default_factory=StorageSection)
    classifier: ClassifierSection = field(default_factory=ClassifierSection)


def load_config(path: str | Path | None) -> AppConfig:
    """Load configuration from ``path``, or return defaults when it is ``None``.

    Raises:
        FileNotFoundError: ``path`` was given but does not exist.
        ValueError: the file is not valid JSON or a value has the wrong type.
    """
    if path is None:
        return AppConfig()

    config_path = Path(path)
    text = config_path.read_text(encoding="utf-8")
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {config_path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise ValueError(f"Configuration root in {config_path} must be an object")

    server = _section(payload, "server")
    storage = _section(payload, "storage")
    gemini = _section(_section(payload, "classifier"), "gemini")

    defaults = GeminiSection()
    return AppConfig(
        server=ServerSection(
            host=_as_str(server.get("host", ServerSection.host), "server.host"),
            port=_as_int(server.get("port", ServerSection.port), "server.port"),
        ),
        storage=StorageSection(
            records_root=_as_str(
                storage.get("records_root", StorageSection.records_root),
                "storage.records_root",
            ),
        ),
        classifier=ClassifierSection(
            gemini=GeminiSection(
                api_key_env=_as_str(gemini.get("api_key_env", defaults.api_key_env), "gemini.api_key_env"),
                base_url=_as_str(gemini.get("base_url", defaults.base_url), "gemini.base_url"),
                model=_as_str(gemini.get("model", defaults.model), "gemini.model"),
                fallback_models=_as_str_list(
                    gemini.get("fallback_models", defaults.fallback_models), "gemini.fallback_models"
                ),
                api_versions=_as_str_list(
                    gemini.get("api_versions", defaults.api_versions), "gemini.api_versions"
                ),
                timeout=_as_timeout(gemini.get("timeout", defaults.timeout)),
            )
        ),
    )


def _section(payload: dict[str, Any], name: str) -> dict[str, Any]:
    value = payload.get(name, {})
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"Configuration section '{name}' must be an object")
    return value


def _as_str(value: Any, name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"'{name}' must be a non-empty string")
    return value.strip()


def _as_int(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"'{name}' must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"'{name}' must be an integer") from exc


def _as_str_list(value: Any, name: str) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValueError(f"'{name}' must be a list of strings")
    return [item.strip() for item in value if item.strip()]


def _as_timeout(value: Any) -> float:
    try:
        timeout = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError("'gemini.timeout' must be a number") from exc
    if timeout <= 0:
        raise ValueError("'gemini.timeout' must be positive")
    return timeout


__all__ = [
    "AppConfig",
    "ClassifierSection",
    "GeminiSection",
    "ServerSection",
    "StorageSection",
    "load_config",
]
