"""Settings loading with deterministic precedence.

The cascade is always:
1) CLI/init params
2) Environment variables
3) ~/.config/chronicle/chronicle.yaml (or an explicit ``config_path``)
4) Model defaults

Environment variable format:
- Prefix: ``CHRONICLE_``
- Nested keys: ``__`` separator
- Example: ``CHRONICLE_LIMITS__MAX_FORK_DEPTH=4`` -> ``limits.max_fork_depth = 4``
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

from pydantic_settings import SettingsConfigDict

from .models import DEFAULT_CONFIG_PATH, ChronicleSettings


def load_settings(
    *,
    cli_params: Mapping[str, Any] | None = None,
    config_path: str | Path | None = None,
) -> ChronicleSettings:
    """Resolve ``ChronicleSettings`` through the standard precedence cascade."""
    resolved = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    settings_cls = _settings_for_path(resolved)
    return settings_cls(**dict(cli_params or {}))


def _settings_for_path(path: Path) -> type[ChronicleSettings]:
    """Return a settings class whose YAML source reads ``path``."""
    if path == DEFAULT_CONFIG_PATH:
        return ChronicleSettings
    return type(
        "ChronicleSettings",
        (ChronicleSettings,),
        {
            "__module__": __name__,
            "model_config": SettingsConfigDict(yaml_file=path),
        },
    )
