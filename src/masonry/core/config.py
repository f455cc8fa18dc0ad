"""3-layer configuration system for Compliance Masonry.

Loads and merges configuration from:
1. Default settings (built-in)
2. Project config (.masonry/config.yaml)
3. CLI parameters (override)

The merged dict is validated into an immutable MasonryConfig which is then
passed explicitly to the loader and the gap analyzer.
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field

DEFAULT_CONFIG: dict = {
    "opencontrol_dir": "opencontrols",
    "certification": "",
    "loader": {
        "component_file": "component.yaml",
        "max_workers": 8,
        "cancel_on_fatal": True,
    },
    "output": {
        "format": "text",
        "path": None,
    },
    "verbose": False,
}


class LoaderConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    component_file: str = "component.yaml"
    max_workers: int = Field(default=8, ge=1)
    cancel_on_fatal: bool = True


class OutputConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    format: str = Field(default="text", pattern=r"^(text|json|junit)$")
    path: Optional[str] = None


class MasonryConfig(BaseModel):
    """Resolved settings for one analysis run."""

    model_config = ConfigDict(frozen=True)

    opencontrol_dir: Path = Path("opencontrols")
    certification: str = ""
    loader: LoaderConfig = LoaderConfig()
    output: OutputConfig = OutputConfig()
    verbose: bool = False


def deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dicts. Arrays are replaced, not merged."""
    result = {}
    for key in base:
        result[key] = base[key]
    for key, value in override.items():
        base_value = result.get(key)
        if isinstance(base_value, dict) and isinstance(value, dict):
            result[key] = deep_merge(base_value, value)
        else:
            result[key] = value
    return result


def load_project_config(project_path: Path) -> dict:
    """Load project configuration from .masonry/config.yaml."""
    config_path = project_path / ".masonry" / "config.yaml"
    if not config_path.exists():
        return {}
    content = config_path.read_text(encoding="utf-8-sig")  # utf-8-sig strips BOM
    loaded = yaml.safe_load(content)
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ValueError(f"{config_path} must contain a YAML mapping")
    return loaded


def get_effective_config(
    project_path: Optional[Path] = None,
    cli_overrides: Optional[dict] = None,
) -> MasonryConfig:
    """Get the fully resolved configuration for an analysis run.

    A relative opencontrol_dir is resolved against project_path.
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    if project_path is not None:
        project_config = load_project_config(project_path)
        if project_config:
            config = deep_merge(config, project_config)

    if cli_overrides:
        config = deep_merge(config, {k: v for k, v in cli_overrides.items() if v is not None})

    opencontrol_dir = Path(config["opencontrol_dir"])
    if project_path is not None and not opencontrol_dir.is_absolute():
        opencontrol_dir = project_path / opencontrol_dir
    config["opencontrol_dir"] = opencontrol_dir

    return MasonryConfig.model_validate(config)
