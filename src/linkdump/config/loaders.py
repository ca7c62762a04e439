from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from linkdump.services.selection import Selection


class RunConfig(BaseModel):
    """Options a CLI run can take from a config file instead of flags."""

    inputs: list[Path] = Field(default_factory=list)
    output: Path | None = None
    database_url: str | None = None
    selection: Selection = Selection.unpublished
    tag: str | None = None
    force: bool = False


def load_config(path: str | Path) -> dict[str, Any]:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(str(path))
    if path.suffix.lower() in {".yaml", ".yml"}:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    elif path.suffix.lower() == ".json":
        with path.open("r", encoding="utf-8") as handle:
            data = json.load(handle) or {}
    else:
        raise ValueError(f"Unsupported config format: {path.suffix}")
    if not isinstance(data, dict):
        raise ValueError("Config root must be an object")
    return data


def load_run_config(path: str | Path | None) -> RunConfig:
    if path is None:
        return RunConfig()
    config = RunConfig.model_validate(load_config(path))
    base = Path(path).resolve().parent
    config.inputs = [_relative_to(base, item) for item in config.inputs]
    if config.output is not None:
        config.output = _relative_to(base, config.output)
    return config


def _relative_to(base: Path, value: Path) -> Path:
    value = value.expanduser()
    return value if value.is_absolute() else base / value
