"""Pydantic configuration schema for CLI YAML input."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict


class ComponentConfig(BaseModel):
    aggregator: dict[str, Any] | None = None
    categorizer: dict[str, Any] | None = None
    written: dict[str, Any] | None = None
    interview: dict[str, Any] | None = None
    grading: dict[str, Any] | None = None

    model_config = ConfigDict(extra="forbid")


class AppConfig(ComponentConfig):
    cycle: str | None = None

    def to_settings(self) -> dict[str, Any]:
        settings: dict[str, Any] = self.model_dump(exclude_none=True)
        return {key: value for key, value in settings.items() if value not in ({}, "")}


def load_config(raw: Any) -> AppConfig:
    # non-mapping input surfaces as pydantic's model_type error
    return AppConfig.model_validate(raw)


def load_config_file(path: Path) -> AppConfig:
    """Read a YAML config file and validate it."""
    with path.open("r", encoding="utf-8") as handle:
        loaded = yaml.safe_load(handle) or {}
    return load_config(loaded)
