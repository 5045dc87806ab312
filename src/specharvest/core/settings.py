#!/usr/bin/env python3
"""
SPECHARVEST SETTINGS
--------------------
Run configuration. Defaults live on the models; SPECHARVEST_* environment
variables and a `specharvest.yaml` file may override them, and CLI flags
override both.

  upstream_dir: ./upstream
  output_dir: ./specs
  mapping_file: Main.hs
  strict_match_headers: false
  replay:
    target: http://localhost:3000
    skip_configs: [max-rows]

Author: SpecHarvest Team
Date: 2026-10-19
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict
from ruamel.yaml import YAML, YAMLError

from specharvest.core.errors import ConfigError

DEFAULT_SETTINGS_FILE = "specharvest.yaml"


class ReplaySettings(BaseModel):
    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    target: Optional[str] = None
    only: List[str] = Field(default_factory=list)
    skip: List[str] = Field(default_factory=list)
    skip_tests: List[str] = Field(default_factory=list)
    skip_configs: List[str] = Field(default_factory=list)
    timeout: float = Field(default=10.0, gt=0, description="Per-request timeout in seconds.")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SPECHARVEST_",
        env_nested_delimiter="__",
        extra="forbid",
        validate_assignment=True,
    )

    upstream_dir: str = "./upstream"
    output_dir: str = "./specs"
    mapping_file: str = Field(default="Main.hs", description="Relative to upstream_dir.")
    file_suffix: str = Field(default="Spec.hs", min_length=1)
    jobs: int = Field(default=1, ge=1, description="Worker processes for extraction.")
    strict_match_headers: bool = False
    replay: ReplaySettings = Field(default_factory=ReplaySettings)

    @property
    def mapping_path(self) -> Path:
        return Path(self.upstream_dir) / self.mapping_file

    @classmethod
    def load(cls, path: Optional[str] = None) -> "Settings":
        """
        Reads settings from `path`, or from ./specharvest.yaml when present.
        An explicit path that does not exist is an error.
        """
        if path is None:
            if not Path(DEFAULT_SETTINGS_FILE).exists():
                return cls.from_dict({})
            path = DEFAULT_SETTINGS_FILE

        settings_path = Path(path)
        if not settings_path.exists():
            raise ConfigError(f"Settings file not found: {settings_path}")

        try:
            data = YAML(typ="safe").load(settings_path.read_text(encoding="utf-8"))
        except YAMLError as e:
            raise ConfigError(f"Invalid YAML in {settings_path}: {e}")

        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        if not isinstance(data, dict):
            raise ConfigError("Settings must be a mapping")
        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigError(_describe(e))


def apply_overrides(target: Union[Settings, ReplaySettings], overrides: Dict[str, Any]):
    """Assigns every override that is not None, validating each one."""
    try:
        for key, value in overrides.items():
            if value is not None:
                setattr(target, key, value)
    except ValidationError as e:
        raise ConfigError(_describe(e))


def _describe(error: ValidationError) -> str:
    problems = []
    for item in error.errors():
        where = ".".join(str(part) for part in item["loc"]) or "settings"
        problems.append(f"'{where}': {item['msg']}")
    return "Invalid settings: " + "; ".join(problems)
