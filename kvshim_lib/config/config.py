"""Configuration file for the kvshim command-line tool.

The file is YAML:

    implementation: redis
    encoding: json
    log_level: INFO
    options:
      address: localhost:6379

`options` are passed unchanged to the options model of the selected store.
"""
from __future__ import annotations
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from kvshim_lib.storage import available_stores
from kvshim_lib.storage.encoding import codec_names

DEFAULT_CONFIG_PATH = Path("kvshim.yml")


def load_yaml_file(path: Path) -> dict:
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"invalid config format in {path}: expected mapping")
    return data


class CliConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    implementation: str = "memory"
    encoding: str = "json"
    log_level: Optional[str] = None
    options: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("implementation")
    @classmethod
    def _check_implementation(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in available_stores():
            raise ValueError(f"unknown implementation {value!r}; expected one of {', '.join(available_stores())}")
        return value

    @field_validator("encoding")
    @classmethod
    def _check_encoding(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in codec_names():
            raise ValueError(f"unknown encoding {value!r}; expected one of {', '.join(codec_names())}")
        if value == "encrypted":
            # Needs a key or password, which the config file does not carry.
            raise ValueError("the encrypted encoding is only available through the Python API")
        return value


def load_config(path: Optional[Path] = None) -> CliConfig:
    """Load the CLI config; a missing default file yields the defaults (memory store)."""
    cfg_path = path or DEFAULT_CONFIG_PATH
    if path is not None and not cfg_path.exists():
        raise FileNotFoundError(f"config file not found: {cfg_path}")
    return CliConfig(**load_yaml_file(cfg_path))
