"""Base options model shared by every store.

Options are immutable pydantic models. Unset fields take the defaults
declared on each subclass; `codec` accepts a codec instance or a codec
name such as ``"msgpack"``.
"""
from __future__ import annotations
from typing import Any, Dict, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from kvshim_lib.storage.encoding import JSONCodec, resolve_codec

O = TypeVar("O", bound="StoreOptions")


class StoreOptions(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    codec: Any = Field(default_factory=JSONCodec)

    @field_validator("codec", mode="before")
    @classmethod
    def _resolve_codec(cls, value: Any) -> Any:
        return resolve_codec(value)


def merge_options(cls: Type[O], options: Optional[O], overrides: Dict[str, Any]) -> O:
    """Build `cls` from an existing options object plus keyword overrides."""
    if options is None:
        return cls(**overrides)
    if not overrides:
        return options
    return cls(**{**dict(options), **overrides})
