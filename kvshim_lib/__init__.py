"""kvshim: one key-value store interface over many storage backends."""

from kvshim_lib.errors import (
    BackendError,
    CodecError,
    CombinerError,
    InvalidKeyError,
    InvalidValueError,
    StoreError,
)
from kvshim_lib.storage import MISS, Hit, Miss, Store, create_store, get_codec

__version__ = "0.1.0"

__all__ = [
    "Store",
    "Hit",
    "Miss",
    "MISS",
    "create_store",
    "get_codec",
    "StoreError",
    "InvalidKeyError",
    "InvalidValueError",
    "CodecError",
    "BackendError",
    "CombinerError",
]
