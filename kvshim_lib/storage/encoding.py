"""Codecs that turn Python values into bytes and back.

A store is configured with exactly one codec at construction time and uses
it for every operation. Codecs never compress, chunk or stream; each value
is encoded whole, in memory.

Document codecs (JSON, msgpack, TOML, YAML) first convert the value into
plain JSON-compatible data and, on the way back, validate the decoded data
against the requested target type with a pydantic `TypeAdapter`. That lets
`get(key, into=SomeDataclass)` return a real `SomeDataclass` instead of a
dict.
"""
from __future__ import annotations
import base64
import json
import os
import pickle
import tomllib
from functools import lru_cache
from typing import Any, Protocol, runtime_checkable

import msgpack
import tomli_w
import yaml
from pydantic import TypeAdapter
from pydantic_core import to_jsonable_python

from kvshim_lib.errors import CodecError


@runtime_checkable
class Codec(Protocol):
    """Marshal/unmarshal pair.

    `marshal` returns bytes; `unmarshal` returns a value of type `into`.
    Both raise `CodecError` on failure.
    """

    name: str
    extension: str

    def marshal(self, value: Any) -> bytes: ...

    def unmarshal(self, data: bytes, into: Any) -> Any: ...


@lru_cache(maxsize=256)
def _adapter(into: Any) -> TypeAdapter:
    return TypeAdapter(into)


def to_plain(value: Any) -> Any:
    """Convert dataclasses, pydantic models and friends to JSON-compatible data."""
    return to_jsonable_python(value, fallback=lambda o: vars(o))


def coerce(raw: Any, into: Any) -> Any:
    """Validate already-decoded data against the target type `into`."""
    if into is Any:
        return raw
    if isinstance(into, type) and not isinstance(raw, (dict, list)) and isinstance(raw, into):
        return raw
    return _adapter(into).validate_python(raw)


class BaseCodec:
    """Shared error handling: subclasses implement `_encode` and `_decode`."""

    name = "base"
    extension = ""

    def marshal(self, value: Any) -> bytes:
        try:
            return self._encode(value)
        except CodecError:
            raise
        except Exception as e:
            raise CodecError(f"{self.name}: cannot marshal value of type {type(value).__name__}: {e}") from e

    def unmarshal(self, data: bytes, into: Any) -> Any:
        try:
            return self._decode(bytes(data), into)
        except CodecError:
            raise
        except Exception as e:
            raise CodecError(f"{self.name}: cannot unmarshal into {into!r}: {e}") from e

    def _encode(self, value: Any) -> bytes:
        raise NotImplementedError

    def _decode(self, data: bytes, into: Any) -> Any:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class JSONCodec(BaseCodec):
    """JSON text, UTF-8 encoded. The default codec of every store."""

    name = "json"
    extension = ".json"

    def _encode(self, value: Any) -> bytes:
        return json.dumps(to_plain(value)).encode("utf-8")

    def _decode(self, data: bytes, into: Any) -> Any:
        return coerce(json.loads(data.decode("utf-8")), into)


class PickleCodec(BaseCodec):
    """Python's native binary object-graph format.

    Only use it with backends you trust: unpickling runs arbitrary code.
    """

    name = "pickle"
    extension = ".pickle"

    def _encode(self, value: Any) -> bytes:
        return pickle.dumps(value, protocol=pickle.HIGHEST_PROTOCOL)

    def _decode(self, data: bytes, into: Any) -> Any:
        obj = pickle.loads(data)
        if into is Any:
            return obj
        if isinstance(into, type) and isinstance(obj, into):
            return obj
        return coerce(obj, into)


class MsgpackCodec(BaseCodec):
    name = "msgpack"
    extension = ".msgpack"

    def _encode(self, value: Any) -> bytes:
        return msgpack.packb(to_plain(value), use_bin_type=True)

    def _decode(self, data: bytes, into: Any) -> Any:
        return coerce(msgpack.unpackb(data, raw=False), into)


class TOMLCodec(BaseCodec):
    """TOML document. The value must convert to a table (mapping)."""

    name = "toml"
    extension = ".toml"

    def _encode(self, value: Any) -> bytes:
        plain = to_plain(value)
        if not isinstance(plain, dict):
            raise CodecError(f"toml: top-level value must be a table, got {type(value).__name__}")
        return tomli_w.dumps(plain).encode("utf-8")

    def _decode(self, data: bytes, into: Any) -> Any:
        return coerce(tomllib.loads(data.decode("utf-8")), into)


class YAMLCodec(BaseCodec):
    name = "yaml"
    extension = ".yml"

    def _encode(self, value: Any) -> bytes:
        return yaml.safe_dump(to_plain(value), sort_keys=False).encode("utf-8")

    def _decode(self, data: bytes, into: Any) -> Any:
        return coerce(yaml.safe_load(data.decode("utf-8")), into)


class ProtobufCodec(BaseCodec):
    """Protocol buffers binary wire format.

    Values must be protobuf messages and `into` must be a message class
    (or a message instance, which is then populated in place).
    """

    name = "protobuf"
    extension = ".pb"

    def _encode(self, value: Any) -> bytes:
        from google.protobuf.message import Message

        if not isinstance(value, Message):
            raise CodecError("protobuf: cannot cast value to a protobuf message")
        return value.SerializeToString()

    def _decode(self, data: bytes, into: Any) -> Any:
        from google.protobuf.message import Message

        if isinstance(into, Message):
            into.Clear()
            into.ParseFromString(data)
            return into
        if not (isinstance(into, type) and issubclass(into, Message)):
            raise CodecError("protobuf: cannot cast target type to a protobuf message")
        msg = into()
        msg.ParseFromString(data)
        return msg


class EncryptedCodec(BaseCodec):
    """Encrypts the output of a base codec with Fernet.

    Provide either `key` (a Fernet key) or `password`. In password mode every
    payload carries its own random salt and the PBKDF2 iteration count so it
    can be decrypted later. The frame is a small JSON document:
    ``{"v": 1, "mode": "key"|"password", "codec": ..., "ct": ..., ["salt", "iterations"]}``.
    `codec` names the base codec, so a reader configured with a different
    base codec still decodes the payload the way it was written.
    """

    name = "encrypted"
    extension = ".enc"

    def __init__(
        self,
        *,
        key: bytes | str | None = None,
        password: str | None = None,
        iterations: int = 390000,
        base_codec: Codec | None = None,
    ) -> None:
        if key is None and password is None:
            raise ValueError("EncryptedCodec requires either `key` or `password`")
        self._key = key.encode("ascii") if isinstance(key, str) else key
        self._password = password
        self._iterations = iterations
        self.base_codec = base_codec or JSONCodec()

    def _derive_key(self, password: str, salt: bytes, iterations: int) -> bytes:
        from cryptography.hazmat.primitives import hashes
        from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

        kdf = PBKDF2HMAC(algorithm=hashes.SHA256(), length=32, salt=salt, iterations=iterations)
        return base64.urlsafe_b64encode(kdf.derive(password.encode("utf-8")))

    def _encode(self, value: Any) -> bytes:
        from cryptography.fernet import Fernet

        inner = self.base_codec.marshal(value)
        if self._password is not None:
            salt = os.urandom(16)
            ct = Fernet(self._derive_key(self._password, salt, self._iterations)).encrypt(inner)
            frame = {
                "v": 1,
                "mode": "password",
                "codec": self.base_codec.name,
                "iterations": self._iterations,
                "salt": base64.urlsafe_b64encode(salt).decode("ascii"),
                "ct": ct.decode("ascii"),
            }
        else:
            ct = Fernet(self._key).encrypt(inner)
            frame = {"v": 1, "mode": "key", "codec": self.base_codec.name, "ct": ct.decode("ascii")}
        return json.dumps(frame).encode("utf-8")

    def _decode(self, data: bytes, into: Any) -> Any:
        from cryptography.fernet import Fernet

        frame = json.loads(data.decode("utf-8"))
        mode = frame.get("mode")
        if mode == "password":
            if self._password is None:
                raise CodecError("encrypted: codec was not configured with a password")
            salt = base64.urlsafe_b64decode(frame["salt"].encode("ascii"))
            key = self._derive_key(self._password, salt, frame.get("iterations", self._iterations))
        elif mode == "key":
            if self._key is None:
                raise CodecError("encrypted: codec was not configured with a key")
            key = self._key
        else:
            raise CodecError(f"encrypted: unknown frame mode {mode!r}")
        plaintext = Fernet(key).decrypt(frame["ct"].encode("ascii"))
        return self._base_codec_for(frame.get("codec")).unmarshal(plaintext, into)

    def _base_codec_for(self, name: str | None) -> Codec:
        if name is None or name == self.base_codec.name:
            return self.base_codec
        return get_codec(name)

    def __repr__(self) -> str:
        mode = "password" if self._password is not None else "key"
        return f"EncryptedCodec(mode={mode}, base_codec={self.base_codec!r})"


_CODECS = {
    "json": JSONCodec,
    "pickle": PickleCodec,
    "gob": PickleCodec,
    "msgpack": MsgpackCodec,
    "toml": TOMLCodec,
    "yaml": YAMLCodec,
    "protobuf": ProtobufCodec,
    "proto": ProtobufCodec,
    "encrypted": EncryptedCodec,
}


def codec_names() -> list[str]:
    return sorted(_CODECS)


def get_codec(name: str, **kwargs: Any) -> Codec:
    """Return a codec instance for `name` (case-insensitive).

    Keyword arguments are passed to the codec constructor; only the
    encrypted codec takes any.
    """
    try:
        cls = _CODECS[name.strip().lower()]
    except KeyError:
        raise ValueError(f"unknown codec {name!r}; expected one of {', '.join(codec_names())}") from None
    return cls(**kwargs)


def resolve_codec(codec: Codec | str | None) -> Codec:
    """Accept a codec instance, a codec name, or None (JSON)."""
    if codec is None:
        return JSONCodec()
    if isinstance(codec, str):
        return get_codec(codec)
    if not isinstance(codec, Codec):
        raise TypeError(f"not a codec: {codec!r}")
    return codec
