"""Value codecs for the settings store.

Every stored value is JSON text. A codec turns a typed value into that text and
back, and names the zero value returned when a key is missing or unreadable.
Callers pick the codec per key instead of relying on runtime type inspection.
"""
from __future__ import annotations

import dataclasses
import json
from typing import Any, Callable, Generic, Protocol, TypeVar

from appsettings.core.errors import CodecError

T = TypeVar("T")
D = TypeVar("D")


class Codec(Protocol[T]):
    zero: T

    def encode(self, value: T) -> str: ...

    def decode(self, raw: str) -> T: ...


def _loads(raw: str) -> Any:
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, TypeError) as exc:
        raise CodecError(f"Stored value is not valid JSON: {exc}") from exc


class JsonCodec(Generic[T]):
    """Codec for plain JSON values, optionally checked against ``types``."""

    def __init__(
        self,
        zero: T,
        *,
        types: tuple[type, ...] | None = None,
        coerce: Callable[[Any], T] | None = None,
    ) -> None:
        self._zero = zero
        self._types = types
        self._coerce = coerce

    @property
    def zero(self) -> T:
        # Mutable zero values (lists, dicts) must not be shared between callers.
        if isinstance(self._zero, (list, dict)):
            return type(self._zero)()  # type: ignore[return-value]
        return self._zero

    def encode(self, value: T) -> str:
        try:
            return json.dumps(value, ensure_ascii=True)
        except (TypeError, ValueError) as exc:
            raise CodecError(f"Value of type {type(value).__name__} is not JSON serializable") from exc

    def decode(self, raw: str) -> T:
        value = _loads(raw)
        if self._types is not None:
            # bool is a subclass of int; only accept it where asked for explicitly.
            if isinstance(value, bool) and bool not in self._types:
                raise CodecError("Expected a number, found a boolean")
            if not isinstance(value, self._types):
                expected = ", ".join(t.__name__ for t in self._types)
                raise CodecError(f"Expected {expected}, found {type(value).__name__}")
        if self._coerce is not None:
            return self._coerce(value)
        return value


class ListOf(Generic[T]):
    """Codec for a JSON array whose items are handled by another codec."""

    def __init__(self, item_codec: Codec[T]) -> None:
        self._item_codec = item_codec

    @property
    def zero(self) -> list[T]:
        return []

    def encode(self, value: list[T]) -> str:
        items = [json.loads(self._item_codec.encode(item)) for item in value]
        return json.dumps(items, ensure_ascii=True)

    def decode(self, raw: str) -> list[T]:
        payload = _loads(raw)
        if not isinstance(payload, list):
            raise CodecError(f"Expected a list, found {type(payload).__name__}")
        return [self._item_codec.decode(json.dumps(item)) for item in payload]


class DataclassCodec(Generic[D]):
    """Codec for a dataclass stored as a JSON object of its fields.

    Unknown keys in stored data are ignored so that newer versions can add
    fields; missing fields fall back to the dataclass defaults.
    """

    def __init__(self, cls: type[D], *, zero: D | None = None) -> None:
        if not dataclasses.is_dataclass(cls):
            raise TypeError(f"{cls!r} is not a dataclass")
        self._cls = cls
        self._zero = zero
        self._field_names = {f.name for f in dataclasses.fields(cls)}

    @property
    def zero(self) -> D | None:
        return self._zero

    def encode(self, value: D) -> str:
        if not isinstance(value, self._cls):
            raise CodecError(f"Expected {self._cls.__name__}, found {type(value).__name__}")
        try:
            return json.dumps(dataclasses.asdict(value), ensure_ascii=True)  # type: ignore[arg-type]
        except (TypeError, ValueError) as exc:
            raise CodecError(f"{self._cls.__name__} is not JSON serializable") from exc

    def decode(self, raw: str) -> D:
        payload = _loads(raw)
        if not isinstance(payload, dict):
            raise CodecError(f"Expected an object, found {type(payload).__name__}")
        known = {key: value for key, value in payload.items() if key in self._field_names}
        try:
            return self._cls(**known)
        except TypeError as exc:
            raise CodecError(f"Cannot build {self._cls.__name__}: {exc}") from exc


JSON: JsonCodec[Any] = JsonCodec(None)
STR: JsonCodec[str] = JsonCodec("", types=(str,))
INT: JsonCodec[int] = JsonCodec(0, types=(int,))
FLOAT: JsonCodec[float] = JsonCodec(0.0, types=(int, float), coerce=float)
BOOL: JsonCodec[bool] = JsonCodec(False, types=(bool,))
LIST: JsonCodec[list] = JsonCodec([], types=(list,))
DICT: JsonCodec[dict] = JsonCodec({}, types=(dict,))


__all__ = [
    "Codec",
    "JsonCodec",
    "ListOf",
    "DataclassCodec",
    "JSON",
    "STR",
    "INT",
    "FLOAT",
    "BOOL",
    "LIST",
    "DICT",
]
