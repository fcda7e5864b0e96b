"""Pollable value references.

A pollable value is anything the console can sample on demand without owning
it: a scene property, a counter maintained by the host, a computed reading.
Reads return a typed result instead of raising, so a source that is not ready
(or has gone away) is an ordinary outcome for the caller to handle.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, Protocol, TypeVar, runtime_checkable

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Readable:
    value: object


@dataclass(frozen=True, slots=True)
class NotReadable:
    reason: str = ""


ReadResult = Readable | NotReadable


@runtime_checkable
class PollableValue(Protocol):
    def try_read(self) -> ReadResult: ...


_UNSET = object()


class Signal(Generic[T]):
    """Settable live value. Unreadable until the first set()."""

    def __init__(self, value: T | object = _UNSET) -> None:
        self._value = value

    @property
    def value(self) -> T:
        if self._value is _UNSET:
            raise LookupError("signal has no value yet")
        return self._value  # type: ignore[return-value]

    def set(self, value: T) -> None:
        self._value = value

    def unset(self) -> None:
        self._value = _UNSET

    def try_read(self) -> ReadResult:
        if self._value is _UNSET:
            return NotReadable("no value yet")
        return Readable(self._value)


def is_pollable(value: object) -> bool:
    """True for instances exposing try_read(); classes are not pollable."""
    return isinstance(value, PollableValue) and not isinstance(value, type)


def read_value(source: object) -> ReadResult:
    """Poll source once. Failures and malformed results become NotReadable."""
    try:
        result = source.try_read()  # type: ignore[attr-defined]
    except Exception as exc:
        return NotReadable(f"{type(exc).__name__}: {exc}")
    if isinstance(result, (Readable, NotReadable)):
        return result
    return NotReadable(f"unexpected read result: {result!r}")


class DerivedSignal:
    """Live value computed on every read."""

    def __init__(self, compute: Callable[[], object]) -> None:
        self._compute = compute

    def try_read(self) -> ReadResult:
        try:
            return Readable(self._compute())
        except Exception as exc:
            return NotReadable(f"{type(exc).__name__}: {exc}")
