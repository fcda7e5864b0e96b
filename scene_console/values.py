"""Tagged values accepted by Console.log().

Callers may build a LogValue themselves or hand a raw Python value to
to_log_value(), which is the only place runtime type inspection happens.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from .signals import PollableValue, Readable, is_pollable, read_value

OBJECT_TEXT = "[object]"
FUNCTION_TEXT = "[function]"
UNDEFINED_TEXT = "[undefined]"
TYPE_NOT_FOUND_TEXT = "[type not found]"


@dataclass(frozen=True, slots=True)
class Text:
    value: str

    def display_text(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class Number:
    value: int | float

    def display_text(self) -> str:
        return str(self.value)


@dataclass(frozen=True, slots=True)
class Flag:
    value: bool

    def display_text(self) -> str:
        return str(self.value)


@dataclass(frozen=True, slots=True)
class Live:
    """A pollable reference, read eagerly when logged."""

    source: PollableValue

    def display_text(self) -> str:
        result = read_value(self.source)
        if isinstance(result, Readable):
            return str(result.value)
        return FUNCTION_TEXT


@dataclass(frozen=True, slots=True)
class Opaque:
    """A callable with nothing to poll."""

    func: Callable[..., object]

    def display_text(self) -> str:
        return FUNCTION_TEXT


@dataclass(frozen=True, slots=True)
class Structured:
    value: object

    def display_text(self) -> str:
        return OBJECT_TEXT


@dataclass(frozen=True, slots=True)
class Missing:
    def display_text(self) -> str:
        return UNDEFINED_TEXT


@dataclass(frozen=True, slots=True)
class Unknown:
    value: object

    def display_text(self) -> str:
        return TYPE_NOT_FOUND_TEXT


LogValue = Text | Number | Flag | Live | Opaque | Structured | Missing | Unknown

# Only scalar values take part in duplicate collapsing.
COLLAPSIBLE = (Text, Number, Flag)

_TAGGED = (Text, Number, Flag, Live, Opaque, Structured, Missing, Unknown)
_UNCLASSIFIED = (bytes, bytearray, memoryview, complex)


def to_log_value(value: object) -> LogValue:
    if isinstance(value, _TAGGED):
        return value  # type: ignore[return-value]
    if value is None:
        return Missing()
    if isinstance(value, str):
        return Text(value)
    # bool first: bool is a subclass of int.
    if isinstance(value, bool):
        return Flag(value)
    if isinstance(value, (int, float)):
        return Number(value)
    if isinstance(value, _UNCLASSIFIED):
        return Unknown(value)
    if is_pollable(value):
        return Live(value)
    if callable(value):
        return Opaque(value)
    return Structured(value)
