from __future__ import annotations

from scene_console.signals import (
    DerivedSignal,
    NotReadable,
    PollableValue,
    Readable,
    Signal,
    is_pollable,
    read_value,
)
from scene_console.values import (
    Flag,
    Live,
    Missing,
    Number,
    Opaque,
    Structured,
    Text,
    Unknown,
    to_log_value,
)


class _Counter:
    def __init__(self) -> None:
        self.count = 0

    def try_read(self) -> Readable:
        self.count += 1
        return Readable(self.count)


def test_signal_is_unreadable_until_set() -> None:
    sig: Signal[int] = Signal()
    assert isinstance(sig.try_read(), NotReadable)

    sig.set(3)
    assert sig.try_read() == Readable(3)
    assert sig.value == 3

    sig.unset()
    assert isinstance(sig.try_read(), NotReadable)


def test_derived_signal_reports_failures_as_not_readable() -> None:
    values = iter([1])
    sig = DerivedSignal(lambda: next(values))

    assert sig.try_read() == Readable(1)
    result = sig.try_read()
    assert isinstance(result, NotReadable)
    assert result.reason.startswith("StopIteration")


def test_any_object_with_try_read_is_pollable() -> None:
    counter = _Counter()
    assert isinstance(counter, PollableValue)
    assert not isinstance(42, PollableValue)

    live = to_log_value(counter)
    assert live == Live(counter)
    assert live.display_text() == "1"
    assert live.display_text() == "2"


def test_raw_values_are_tagged_by_kind() -> None:
    assert to_log_value("hi") == Text("hi")
    assert to_log_value(7) == Number(7)
    assert to_log_value(False) == Flag(False)
    assert to_log_value(None) == Missing()
    assert to_log_value(len) == Opaque(len)
    assert to_log_value({"a": 1}) == Structured({"a": 1})
    assert to_log_value(3j) == Unknown(3j)


def test_placeholder_texts() -> None:
    assert Missing().display_text() == "[undefined]"
    assert Structured(object()).display_text() == "[object]"
    assert Opaque(len).display_text() == "[function]"
    assert Unknown(b"x").display_text() == "[type not found]"
    assert Live(Signal()).display_text() == "[function]"


def test_tagged_values_pass_through_unchanged() -> None:
    tagged = Number(1.5)
    assert to_log_value(tagged) is tagged


class _Broken:
    def try_read(self) -> Readable:
        raise RuntimeError("sensor offline")


class _Sloppy:
    def try_read(self) -> int:
        return 5


def test_read_value_turns_failures_into_not_readable() -> None:
    assert read_value(Signal(1)) == Readable(1)

    failed = read_value(_Broken())
    assert failed == NotReadable("RuntimeError: sensor offline")

    malformed = read_value(_Sloppy())
    assert isinstance(malformed, NotReadable)
    assert "5" in malformed.reason


def test_classes_with_try_read_are_callables_not_live_values() -> None:
    assert not is_pollable(Signal)
    assert is_pollable(Signal())

    assert to_log_value(Signal) == Opaque(Signal)
    assert to_log_value(Signal).display_text() == "[function]"
    assert Live(_Broken()).display_text() == "[function]"


def test_numbers_and_flags_use_python_text() -> None:
    assert Number(2).display_text() == "2"
    assert Number(2.0).display_text() == "2.0"
    assert Number(-0.5).display_text() == "-0.5"
    assert Flag(True).display_text() == "True"
