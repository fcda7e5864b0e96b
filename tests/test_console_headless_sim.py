from __future__ import annotations

from concurrent.futures import Future
from dataclasses import dataclass, field

import pytest

from scene_console.console import Console, ConsoleState, LogEntry
from scene_console.signals import DerivedSignal, Readable, Signal
from scene_console.timers import ClockTimers


@dataclass
class FakeClock:
    t: float = 0.0

    def now(self) -> float:
        return self.t

    def advance(self, dt: float) -> None:
        self.t += float(dt)


@dataclass
class FakeDisplay:
    text: str = "placeholder"
    writes: int = 0
    font_size: int = 0

    def set_text(self, text: str) -> None:
        self.text = text
        self.writes += 1

    def set_font_size(self, size: int) -> None:
        self.font_size = size


@dataclass
class FakeScene:
    pending: dict[str, Future[object]] = field(default_factory=dict)

    def find_first(self, name: str) -> Future[object]:
        return self.pending.setdefault(name, Future())


@dataclass
class FakeTaps:
    bindings: dict[str, object] = field(default_factory=dict)

    def on_tap(self, element: object, callback) -> None:
        self.bindings[str(element)] = callback


@dataclass
class FakePinch:
    callbacks: list = field(default_factory=list)

    def on_pinch(self, element: object, callback) -> None:
        self.callbacks.append((element, callback))


def _step(clock: FakeClock, timers: ClockTimers, dt: float) -> None:
    clock.advance(dt)
    timers.update()


def test_watch_moves_to_watching_and_ticks_refresh_live_value() -> None:
    clock = FakeClock()
    timers = ClockTimers(clock)
    display = FakeDisplay()
    console = Console(display, timers=timers, feedback=False)
    assert console.state is ConsoleState.IDLE

    altitude = Signal(100)
    console.watch("alt", altitude)
    assert console.state is ConsoleState.WATCHING
    assert display.text == "<O>    alt:100\n"

    altitude.set(250)
    assert display.text == "<O>    alt:100\n"

    _step(clock, timers, 0.15)
    assert display.text == "<O>    alt:250\n"


def test_clear_returns_to_idle_and_stops_ticks() -> None:
    clock = FakeClock()
    timers = ClockTimers(clock)
    display = FakeDisplay()
    console = Console(display, timers=timers, feedback=False)
    console.watch("x", DerivedSignal(lambda: clock.now()))
    _step(clock, timers, 0.15)

    console.clear()
    assert console.state is ConsoleState.IDLE
    writes_after_clear = display.writes

    for _ in range(20):
        _step(clock, timers, 0.15)

    assert display.writes == writes_after_clear
    assert display.text == ""
    assert timers.pending_count() == 0


def test_second_watch_reuses_the_running_timer() -> None:
    clock = FakeClock()
    timers = ClockTimers(clock)
    console = Console(FakeDisplay(), timers=timers, feedback=False)
    console.watch("a", Signal(1))
    pending = timers.pending_count()

    console.watch("b", Signal(2))

    assert timers.pending_count() == pending


def test_evicting_the_last_signal_cancels_refresh() -> None:
    clock = FakeClock()
    timers = ClockTimers(clock)
    console = Console(FakeDisplay(), options={"maxLines": 2, "keepLog": False}, timers=timers, feedback=False)
    console.watch("x", Signal(1))
    assert console.state is ConsoleState.WATCHING

    console.log("a")
    console.log("b")

    assert console.state is ConsoleState.IDLE
    assert console.entries == (LogEntry("a"), LogEntry("b"))


def test_placeholder_is_cleared_after_one_second() -> None:
    clock = FakeClock()
    timers = ClockTimers(clock)
    display = FakeDisplay(text="Console starting...")
    Console(display, timers=timers)

    _step(clock, timers, 0.9)
    assert display.text == "Console starting..."

    _step(clock, timers, 0.2)
    assert display.text == ""


def test_placeholder_clear_does_not_wipe_early_logs() -> None:
    clock = FakeClock()
    timers = ClockTimers(clock)
    display = FakeDisplay()
    console = Console(display, timers=timers)
    console.log("early")

    _step(clock, timers, 1.5)

    assert display.text == ">>>    early\n"


def test_clear_feedback_is_transient() -> None:
    clock = FakeClock()
    timers = ClockTimers(clock)
    display = FakeDisplay()
    console = Console(display, timers=timers)
    console.log("a")

    console.clear()
    assert console.entries == ()
    assert display.text == ">>>    Clear()\n"

    _step(clock, timers, 0.3)
    assert display.text == ">>>    Clear()\n"

    _step(clock, timers, 0.3)
    assert display.text == ""


def test_scroll_feedback_disappears_after_half_a_second() -> None:
    clock = FakeClock()
    timers = ClockTimers(clock)
    display = FakeDisplay()
    console = Console(display, options={"maxLines": 2}, timers=timers)
    for value in ("a", "b", "c"):
        console.log(value)

    console.scroll_to_top()
    assert display.text == ">>>    ScrollToTop()\n>>>    b\n>>>    a\n"

    _step(clock, timers, 0.6)
    assert display.text == ">>>    b\n>>>    a\n"
    assert len(console.entries) == 3


def test_watched_source_that_starts_failing_does_not_break_the_tick() -> None:
    clock = FakeClock()
    timers = ClockTimers(clock)
    display = FakeDisplay()
    console = Console(display, timers=timers, feedback=False)

    class Flaky:
        failing = False

        def try_read(self) -> Readable:
            if self.failing:
                raise RuntimeError("sensor offline")
            return Readable(1)

    source = Flaky()
    console.watch("sensor", source)
    assert display.text == "<O>    sensor:1\n"

    source.failing = True
    _step(clock, timers, 0.15)

    assert display.text == "<O>    sensor:[not a signal]\n"
    assert console.state is ConsoleState.WATCHING


def test_buttons_bind_when_the_scene_resolves_them() -> None:
    clock = FakeClock()
    timers = ClockTimers(clock)
    scene = FakeScene()
    taps = FakeTaps()
    console = Console(FakeDisplay(), timers=timers, scene=scene, taps=taps, feedback=False)
    console.add_clear_button("clearButton")
    console.add_to_top_button("topButton")
    console.add_scroll_up_button("upButton")
    console.add_scroll_down_button("downButton")
    console.add_scroll_to_bottom_button("bottomButton")
    assert taps.bindings == {}

    for name, pending in scene.pending.items():
        pending.set_result(name)

    assert set(taps.bindings) == {"clearButton", "topButton", "upButton", "downButton", "bottomButton"}

    for i in range(10):
        console.log(i)
    taps.bindings["topButton"]()
    assert console.scroll_offset == 0
    taps.bindings["bottomButton"]()
    assert console.scroll_offset is None
    taps.bindings["clearButton"]()
    assert console.entries == ()


def test_failed_button_lookup_is_logged_and_ignored(caplog: pytest.LogCaptureFixture) -> None:
    scene = FakeScene()
    taps = FakeTaps()
    console = Console(FakeDisplay(), timers=ClockTimers(FakeClock()), scene=scene, taps=taps)
    console.add_clear_button("missing")

    scene.pending["missing"].set_exception(LookupError("no such element"))

    assert taps.bindings == {}
    assert any("missing" in r.getMessage() for r in caplog.records)


def test_buttons_without_a_scene_are_a_no_op() -> None:
    console = Console(FakeDisplay(), timers=ClockTimers(FakeClock()))
    console.add_clear_button("clearButton")
    console.log("still works")

    assert console.entries == (LogEntry("still works"),)


def test_pinch_logs_scale_and_grows_font_when_enabled() -> None:
    pinch = FakePinch()
    display = FakeDisplay()
    console = Console(
        display,
        16,
        {"resizeText": True},
        timers=ClockTimers(FakeClock()),
        pinch=pinch,
        background="background",
    )
    assert display.font_size == 16
    assert len(pinch.callbacks) == 1

    element, callback = pinch.callbacks[0]
    assert element == "background"
    callback(1.5)

    assert console.entries == (LogEntry("Pinch lastScale:1.0 newScale:1.5"),)
    assert console.font_size == 17
    assert display.font_size == 17


def test_pinch_is_not_wired_by_default() -> None:
    pinch = FakePinch()
    Console(FakeDisplay(), timers=ClockTimers(FakeClock()), pinch=pinch, background="background")

    assert pinch.callbacks == []
