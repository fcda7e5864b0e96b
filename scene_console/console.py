"""On-screen debug console.

The console keeps an ordered log of entries, collapses repeated lines, keeps a
fixed-size scrollable window, and writes the visible window to a text display
after every change. It does not draw anything itself; the host owns the text
field, the buttons and the timer pump.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from concurrent.futures import Future
from dataclasses import dataclass
from enum import Enum
from typing import Protocol, runtime_checkable

from .config import ConsoleConfig
from .log_config import get_logger
from .signals import PollableValue, Readable, is_pollable, read_value
from .timers import TimerHandle, TimerService
from .values import COLLAPSIBLE, LogValue, to_log_value

REFRESH_INTERVAL_MS = 100
PLACEHOLDER_CLEAR_DELAY_MS = 1000
FEEDBACK_DURATION_MS = 500

NOT_A_SIGNAL_TEXT = "[not a signal]"

_log = get_logger("console")


class TextDisplay(Protocol):
    def set_text(self, text: str) -> None: ...


@runtime_checkable
class ResizableDisplay(Protocol):
    def set_text(self, text: str) -> None: ...
    def set_font_size(self, size: int) -> None: ...


class SceneLookup(Protocol):
    def find_first(self, name: str) -> Future[object] | None: ...


class TapSource(Protocol):
    def on_tap(self, element: object, callback: Callable[[], None]) -> None: ...


class PinchSource(Protocol):
    def on_pinch(self, element: object, callback: Callable[[float], None]) -> None: ...


class ConsoleState(str, Enum):
    IDLE = "idle"
    WATCHING = "watching"


@dataclass(slots=True)
class LogEntry:
    text: str
    count: int = 1


@dataclass(frozen=True, slots=True)
class SignalEntry:
    label: str
    source: PollableValue


Entry = LogEntry | SignalEntry


def format_entry(entry: Entry) -> str:
    """Format one entry as a display line (newline included)."""

    if isinstance(entry, LogEntry):
        marker = "   " if entry.count <= 1 else f"[{entry.count}]"
        return f">>>{marker} {entry.text}\n"
    result = read_value(entry.source)
    current = str(result.value) if isinstance(result, Readable) else NOT_A_SIGNAL_TEXT
    return f"<O>    {entry.label}:{current}\n"


class Console:
    """Bounded, scrollable log buffer rendered to a text display.

    - Entries keep insertion order; removal only from the front or via clear().
    - scroll_offset None means pinned to the newest entries.
    - While any signal is watched a recurring timer re-renders every 100 ms;
      the first render that finds no signal cancels it.
    """

    def __init__(
        self,
        display: TextDisplay,
        font_size: int = 16,
        options: ConsoleConfig | Mapping[str, object] | None = None,
        *,
        timers: TimerService,
        scene: SceneLookup | None = None,
        taps: TapSource | None = None,
        pinch: PinchSource | None = None,
        background: object | None = None,
        feedback: bool = True,
    ) -> None:
        if isinstance(options, ConsoleConfig):
            config = options
        else:
            config = ConsoleConfig.from_options(options)

        self._display = display
        self._config = config
        self._timers = timers
        self._scene = scene
        self._taps = taps
        self._feedback = feedback

        self._entries: list[Entry] = []
        self._scroll_offset: int | None = None
        self._refresh_timer: TimerHandle | None = None
        self._rendered = False
        self._text = ""

        self._font_size = int(font_size)
        self._text_scale = 1.0
        if isinstance(display, ResizableDisplay):
            display.set_font_size(self._font_size)

        if config.debug:
            _log.info(
                "console created: display=%r font_size=%d options=%s",
                display,
                self._font_size,
                config.to_options(),
            )

        timers.schedule_once(PLACEHOLDER_CLEAR_DELAY_MS, self._clear_placeholder)

        if config.resize_text and pinch is not None and background is not None:
            pinch.on_pinch(background, self._on_pinch)

    @property
    def config(self) -> ConsoleConfig:
        return self._config

    @property
    def entries(self) -> tuple[Entry, ...]:
        return tuple(self._entries)

    @property
    def scroll_offset(self) -> int | None:
        return self._scroll_offset

    @property
    def state(self) -> ConsoleState:
        return ConsoleState.IDLE if self._refresh_timer is None else ConsoleState.WATCHING

    @property
    def font_size(self) -> int:
        return self._font_size

    @property
    def text(self) -> str:
        """Text written by the most recent render pass."""
        return self._text

    # Ingestion

    def log(self, value: LogValue | object) -> None:
        tagged = to_log_value(value)
        text = tagged.display_text()
        if self._config.collapse and isinstance(tagged, COLLAPSIBLE):
            for entry in self._entries:
                if isinstance(entry, LogEntry) and entry.text == text:
                    entry.count += 1
                    self.render()
                    return
        self._entries.append(LogEntry(text))
        self.render()

    def watch(self, label: str, source: PollableValue | object) -> None:
        if is_pollable(source) and isinstance(read_value(source), Readable):
            self._entries.append(SignalEntry(label, source))
            self.render()
            self._start_refresh_timer()
            return
        self._entries.append(LogEntry(f"{label}: {NOT_A_SIGNAL_TEXT}"))
        self.render()

    # Navigation

    def clear(self) -> None:
        self._entries.clear()
        self._scroll_offset = None
        self.render()
        self._show_feedback("Clear()")

    def scroll_to_top(self) -> None:
        self._scroll_offset = 0
        self.render()
        self._show_feedback("ScrollToTop()")

    def scroll_up(self) -> None:
        if self._scroll_offset is None:
            self._scroll_offset = max(0, len(self._entries) - self._config.max_lines - 1)
        else:
            self._scroll_offset = max(0, self._scroll_offset - 1)
        self.render()
        self._show_feedback("ScrollUp()")

    def scroll_down(self) -> None:
        total = len(self._entries)
        max_lines = self._config.max_lines
        if self._scroll_offset is None:
            offset = total - max_lines + 1
        else:
            offset = self._scroll_offset + 1
        self._scroll_offset = None if offset > total - max_lines else offset
        self.render()
        self._show_feedback("ScrollDown()")

    def scroll_to_bottom(self) -> None:
        self._scroll_offset = None
        self.render()
        self._show_feedback("ScrollToBottom()")

    # Buttons

    def add_clear_button(self, name: str) -> None:
        self._bind_button(name, self.clear)

    def add_to_top_button(self, name: str) -> None:
        self._bind_button(name, self.scroll_to_top)

    def add_scroll_up_button(self, name: str) -> None:
        self._bind_button(name, self.scroll_up)

    def add_scroll_down_button(self, name: str) -> None:
        self._bind_button(name, self.scroll_down)

    def add_scroll_to_bottom_button(self, name: str) -> None:
        self._bind_button(name, self.scroll_to_bottom)

    # Rendering

    def render(self) -> str:
        """Recompute the visible window and replace the display content."""

        max_lines = self._config.max_lines
        if not self._config.keep_log:
            overflow = len(self._entries) - max_lines
            if overflow > 0:
                del self._entries[:overflow]

        last_start = max(0, len(self._entries) - max_lines)
        start = last_start if self._config.keep_log else 0
        if self._scroll_offset is not None:
            start = min(max(0, self._scroll_offset), last_start)

        window = self._entries[start : start + max_lines]
        text = "".join(format_entry(entry) for entry in reversed(window))

        self._display.set_text(text)
        self._text = text
        self._rendered = True
        if self._config.debug:
            _log.debug("render: entries=%d start=%d offset=%s", len(self._entries), start, self._scroll_offset)

        self._stop_refresh_timer_if_unwatched()
        return text

    def refresh(self) -> None:
        self.render()

    # Internals

    def _show_feedback(self, text: str) -> None:
        if not self._feedback:
            return
        # Drawn above the window, never stored; the delayed render removes it.
        self._display.set_text(format_entry(LogEntry(text)) + self._text)
        self._timers.schedule_once(FEEDBACK_DURATION_MS, self.refresh)

    def _start_refresh_timer(self) -> None:
        if self._refresh_timer is not None:
            return
        self._refresh_timer = self._timers.schedule_recurring(REFRESH_INTERVAL_MS, self.refresh)
        _log.debug("auto-refresh started")

    def _stop_refresh_timer_if_unwatched(self) -> None:
        if self._refresh_timer is None:
            return
        if any(isinstance(entry, SignalEntry) for entry in self._entries):
            return
        self._timers.cancel(self._refresh_timer)
        self._refresh_timer = None
        _log.debug("auto-refresh stopped")

    def _clear_placeholder(self) -> None:
        if not self._rendered:
            self._display.set_text("")

    def _on_pinch(self, scale: float) -> None:
        last_scale = self._text_scale
        new_scale = float(scale) * last_scale
        self.log(f"Pinch lastScale:{last_scale} newScale:{new_scale}")
        self._text_scale = new_scale
        self._font_size += 1
        if isinstance(self._display, ResizableDisplay):
            self._display.set_font_size(self._font_size)

    def _bind_button(self, name: str, command: Callable[[], None]) -> None:
        if self._scene is None or self._taps is None:
            return
        pending = self._scene.find_first(name)
        if pending is None:
            return
        taps = self._taps

        def _on_resolved(done: Future[object]) -> None:
            if done.cancelled():
                _log.warning("button %r lookup was cancelled", name)
                return
            exc = done.exception()
            if exc is not None:
                _log.warning("button %r not bound: %s", name, exc)
                return
            taps.on_tap(done.result(), command)

        pending.add_done_callback(_on_resolved)
