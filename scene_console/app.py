"""Pygame host for the scene console.

The host plays the part of the scene graph: it owns the text field the console
writes into, the named buttons it binds to, the touch/mouse input that drives
them, and the timer pump. Console state and formatting live in
scene_console/console.py; nothing there imports pygame.
"""

from __future__ import annotations

import math
from array import array
from collections.abc import Callable
from concurrent.futures import Future
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import pygame

from .clock import Clock, RealClock
from .config import ConsoleConfig, default_options_path, load_console_options
from .console import Console
from .log_config import get_logger, setup_logging
from .numpad import NumPad
from .signals import DerivedSignal, Signal
from .timers import ClockTimers

WINDOW_SIZE = (960, 540)
TARGET_FPS = 60

# Pinch distance (normalized) -> scale factor.
PINCH_GAIN = 4.0
WHEEL_ZOOM_STEP = 1.1

PIN_LENGTH = 4
KEYPAD_LAYOUT: tuple[tuple[str, str], ...] = (
    ("key1", "1"), ("key2", "2"), ("key3", "3"),
    ("key4", "4"), ("key5", "5"), ("key6", "6"),
    ("key7", "7"), ("key8", "8"), ("key9", "9"),
    ("keyDelete", "<"), ("key0", "0"), ("keyReset", "C"),
)
NAV_BUTTONS: tuple[tuple[str, str], ...] = (
    ("clearButton", "Clear"),
    ("toTopButton", "Top"),
    ("scrollUpButton", "Up"),
    ("scrollDownButton", "Down"),
    ("toBottomButton", "Bottom"),
)

_log = get_logger("app")


class Screen(Protocol):
    def handle_event(self, event: pygame.event.Event) -> None: ...
    def render(self, surface: pygame.Surface) -> None: ...


class TextField:
    """Multi-line text element; the console's display sink."""

    def __init__(
        self,
        rect: pygame.Rect,
        *,
        font_size: int = 16,
        text: str = "",
        color: tuple[int, int, int] = (214, 255, 214),
    ) -> None:
        self.rect = rect
        self._text = text
        self._color = color
        self._font_size = int(font_size)
        self._font: pygame.font.Font | None = None

    @property
    def text(self) -> str:
        return self._text

    @property
    def font_size(self) -> int:
        return self._font_size

    def set_text(self, text: str) -> None:
        self._text = text

    def set_font_size(self, size: int) -> None:
        if size != self._font_size:
            self._font_size = int(size)
            self._font = None

    def render(self, surface: pygame.Surface) -> None:
        if self._font is None:
            self._font = pygame.font.Font(None, max(8, self._font_size))
        line_h = self._font.get_linesize()
        y = self.rect.y + 6
        for line in self._text.split("\n"):
            if y + line_h > self.rect.bottom:
                break
            if line:
                surface.blit(self._font.render(line, True, self._color), (self.rect.x + 8, y))
            y += line_h


@dataclass(slots=True)
class Button:
    name: str
    label: str
    rect: pygame.Rect


class Scene:
    """Registry of named elements.

    find_first() hands back a Future so callers can bind to elements that are
    added after they ask for them.
    """

    def __init__(self) -> None:
        self._elements: dict[str, object] = {}
        self._waiting: dict[str, list[Future[object]]] = {}

    def add(self, name: str, element: object) -> None:
        self._elements[name] = element
        for pending in self._waiting.pop(name, []):
            pending.set_result(element)

    def find_first(self, name: str) -> Future[object]:
        pending: Future[object] = Future()
        element = self._elements.get(name)
        if element is not None:
            pending.set_result(element)
        else:
            self._waiting.setdefault(name, []).append(pending)
        return pending


def _element_rect(element: object) -> pygame.Rect | None:
    rect = getattr(element, "rect", None)
    return rect if isinstance(rect, pygame.Rect) else None


class TapInput:
    """Routes left clicks and finger taps to the elements under them."""

    def __init__(self) -> None:
        self._bindings: list[tuple[object, Callable[[], None]]] = []

    def on_tap(self, element: object, callback: Callable[[], None]) -> None:
        self._bindings.append((element, callback))

    def handle_event(self, event: pygame.event.Event, surface_size: tuple[int, int]) -> bool:
        pos: tuple[int, int] | None = None
        if event.type == pygame.MOUSEBUTTONDOWN and getattr(event, "button", 0) == 1:
            pos = getattr(event, "pos", None)
        elif event.type == pygame.FINGERDOWN:
            w, h = surface_size
            pos = (int(event.x * w), int(event.y * h))
        if pos is None:
            return False

        hit = False
        for element, callback in list(self._bindings):
            rect = _element_rect(element)
            if rect is not None and rect.collidepoint(pos):
                callback()
                hit = True
        return hit


class PinchInput:
    """Pinch gestures (or Ctrl + mouse wheel) over an element report a scale factor."""

    def __init__(self) -> None:
        self._bindings: list[tuple[object, Callable[[float], None]]] = []

    def on_pinch(self, element: object, callback: Callable[[float], None]) -> None:
        self._bindings.append((element, callback))

    def handle_event(self, event: pygame.event.Event, surface_size: tuple[int, int]) -> bool:
        if event.type == pygame.MULTIGESTURE:
            pinched = float(getattr(event, "pinched", 0.0))
            if pinched == 0.0:
                return False
            w, h = surface_size
            pos = (int(event.x * w), int(event.y * h))
            scale = max(0.1, 1.0 + pinched * PINCH_GAIN)
        elif event.type == pygame.MOUSEWHEEL and pygame.key.get_mods() & pygame.KMOD_CTRL:
            pos = pygame.mouse.get_pos()
            scale = WHEEL_ZOOM_STEP if event.y > 0 else 1.0 / WHEEL_ZOOM_STEP
        else:
            return False

        hit = False
        for element, callback in list(self._bindings):
            rect = _element_rect(element)
            if rect is not None and rect.collidepoint(pos):
                callback(scale)
                hit = True
        return hit


class _ToneSound:
    def __init__(self, sound: pygame.mixer.Sound | None) -> None:
        self._sound = sound

    def play(self) -> None:
        if self._sound is not None:
            self._sound.play()


class _KeypadSounds:
    """Short synthesized key clicks; silent when no mixer is available."""

    _sample_rate = 22050
    _amp = 32767

    def __init__(self) -> None:
        ok: pygame.mixer.Sound | None = None
        wrong: pygame.mixer.Sound | None = None
        try:
            if pygame.mixer.get_init() is None:
                pygame.mixer.init(frequency=self._sample_rate, size=-16, channels=1, buffer=512)
            ok = self._build_tone_sound(880.0, 0.06, gain=0.30)
            wrong = self._build_tone_sound(220.0, 0.14, gain=0.35)
        except (pygame.error, NotImplementedError) as exc:
            _log.info("keypad sounds disabled: %s", exc)
        self.ok = _ToneSound(ok)
        self.wrong = _ToneSound(wrong)

    def _build_tone_sound(self, frequency_hz: float, duration_s: float, *, gain: float) -> pygame.mixer.Sound:
        sample_count = max(1, int(self._sample_rate * duration_s))
        fade_n = max(1, int(self._sample_rate * 0.008))
        out = array("h")
        for idx in range(sample_count):
            envelope = min(1.0, idx / float(fade_n), (sample_count - idx - 1) / float(fade_n))
            phase = (2.0 * math.pi * float(frequency_hz) * idx) / float(self._sample_rate)
            sample = math.sin(phase) * gain * max(0.0, envelope)
            out.append(int(max(-1.0, min(1.0, sample)) * self._amp))
        return pygame.mixer.Sound(buffer=out.tobytes())


class App:
    def __init__(self, surface: pygame.Surface) -> None:
        self._surface = surface
        self._screens: list[Screen] = []
        self._running = True

    @property
    def running(self) -> bool:
        return self._running

    def push(self, screen: Screen) -> None:
        self._screens.append(screen)

    def quit(self) -> None:
        self._running = False

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.QUIT:
            self.quit()
            return
        if not self._screens:
            return
        self._screens[-1].handle_event(event)

    def render(self) -> None:
        if not self._screens:
            return
        self._screens[-1].render(self._surface)


class ConsoleScreen:
    """Console panel, navigation buttons and a PIN pad on one screen."""

    def __init__(
        self,
        app: App,
        *,
        clock: Clock,
        timers: ClockTimers,
        options: ConsoleConfig,
        surface_size: tuple[int, int] = WINDOW_SIZE,
    ) -> None:
        self._app = app
        self._surface_size = surface_size
        w, h = surface_size

        self._title_font = pygame.font.Font(None, 34)
        self._button_font = pygame.font.Font(None, 26)
        self._pin_font = pygame.font.Font(None, 44)

        margin = 20
        side_w = 300
        self.console_field = TextField(
            pygame.Rect(margin, margin + 40, w - side_w - margin * 3, h - margin * 2 - 40),
            text="Console starting...",
        )
        side_x = w - side_w - margin

        self.scene = Scene()
        self.taps = TapInput()
        self.pinch = PinchInput()

        self.console = Console(
            self.console_field,
            16,
            options,
            timers=timers,
            scene=self.scene,
            taps=self.taps,
            pinch=self.pinch,
            background=self.console_field,
        )
        # Bound before the buttons exist; the scene resolves them below.
        self.console.add_clear_button("clearButton")
        self.console.add_to_top_button("toTopButton")
        self.console.add_scroll_up_button("scrollUpButton")
        self.console.add_scroll_down_button("scrollDownButton")
        self.console.add_scroll_to_bottom_button("toBottomButton")

        self.nav_buttons: list[Button] = []
        nav_w = (side_w - 4 * 6) // len(NAV_BUTTONS)
        for idx, (name, label) in enumerate(NAV_BUTTONS):
            rect = pygame.Rect(side_x + idx * (nav_w + 6), margin + 40, nav_w, 36)
            button = Button(name, label, rect)
            self.nav_buttons.append(button)
            self.scene.add(name, button)

        self.pin_field = TextField(
            pygame.Rect(side_x, margin + 90, side_w, 48),
            font_size=44,
            color=(238, 245, 255),
        )
        self.numpad = NumPad(self.pin_field, PIN_LENGTH, clock=clock)
        self._sounds = _KeypadSounds()

        self.keypad_buttons: list[Button] = []
        key_w = (side_w - 2 * 8) // 3
        key_h = 54
        keys_top = margin + 150
        for idx, (name, label) in enumerate(KEYPAD_LAYOUT):
            row, col = divmod(idx, 3)
            rect = pygame.Rect(side_x + col * (key_w + 8), keys_top + row * (key_h + 8), key_w, key_h)
            button = Button(name, label, rect)
            self.keypad_buttons.append(button)
            self.scene.add(name, button)
            self.taps.on_tap(button, self._keypad_action(button))

        self.frames: Signal[int] = Signal(0)
        self.console.watch("frame", self.frames)
        self.console.watch("mouse", DerivedSignal(pygame.mouse.get_pos))
        self.console.log("Console ready")

    def handle_event(self, event: pygame.event.Event) -> None:
        if self.taps.handle_event(event, self._surface_size):
            return
        if self.pinch.handle_event(event, self._surface_size):
            return
        if event.type != pygame.KEYDOWN:
            return

        key = event.key
        if key == pygame.K_ESCAPE:
            self._app.quit()
        elif key in (pygame.K_UP, pygame.K_PAGEUP):
            self.console.scroll_up()
        elif key in (pygame.K_DOWN, pygame.K_PAGEDOWN):
            self.console.scroll_down()
        elif key == pygame.K_HOME:
            self.console.scroll_to_top()
        elif key == pygame.K_END:
            self.console.scroll_to_bottom()
        elif key == pygame.K_DELETE:
            self.console.clear()
        elif key == pygame.K_BACKSPACE:
            self.numpad.remove_last("keyDelete")
        elif event.unicode and event.unicode.isdigit():
            self._enter_digit(f"key{event.unicode}", event.unicode)

    def render(self, surface: pygame.Surface) -> None:
        self.frames.set(self.frames.value + 1)

        bg = (3, 9, 78)
        panel_bg = (4, 12, 20)
        border = (226, 236, 255)
        text_main = (238, 245, 255)
        key_bg = (9, 20, 106)
        glow_rgb = (120, 200, 255)

        surface.fill(bg)
        title = self._title_font.render("Scene Console", True, text_main)
        surface.blit(title, (20, 18))

        pygame.draw.rect(surface, panel_bg, self.console_field.rect)
        pygame.draw.rect(surface, border, self.console_field.rect, 1)
        self.console_field.render(surface)

        for button in self.nav_buttons:
            pygame.draw.rect(surface, key_bg, button.rect)
            pygame.draw.rect(surface, border, button.rect, 1)
            label = self._button_font.render(button.label, True, text_main)
            surface.blit(label, label.get_rect(center=button.rect.center))

        pygame.draw.rect(surface, panel_bg, self.pin_field.rect)
        pygame.draw.rect(surface, border, self.pin_field.rect, 1)
        self.pin_field.render(surface)

        for button in self.keypad_buttons:
            glow = self.numpad.glow(button.name)
            fill = tuple(int(base + (lit - base) * glow) for base, lit in zip(key_bg, glow_rgb))
            pygame.draw.rect(surface, fill, button.rect)
            pygame.draw.rect(surface, border, button.rect, 1)
            label = self._pin_font.render(button.label, True, text_main)
            surface.blit(label, label.get_rect(center=button.rect.center))

    def _keypad_action(self, button: Button) -> Callable[[], None]:
        if button.name == "keyDelete":
            return lambda: self.numpad.remove_last(button.name, self._sounds.ok)
        if button.name == "keyReset":
            return lambda: self.numpad.remove_all(button.name, self._sounds.ok)
        return lambda: self._enter_digit(button.name, button.label)

    def _enter_digit(self, key: str, digit: str) -> None:
        self.numpad.press(key)
        if self.numpad.add(digit, self._sounds.ok, self._sounds.wrong):
            self.console.log(f"PIN: {self.numpad.text}")
        else:
            self.console.log("PIN full")


def run(
    *,
    max_frames: int | None = None,
    event_injector: Callable[[int], None] | None = None,
    options_path: Path | None = None,
) -> int:
    setup_logging()

    path = options_path if options_path is not None else default_options_path()
    try:
        options = ConsoleConfig.from_options(load_console_options(path))
    except ValueError as exc:
        _log.warning("invalid console options in %s (%s); using defaults", path, exc)
        options = ConsoleConfig()

    pygame.init()
    pygame.display.set_caption("Scene Console")
    surface = pygame.display.set_mode(WINDOW_SIZE)

    frame_clock = pygame.time.Clock()
    clock = RealClock()
    timers = ClockTimers(clock)

    app = App(surface=surface)
    app.push(ConsoleScreen(app, clock=clock, timers=timers, options=options, surface_size=WINDOW_SIZE))
    _log.info("scene console running (options: %s)", options.to_options())

    frame = 0
    try:
        while app.running:
            if event_injector is not None:
                event_injector(frame)

            for event in pygame.event.get():
                app.handle_event(event)

            timers.update()
            app.render()

            pygame.display.flip()

            frame += 1
            if max_frames is not None and frame >= max_frames:
                break

            frame_clock.tick(TARGET_FPS)
    finally:
        pygame.quit()

    return 0
