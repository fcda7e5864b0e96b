from __future__ import annotations

from typing import Protocol

from .clock import Clock
from .console import TextDisplay

GLOW_DURATION_S = 0.150
NO_TEXT_FIELD = -1


class Sound(Protocol):
    def play(self) -> None: ...


def ease_out_cubic(t: float) -> float:
    if t <= 0.0:
        return 0.0
    if t >= 1.0:
        return 1.0
    return 1.0 - (1.0 - t) ** 3


class NumPad:
    """T9-style PIN pad: typed characters up to max_length, plus key glow.

    - max_length == -1 means the pad has no text field; keys only glow.
    - Every glow fades 1 -> 0 over 150 ms (ease-out cubic), timed by the Clock.
    """

    def __init__(
        self,
        display: TextDisplay | None = None,
        max_length: int = NO_TEXT_FIELD,
        *,
        clock: Clock,
    ) -> None:
        if max_length != NO_TEXT_FIELD and max_length < 0:
            raise ValueError("max_length must be >= 0 or -1 for no text field")
        if max_length != NO_TEXT_FIELD and display is None:
            raise ValueError("a display is required when max_length is set")

        self._display = display
        self._max_length = int(max_length)
        self._clock = clock
        self._text = ""
        self._glow_started_at_s: dict[str, float] = {}

        if self.uses_text_field:
            self._write()

    @property
    def uses_text_field(self) -> bool:
        return self._max_length != NO_TEXT_FIELD

    @property
    def max_length(self) -> int:
        return self._max_length

    @property
    def text(self) -> str:
        return self._text

    def add(self, value: str, sound_ok: Sound | None = None, sound_wrong: Sound | None = None) -> bool:
        """Append a character. Returns False (and plays sound_wrong) when full."""

        if not self.uses_text_field or len(self._text) >= self._max_length:
            if sound_wrong is not None:
                sound_wrong.play()
            return False
        if sound_ok is not None:
            sound_ok.play()
        self._text += str(value)
        self._write()
        return True

    def remove_last(self, key: str, sound: Sound | None = None) -> None:
        self.press(key)
        if not self._text:
            return
        if sound is not None:
            sound.play()
        self._text = self._text[:-1]
        self._write()

    def remove_all(self, key: str, sound: Sound | None = None) -> None:
        self.press(key)
        if not self._text:
            return
        if sound is not None:
            sound.play()
        self._text = ""
        self._write()

    def press(self, key: str) -> None:
        """Restart the glow fade on a key."""
        self._glow_started_at_s[key] = self._clock.now()

    def glow(self, key: str) -> float:
        """Current glow opacity of a key in [0.0, 1.0]."""

        started = self._glow_started_at_s.get(key)
        if started is None:
            return 0.0
        t = (self._clock.now() - started) / GLOW_DURATION_S
        if t >= 1.0:
            del self._glow_started_at_s[key]
            return 0.0
        return 1.0 - ease_out_cubic(t)

    def _write(self) -> None:
        if self._display is not None:
            self._display.set_text(self._text)
