from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from .log_config import get_logger

OPTIONS_PATH_ENV = "SCENE_CONSOLE_OPTIONS_PATH"

_log = get_logger("config")

# option key -> accepted spellings
_ALIASES: dict[str, tuple[str, ...]] = {
    "collapse": ("collapse",),
    "max_lines": ("maxLines", "max_lines"),
    "keep_log": ("keepLog", "keep_log"),
    "debug": ("debug",),
    "resize_text": ("resizeText", "resize_text"),
}


@dataclass(frozen=True, slots=True)
class ConsoleConfig:
    collapse: bool = True
    max_lines: int = 7
    keep_log: bool = True
    debug: bool = False
    resize_text: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.max_lines, bool) or not isinstance(self.max_lines, int):
            raise ValueError("max_lines must be an integer")
        if self.max_lines <= 0:
            raise ValueError("max_lines must be > 0")

    @classmethod
    def from_options(cls, options: Mapping[str, object] | None) -> "ConsoleConfig":
        """Build a config from an option mapping; missing keys keep their defaults."""

        if options is None:
            return cls()
        values: dict[str, object] = {}
        for field_name, spellings in _ALIASES.items():
            for key in spellings:
                if key in options and options[key] is not None:
                    values[field_name] = options[key]
                    break
        for flag in ("collapse", "keep_log", "debug", "resize_text"):
            if flag in values:
                values[flag] = bool(values[flag])
        return cls(**values)  # type: ignore[arg-type]

    def to_options(self) -> dict[str, object]:
        return {
            "collapse": self.collapse,
            "maxLines": self.max_lines,
            "keepLog": self.keep_log,
            "debug": self.debug,
            "resizeText": self.resize_text,
        }


def default_options_path() -> Path:
    explicit = os.environ.get(OPTIONS_PATH_ENV)
    if explicit:
        return Path(explicit).expanduser()
    return Path.home() / ".scene_console_options.json"


def load_console_options(path: Path) -> dict[str, object]:
    """Read console options from a JSON object file.

    A missing file yields no options. An unreadable or malformed file is
    reported and ignored so the host still starts with defaults.
    """

    if not path.exists():
        return {}
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        _log.warning("ignoring console options file %s: %s", path, exc)
        return {}
    if not isinstance(payload, dict):
        _log.warning("ignoring console options file %s: expected a JSON object", path)
        return {}
    return {str(k): v for k, v in payload.items()}
