"""Terminal size messages and the fallback console logger."""

import json
import sys
from dataclasses import asdict, dataclass

_UINT16_MAX = 0xFFFF


@dataclass(frozen=True)
class TTYSize:
    """Terminal dimensions sent by the xterm.js frontend."""

    cols: int = 0
    rows: int = 0
    x: int = 0
    y: int = 0

    def __post_init__(self):
        for name, value in asdict(self).items():
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name}: expected an integer, got {value!r}")
            if not 0 <= value <= _UINT16_MAX:
                raise ValueError(f"{name}: {value} is outside 0..{_UINT16_MAX}")

    @classmethod
    def from_json(cls, text):
        """Parse a JSON object; missing fields are zero and unknown ones ignored."""
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError("terminal size must be a JSON object")
        return cls(**{name: data.get(name, 0) for name in ("cols", "rows", "x", "y")})

    def to_json(self):
        """Serialise to the JSON object the frontend sends."""
        return json.dumps(asdict(self))


class ConsoleLogger:
    """Writes level-prefixed lines to a stream, standard output by default."""

    def __init__(self, stream=None):
        self._stream = stream

    def _write(self, level, message, args):
        text = str(message) % args if args else str(message)
        print(f"[{level}] {text}", file=self._stream or sys.stdout)

    def trace(self, message, *args):
        self._write("trace", message, args)

    def debug(self, message, *args):
        self._write("debug", message, args)

    def info(self, message, *args):
        self._write("info", message, args)

    def warn(self, message, *args):
        self._write("warn", message, args)

    def error(self, message, *args):
        self._write("error", message, args)


DEFAULT_LOGGER = ConsoleLogger()