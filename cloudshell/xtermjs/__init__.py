"""The xterm.js websocket handler, its message types and origin checks."""

__all__ = ["handler", "types", "utils"]