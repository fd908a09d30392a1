"""Websocket backend for xterm.js terminals backed by Kubernetes shell pods."""

__version__ = "0.1.0"