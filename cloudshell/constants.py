"""Terminal key sequences and websocket message type names."""

from aiohttp import WSMsgType

KEY_SEQ_BACKSPACE = bytes([127])
KEY_SEQ_DOWN_ARROW = bytes([27, 91, 66])
KEY_SEQ_LINEFEED = bytes([13])
KEY_SEQ_UP_ARROW = bytes([27, 91, 65])
KEY_SEQ_SIGINT = bytes([3])
KEY_SEQ_EOF = bytes([4])

WEBSOCKET_MESSAGE_TYPES = {
    WSMsgType.BINARY: "binary",
    WSMsgType.TEXT: "text",
    WSMsgType.CLOSE: "close",
    WSMsgType.PING: "ping",
    WSMsgType.PONG: "pong",
}


def message_type_name(opcode):
    """Return the readable name of a websocket opcode, or "" if it is not known."""
    return WEBSOCKET_MESSAGE_TYPES.get(opcode, "")