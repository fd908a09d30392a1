import pytest
from aiohttp import WSMsgType

from cloudshell.constants import message_type_name


@pytest.mark.parametrize(
    "opcode, name",
    [
        (WSMsgType.BINARY, "binary"),
        (WSMsgType.TEXT, "text"),
        (WSMsgType.CLOSE, "close"),
        (WSMsgType.PING, "ping"),
        (WSMsgType.PONG, "pong"),
    ],
)
def test_known_opcodes_have_names(opcode, name):
    assert message_type_name(opcode) == name


def test_plain_integer_opcode_resolves():
    assert message_type_name(int(WSMsgType.TEXT)) == "text"


def test_unknown_opcode_gives_empty_name():
    assert message_type_name(WSMsgType.CONTINUATION) == ""