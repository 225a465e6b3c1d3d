"""Tests for inbound line classification."""
import pytest

from relay_lodge.protocol import (
    ERROR_INCOMPLETE_MULTICAST,
    ERROR_INCOMPLETE_PRIVATE,
    ERROR_INVALID_CLIENT,
    BroadcastCommand,
    MulticastCommand,
    PrivateCommand,
    ProtocolError,
    ProtocolErrorKind,
    format_unresolved,
    parse_client_id,
    parse_line,
)


@pytest.mark.parametrize("line", ["hello everyone", "", "  spaced", "a@b #c"])
def test_plain_lines_are_broadcasts(line):
    """Lines without an addressing prefix are broadcast verbatim."""
    command = parse_line(line)
    assert isinstance(command, BroadcastCommand)
    assert command.text == line


def test_private_message():
    command = parse_line("@2 hello there")
    assert isinstance(command, PrivateCommand)
    assert command.target_id == 2
    assert command.text == "hello there"


def test_private_payload_is_not_trimmed():
    command = parse_line("@2  padded ")
    assert command.text == " padded "


@pytest.mark.parametrize("line", ["@abc hi", "@ 5 hi", "@5x hi", "@1_0 hi", "@１ hi", "@1.5 hi"])
def test_private_invalid_client_number(line):
    command = parse_line(line)
    assert isinstance(command, ProtocolError)
    assert command.kind == ProtocolErrorKind.INVALID_CLIENT
    assert command.reply == ERROR_INVALID_CLIENT


@pytest.mark.parametrize("line", ["@2", "@2 ", "@2    ", "@", "@abc"])
def test_private_incomplete(line):
    """A missing payload is reported before the id is checked."""
    command = parse_line(line)
    assert isinstance(command, ProtocolError)
    assert command.kind == ProtocolErrorKind.INCOMPLETE_PRIVATE
    assert command.reply == ERROR_INCOMPLETE_PRIVATE


def test_signed_ids_parse():
    assert parse_line("@+3 hi").target_id == 3
    assert parse_line("@-1 hi").target_id == -1


def test_multicast_collapses_duplicates():
    command = parse_line("#1,2,1 hello")
    assert isinstance(command, MulticastCommand)
    assert command.target_ids == [1, 2]
    assert [t.token for t in command.targets] == ["1", "2", "1"]
    assert command.text == "hello"


def test_multicast_keeps_malformed_tokens_apart():
    command = parse_line("#1,\t2\t,x,,3 hi")
    assert command.target_ids == [1, 2, 3]
    assert command.invalid_tokens == ["x", ""]
    assert [t.client_id for t in command.targets] == [1, 2, None, None, 3]


def test_multicast_trailing_comma_adds_nothing():
    command = parse_line("#1,2, hi")
    assert command.target_ids == [1, 2]
    assert command.invalid_tokens == []


def test_multicast_leading_comma_is_invalid():
    command = parse_line("#,1 hi")
    assert command.invalid_tokens == [""]
    assert command.target_ids == [1]


def test_multicast_without_ids():
    command = parse_line("# hi")
    assert isinstance(command, MulticastCommand)
    assert command.target_ids == []
    assert command.invalid_tokens == [""]


@pytest.mark.parametrize("line", ["#1,2", "#1,2 ", "#", "#1,2\t"])
def test_multicast_incomplete(line):
    command = parse_line(line)
    assert isinstance(command, ProtocolError)
    assert command.kind == ProtocolErrorKind.INCOMPLETE_MULTICAST
    assert command.reply == ERROR_INCOMPLETE_MULTICAST


def test_parse_client_id():
    assert parse_client_id("42") == 42
    assert parse_client_id("007") == 7
    assert parse_client_id("") is None
    assert parse_client_id(" 4") is None
    assert parse_client_id("four") is None


@pytest.mark.parametrize("token", ["2147483648", "-2147483649", "99999999999", "1" * 5000, "-" + "9" * 5000])
def test_client_id_out_of_range_is_invalid(token):
    """Ids beyond the 32-bit signed range are malformed, however long."""
    assert parse_client_id(token) is None


def test_client_id_range_limits():
    assert parse_client_id("2147483647") == 2**31 - 1
    assert parse_client_id("-2147483648") == -2**31
    assert parse_client_id("0000000000002147483647") == 2**31 - 1


@pytest.mark.parametrize("line", ["@99999999999 hi", "@" + "1" * 5000 + " hi"])
def test_private_out_of_range_id(line):
    command = parse_line(line)
    assert isinstance(command, ProtocolError)
    assert command.reply == ERROR_INVALID_CLIENT


def test_multicast_out_of_range_id_is_malformed():
    huge = "9" * 5000
    command = parse_line(f"#2,{huge},99999999999 hi")
    assert command.target_ids == [2]
    assert command.invalid_tokens == [huge, "99999999999"]


def test_format_unresolved():
    assert format_unresolved([9, "abc", ""]) == "[9, abc, ]"
    assert format_unresolved(["it's"]) == "[it's]"
