"""Tests for sender display-string parsing."""

import pytest

from mail_bridge.mail.sender import parse_sender


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("Jane Doe <jane@x.com>", ("Jane Doe", "jane@x.com")),
        ("<jane@x.com>", ("jane@x.com", "jane@x.com")),
        ("jane@x.com", ("jane@x.com", "jane@x.com")),
        ("Jane Doe", ("Jane Doe", "")),
        ('"Doe, Jane" <jane@x.com>', ("Doe, Jane", "jane@x.com")),
        ("  Jane Doe   <  jane@x.com >  ", ("Jane Doe", "jane@x.com")),
        ("", ("", "")),
    ],
)
def test_parse_sender(raw: str, expected: tuple[str, str]) -> None:
    assert parse_sender(raw) == expected


def test_name_with_angle_brackets_uses_last_pair() -> None:
    assert parse_sender("Team <Ops> <ops@x.com>") == ("Team <Ops>", "ops@x.com")


def test_reversed_brackets_fall_through() -> None:
    # ">" before "<" is not an address; the "@" rule applies to the whole string.
    assert parse_sender("a> b <c@x.com") == ("a> b <c@x.com", "a> b <c@x.com")


def test_no_address_validation() -> None:
    assert parse_sender("Someone <not an address>") == ("Someone", "not an address")
