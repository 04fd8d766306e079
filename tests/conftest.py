"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from mail_bridge.mail.codec import FIELD_SEP, RECORD_SEP
from mail_bridge.mail.service import MailService


class FakeExecutor:
    """ScriptExecutor stand-in that replays canned results in order.

    Each queued item is either the text to return or an exception to raise.
    Executed scripts are recorded for assertions.
    """

    def __init__(self, *responses: str | Exception) -> None:
        self.responses: list[str | Exception] = list(responses)
        self.scripts: list[str] = []

    def execute(self, script: str) -> str:
        self.scripts.append(script)
        if not self.responses:
            raise AssertionError("FakeExecutor ran out of canned responses")
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def row(*fields: object) -> str:
    """Join columns with the field separator."""
    return FIELD_SEP.join(str(f) for f in fields)


def rows(*records: str) -> str:
    """Join rows with the record separator."""
    return RECORD_SEP.join(records)


@pytest.fixture
def executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def service(executor: FakeExecutor) -> MailService:
    return MailService(executor)
