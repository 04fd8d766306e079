"""Tests for MailService against a FakeExecutor."""

from unittest.mock import patch

import pytest
from conftest import FakeExecutor, row, rows

from mail_bridge.mail.errors import (
    AccountNotFound,
    AutomationError,
    InvalidParameter,
    MailAccessDenied,
    MailboxNotFound,
    MessageNotFound,
)
from mail_bridge.mail.service import MailService, run_operation
from mail_bridge.mail.types import Diagnostics


def _header_row(msg_id: int) -> str:
    return row(msg_id, f"<m{msg_id}@x>", f"Subject {msg_id}", "A <a@x.com>", "sent", "recv", "false", "false", "0")


def _range_text(start: int, end: int) -> str:
    return rows(*(_header_row(i) for i in range(start, end + 1)))


# ── diagnostics ────────────────────────────────────────────────────────────────


class TestDiagnostics:
    def test_authorized(self, service: MailService, executor: FakeExecutor) -> None:
        executor.responses = ["iCloud|||Work"]
        info = service.diagnostics()
        assert info.mail_access == "authorized"
        assert info.account_count == 2
        assert info.accounts == ["iCloud", "Work"]
        assert info.mac_os_version

    def test_no_accounts(self, service: MailService, executor: FakeExecutor) -> None:
        executor.responses = [""]
        info = service.diagnostics()
        assert info.account_count == 0
        assert info.accounts == []

    def test_access_denied_is_reported_not_raised(self, service: MailService, executor: FakeExecutor) -> None:
        executor.responses = [MailAccessDenied()]
        info = service.diagnostics()
        assert "access denied" in info.mail_access
        assert info.account_count == 0

    def test_version_falls_back_to_platform(self, service: MailService, executor: FakeExecutor) -> None:
        executor.responses = [""]
        with patch("mail_bridge.mail.service.platform.mac_ver", return_value=("", ("", "", ""), "")), \
                patch("mail_bridge.mail.service.platform.platform", return_value="Linux-6"):
            assert service.diagnostics().mac_os_version == "Linux-6"


# ── accounts & mailboxes ───────────────────────────────────────────────────────


class TestListAccounts:
    def test_decodes(self, service: MailService, executor: FakeExecutor) -> None:
        executor.responses = [rows(row("iCloud", "Jane", "j@icloud.com", "iCloud", "true"))]
        (account,) = service.list_accounts()
        assert account.name == "iCloud"
        assert account.id == "0"

    def test_one_round_trip(self, service: MailService, executor: FakeExecutor) -> None:
        executor.responses = [""]
        assert service.list_accounts() == []
        assert len(executor.scripts) == 1


class TestListMailboxes:
    def test_builds_tree(self, service: MailService, executor: FakeExecutor) -> None:
        executor.responses = [rows(
            row("INBOX", "iCloud", "2", "10", "0"),
            row("Work", "iCloud", "0", "5", "1"),
            row("Projects", "iCloud", "1", "3", "0", "PARENT=Work"),
            row("Orphan", "iCloud", "0", "0", "0", "PARENT=Gone"),
        )]
        tree = service.list_mailboxes()
        assert [m.name for m in tree] == ["INBOX", "Work"]
        assert [c.full_name for c in tree[1].children] == ["iCloud/Work/Projects"]

    def test_account_filter_in_script(self, service: MailService, executor: FakeExecutor) -> None:
        executor.responses = [""]
        service.list_mailboxes("Work")
        assert 'account "Work"' in executor.scripts[0]

    def test_unknown_account(self, service: MailService, executor: FakeExecutor) -> None:
        executor.responses = [AutomationError('Mail got an error: Can’t get account "Nope".', -1728)]
        with pytest.raises(AccountNotFound):
            service.list_mailboxes("Nope")


# ── list_messages ──────────────────────────────────────────────────────────────


class TestListMessages:
    def test_first_page_newest_first(self, service: MailService, executor: FakeExecutor) -> None:
        executor.responses = ["120", _range_text(71, 120)]
        page = service.list_messages("INBOX", account="iCloud", limit=50)
        assert page.total == 120
        assert page.limit == 50
        assert page.has_more is True
        assert len(page.messages) == 50
        assert page.messages[0].id == 120
        assert page.messages[-1].id == 71
        assert "messages 71 thru 120 of mbox" in executor.scripts[1]

    def test_partial_last_page(self, service: MailService, executor: FakeExecutor) -> None:
        executor.responses = ["30", _range_text(1, 5)]
        page = service.list_messages("INBOX", offset=25, limit=50)
        assert [m.id for m in page.messages] == [5, 4, 3, 2, 1]
        assert page.has_more is False
        assert page.messages[0].account == "Unknown"

    def test_empty_mailbox_skips_fetch(self, service: MailService, executor: FakeExecutor) -> None:
        executor.responses = ["0"]
        page = service.list_messages("INBOX")
        assert page.messages == []
        assert page.total == 0
        assert page.has_more is False
        assert len(executor.scripts) == 1

    def test_offset_past_end_skips_fetch(self, service: MailService, executor: FakeExecutor) -> None:
        executor.responses = ["10"]
        page = service.list_messages("INBOX", offset=10)
        assert page.messages == []
        assert page.total == 10
        assert len(executor.scripts) == 1

    def test_limit_clamped(self, service: MailService, executor: FakeExecutor) -> None:
        executor.responses = ["1000", _range_text(801, 1000)]
        page = service.list_messages("INBOX", limit=500)
        assert page.limit == 200
        assert len(page.messages) == 200

    def test_unparsable_count_is_empty(self, service: MailService, executor: FakeExecutor) -> None:
        executor.responses = ["missing value"]
        assert service.list_messages("INBOX").total == 0

    def test_empty_range_result(self, service: MailService, executor: FakeExecutor) -> None:
        executor.responses = ["5", ""]
        page = service.list_messages("INBOX")
        assert page.messages == []
        assert page.total == 5
        assert page.has_more is False

    def test_short_rows_dropped(self, service: MailService, executor: FakeExecutor) -> None:
        executor.responses = ["3", rows(_header_row(1), "2:::short", _header_row(3))]
        page = service.list_messages("INBOX")
        assert [m.id for m in page.messages] == [3, 1]

    def test_missing_mailbox(self, service: MailService, executor: FakeExecutor) -> None:
        executor.responses = [AutomationError('Mail got an error: Can’t get mailbox "Nope" of account "iCloud".', -1728)]
        with pytest.raises(MailboxNotFound):
            service.list_messages("Nope", account="iCloud")

    @pytest.mark.parametrize(
        "kwargs",
        [{"limit": 0}, {"limit": -5}, {"offset": -1}],
    )
    def test_invalid_parameters(self, service: MailService, executor: FakeExecutor, kwargs: dict) -> None:
        with pytest.raises(InvalidParameter):
            service.list_messages("INBOX", **kwargs)
        assert executor.scripts == []

    def test_blank_mailbox(self, service: MailService) -> None:
        with pytest.raises(InvalidParameter, match="mailbox"):
            service.list_messages("  ")


# ── get_message ────────────────────────────────────────────────────────────────


class TestGetMessage:
    def _detail(self, content: str) -> str:
        return "|||".join([
            "<m7@x>", "Budget", '"Doe, Jane" <jane@x.com>', "sent", "recv", "true", "false",
            "bob@x.com", "", "q.pdf~~~application/pdf~~~2048", content,
        ])

    def test_decodes_detail(self, service: MailService, executor: FakeExecutor) -> None:
        executor.responses = [self._detail("Hi Bob")]
        detail = service.get_message(7, "INBOX", account="iCloud")
        assert detail.id == 7
        assert detail.sender_name == "Doe, Jane"
        assert detail.to_recipients == ["bob@x.com"]
        assert detail.attachments[0].file_size == 2048
        assert detail.account == "iCloud"
        assert "whose id is 7" in executor.scripts[0]

    def test_body_with_separators_survives(self, service: MailService, executor: FakeExecutor) -> None:
        body = "a ||| b\n||| c"
        executor.responses = [self._detail(body)]
        assert service.get_message(7, "INBOX").content == body

    def test_short_result_is_not_found(self, service: MailService, executor: FakeExecutor) -> None:
        executor.responses = [""]
        with pytest.raises(MessageNotFound):
            service.get_message(7, "INBOX")

    def test_no_such_message_in_existing_mailbox(self, service: MailService, executor: FakeExecutor) -> None:
        executor.responses = [AutomationError(
            'Mail got an error: Can’t get message 1 of mailbox "INBOX" of account "iCloud" whose id = 99. '
            "Invalid index.",
            -1719,
        )]
        with pytest.raises(MessageNotFound) as exc_info:
            service.get_message(99, "INBOX", account="iCloud")
        assert exc_info.value.message_id == 99

    def test_no_such_message_straight_quote(self, service: MailService, executor: FakeExecutor) -> None:
        executor.responses = [AutomationError("Can't get message 42 of mailbox \"Junk\"", -1728)]
        with pytest.raises(MessageNotFound):
            service.get_message(42, "Junk")

    def test_missing_mailbox_wins_over_message(self, service: MailService, executor: FakeExecutor) -> None:
        executor.responses = [AutomationError('Can’t get mailbox "Old" of account "iCloud".', -1728)]
        with pytest.raises(MailboxNotFound):
            service.get_message(1, "Old", account="iCloud")

    def test_missing_account_on_detail(self, service: MailService, executor: FakeExecutor) -> None:
        executor.responses = [AutomationError('Mail got an error: Can’t get account "Gone".', -1728)]
        with pytest.raises(AccountNotFound):
            service.get_message(1, "INBOX", account="Gone")

    def test_names_with_quotes_match_escaped_rendering(self, service: MailService, executor: FakeExecutor) -> None:
        executor.responses = [AutomationError(
            'Mail got an error: Can’t get mailbox "Say \\"hi\\" \\\\ bye" of account "iCloud".', -1728,
        )]
        with pytest.raises(MailboxNotFound) as exc_info:
            service.get_message(1, 'Say "hi" \\ bye', account="iCloud")
        assert exc_info.value.name == 'Say "hi" \\ bye'

    def test_unrecognised_reference_passes_through(self, service: MailService, executor: FakeExecutor) -> None:
        executor.responses = [AutomationError('Can’t get mail attachment 1 of message 3.', -1728)]
        with pytest.raises(AutomationError):
            service.list_mailboxes("iCloud")

    def test_other_errors_pass_through(self, service: MailService, executor: FakeExecutor) -> None:
        executor.responses = [AutomationError("AppleEvent timed out.", -1712)]
        with pytest.raises(AutomationError):
            service.get_message(1, "INBOX")

    def test_invalid_id(self, service: MailService) -> None:
        with pytest.raises(InvalidParameter):
            service.get_message(0, "INBOX")


# ── unread & search ────────────────────────────────────────────────────────────


class TestListUnread:
    def test_decodes(self, service: MailService, executor: FakeExecutor) -> None:
        executor.responses = [row("3", "<m3@x>", "Hi", "c@x.com", "s", "r", "false", "0", "INBOX", "Gmail")]
        (h,) = service.list_unread()
        assert h.is_read is False
        assert h.account == "Gmail"

    def test_limit_clamped_in_script(self, service: MailService, executor: FakeExecutor) -> None:
        executor.responses = [""]
        service.list_unread(limit=1000)
        assert "msgCount >= 200" in executor.scripts[0]

    def test_access_denied_propagates(self, service: MailService, executor: FakeExecutor) -> None:
        executor.responses = [MailAccessDenied()]
        with pytest.raises(MailAccessDenied):
            service.list_unread(account="iCloud")


class TestSearch:
    def test_decodes(self, service: MailService, executor: FakeExecutor) -> None:
        executor.responses = [row("4", "<m4@x>", "Invoice", "Acme <b@acme.com>", "s", "r", "true", "false", "1", "INBOX", "Work")]
        (h,) = service.search("invoice", account="Work")
        assert h.subject == "Invoice"
        assert h.has_attachments is True
        assert 'contains "invoice"' in executor.scripts[0]

    def test_empty_query_rejected(self, service: MailService, executor: FakeExecutor) -> None:
        with pytest.raises(InvalidParameter, match="query"):
            service.search("")
        assert executor.scripts == []

    def test_no_matches(self, service: MailService, executor: FakeExecutor) -> None:
        executor.responses = [""]
        assert service.search("nothing") == []


# ── run_operation ──────────────────────────────────────────────────────────────


class TestRunOperation:
    def test_success(self, service: MailService, executor: FakeExecutor) -> None:
        executor.responses = [""]
        env = run_operation(service.list_accounts)
        assert env.to_dict() == {"status": "ok", "data": []}

    def test_access_denied(self, service: MailService, executor: FakeExecutor) -> None:
        executor.responses = [MailAccessDenied()]
        env = run_operation(service.list_accounts)
        assert env.status == "error"
        assert env.error == str(MailAccessDenied())

    def test_automation_error_message_verbatim(self, service: MailService, executor: FakeExecutor) -> None:
        executor.responses = [AutomationError("Mail got an error: boom", -10000)]
        env = run_operation(service.list_accounts)
        assert env.error == "AppleScript error: Mail got an error: boom (error -10000)"

    def test_unexpected_exception_is_enveloped(self) -> None:
        def broken() -> None:
            raise KeyError("oops")

        env = run_operation(broken)
        assert env.status == "error"
        assert env.error.startswith("AppleScript error:")

    def test_diagnostics_always_ok(self, service: MailService, executor: FakeExecutor) -> None:
        executor.responses = [AutomationError("boom")]
        env = run_operation(service.diagnostics)
        assert env.ok
        assert isinstance(env.data, Diagnostics)
