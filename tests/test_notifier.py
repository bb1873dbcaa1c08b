"""Tests for failure notifiers."""

import logging
from datetime import datetime, timezone
from unittest.mock import Mock, patch

import pytest

from webcompare.models.config import NotificationConfig
from webcompare.models.notification import (
    BulkComparisonFailure,
    ComparisonFailure,
    FailedPage,
    Recipient,
)
from webcompare.notifications.notifier import (
    EmailNotifier,
    LoggingNotifier,
    NullNotifier,
    build_notifier,
    bulk_failure_subject,
    failure_subject,
    render_bulk_failure_html,
    render_failure_html,
    send_safely,
)

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def failure():
    return ComparisonFailure(
        page_name="Home",
        page_path="/home",
        page_url="https://example.com/home",
        website_name="Example",
        website_url="https://example.com",
        error_message="Navigation timeout of 30000 ms exceeded",
        timestamp=NOW,
    )


@pytest.fixture
def bulk_failure():
    return BulkComparisonFailure(
        website_name="Example",
        website_url="https://example.com",
        total_pages=3,
        failed_pages=[
            FailedPage(page_name="About", page_path="/about", error_message="timed out"),
            FailedPage(page_name="<Shop>", page_path="/shop", error_message="500 & down"),
        ],
        successful_pages=1,
        timestamp=NOW,
    )


@pytest.fixture
def recipients():
    return [Recipient(email="owner@example.com", name="Owner"), Recipient(email="editor@example.com")]


@pytest.fixture
def smtp_config():
    return NotificationConfig(
        provider="smtp",
        smtp_host="mail.example.com",
        smtp_port=2525,
        smtp_username="bot",
        smtp_password="pw",
    )


class TestRendering:
    """Tests for subjects and bodies."""

    def test_subjects(self, failure, bulk_failure):
        assert failure_subject(failure) == "Comparison Failed: Home - Example"
        assert bulk_failure_subject(bulk_failure) == "Bulk Comparison Issues: Example (2/3 failed)"

    def test_html_is_escaped(self, bulk_failure):
        body = render_bulk_failure_html(bulk_failure)
        assert "&lt;Shop&gt;" in body
        assert "500 &amp; down" in body
        assert "<Shop>" not in body

    def test_failure_html_mentions_error(self, failure):
        assert "Navigation timeout" in render_failure_html(failure)


class TestEmailNotifier:
    """Tests for EmailNotifier with a mocked SMTP connection."""

    def test_sends_multipart_message(self, smtp_config, recipients, failure):
        with patch("webcompare.notifications.notifier.smtplib.SMTP") as smtp_cls:
            EmailNotifier(smtp_config).notify_failure(recipients, failure)

        smtp_cls.assert_called_once_with("mail.example.com", 2525, timeout=30)
        smtp = smtp_cls.return_value.__enter__.return_value
        smtp.starttls.assert_called_once()
        smtp.login.assert_called_once_with("bot", "pw")
        msg = smtp.send_message.call_args.args[0]
        assert msg["Subject"] == "Comparison Failed: Home - Example"
        assert msg["To"] == "Owner <owner@example.com>, editor@example.com"
        assert msg["From"] == "Website Compare <noreply@website-compare.com>"
        assert msg.is_multipart()
        assert "Navigation timeout" in msg.get_body(preferencelist=("plain",)).get_content()

    def test_bulk_subject(self, smtp_config, recipients, bulk_failure):
        with patch("webcompare.notifications.notifier.smtplib.SMTP") as smtp_cls:
            EmailNotifier(smtp_config).notify_bulk_failure(recipients, bulk_failure)

        msg = smtp_cls.return_value.__enter__.return_value.send_message.call_args.args[0]
        assert msg["Subject"] == "Bulk Comparison Issues: Example (2/3 failed)"

    def test_no_login_without_username(self, recipients, failure):
        config = NotificationConfig(provider="smtp", smtp_use_tls=False)
        with patch("webcompare.notifications.notifier.smtplib.SMTP") as smtp_cls:
            EmailNotifier(config).notify_failure(recipients, failure)

        smtp = smtp_cls.return_value.__enter__.return_value
        smtp.starttls.assert_not_called()
        smtp.login.assert_not_called()
        smtp.send_message.assert_called_once()

    def test_no_recipients_sends_nothing(self, smtp_config, failure):
        with patch("webcompare.notifications.notifier.smtplib.SMTP") as smtp_cls:
            EmailNotifier(smtp_config).notify_failure([], failure)
        smtp_cls.assert_not_called()


class TestLoggingNotifier:
    """Tests for LoggingNotifier."""

    def test_logs_failure(self, recipients, failure, caplog):
        with caplog.at_level(logging.ERROR, logger="webcompare.notifications.notifier"):
            LoggingNotifier().notify_failure(recipients, failure)
        assert "https://example.com/home" in caplog.text
        assert "owner@example.com" in caplog.text

    def test_logs_each_failed_page(self, recipients, bulk_failure, caplog):
        with caplog.at_level(logging.ERROR, logger="webcompare.notifications.notifier"):
            LoggingNotifier().notify_bulk_failure(recipients, bulk_failure)
        assert "2/3 pages failed" in caplog.text
        assert "/about" in caplog.text and "/shop" in caplog.text


class TestBuildNotifier:
    """Tests for build_notifier()."""

    def test_disabled(self):
        assert isinstance(build_notifier(NotificationConfig(enabled=False, provider="smtp")), NullNotifier)

    def test_smtp(self, smtp_config):
        assert isinstance(build_notifier(smtp_config), EmailNotifier)

    def test_default_logs(self):
        assert isinstance(build_notifier(NotificationConfig()), LoggingNotifier)


class TestSendSafely:
    """Tests for send_safely()."""

    @pytest.mark.asyncio
    async def test_returns_true_on_success(self, recipients, failure):
        send = Mock()
        assert await send_safely(send, recipients, failure) is True
        send.assert_called_once_with(recipients, failure)

    @pytest.mark.asyncio
    async def test_swallows_delivery_errors(self, recipients, failure, caplog):
        send = Mock(side_effect=OSError("connection refused"))
        with caplog.at_level(logging.ERROR, logger="webcompare.notifications.notifier"):
            assert await send_safely(send, recipients, failure) is False
        assert "connection refused" in caplog.text
