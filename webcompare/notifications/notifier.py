"""Failure notifiers — tell website owners when comparisons fail."""

from __future__ import annotations

import asyncio
import html
import logging
import smtplib
from email.message import EmailMessage

from webcompare.models.config import NotificationConfig
from webcompare.models.notification import BulkComparisonFailure, ComparisonFailure, Recipient

logger = logging.getLogger(__name__)


class Notifier:
    """Base notifier. Subclasses deliver failure reports somewhere."""

    def notify_failure(self, recipients: list[Recipient], failure: ComparisonFailure) -> None:
        raise NotImplementedError

    def notify_bulk_failure(self, recipients: list[Recipient], failure: BulkComparisonFailure) -> None:
        raise NotImplementedError


class NullNotifier(Notifier):
    def notify_failure(self, recipients: list[Recipient], failure: ComparisonFailure) -> None:
        pass

    def notify_bulk_failure(self, recipients: list[Recipient], failure: BulkComparisonFailure) -> None:
        pass


class LoggingNotifier(Notifier):
    """Writes failure reports to the log instead of sending them."""

    def notify_failure(self, recipients: list[Recipient], failure: ComparisonFailure) -> None:
        logger.error(
            "Comparison failed for %s (%s) on %s: %s [notify: %s]",
            failure.page_name, failure.page_url, failure.website_name,
            failure.error_message, ", ".join(r.email for r in recipients) or "-",
        )

    def notify_bulk_failure(self, recipients: list[Recipient], failure: BulkComparisonFailure) -> None:
        logger.error(
            "Bulk comparison for %s: %d/%d pages failed [notify: %s]",
            failure.website_name, len(failure.failed_pages), failure.total_pages,
            ", ".join(r.email for r in recipients) or "-",
        )
        for page in failure.failed_pages:
            logger.error("  %s (%s): %s", page.page_name, page.page_path, page.error_message)


# Message rendering

def failure_subject(failure: ComparisonFailure) -> str:
    return f"Comparison Failed: {failure.page_name} - {failure.website_name}"


def bulk_failure_subject(failure: BulkComparisonFailure) -> str:
    return (
        f"Bulk Comparison Issues: {failure.website_name} "
        f"({len(failure.failed_pages)}/{failure.total_pages} failed)"
    )


def render_failure_text(failure: ComparisonFailure) -> str:
    return "\n".join([
        "A visual comparison failed.",
        "",
        f"Website: {failure.website_name} ({failure.website_url})",
        f"Page:    {failure.page_name} ({failure.page_path})",
        f"URL:     {failure.page_url}",
        f"Time:    {failure.timestamp.isoformat()}",
        "",
        f"Error: {failure.error_message}",
        "",
        "Run the comparison again once the page is reachable.",
    ])


def render_failure_html(failure: ComparisonFailure) -> str:
    e = html.escape
    return f"""<!DOCTYPE html>
<html>
<body style="font-family: sans-serif;">
  <h2 style="color: #dc2626;">Comparison Failed</h2>
  <table>
    <tr><th align="left">Website</th><td><a href="{e(failure.website_url)}">{e(failure.website_name)}</a></td></tr>
    <tr><th align="left">Page</th><td>{e(failure.page_name)} <code>{e(failure.page_path)}</code></td></tr>
    <tr><th align="left">URL</th><td><a href="{e(failure.page_url)}">{e(failure.page_url)}</a></td></tr>
    <tr><th align="left">Time</th><td>{e(failure.timestamp.isoformat())}</td></tr>
  </table>
  <pre style="background: #fef2f2; padding: 8px;">{e(failure.error_message)}</pre>
</body>
</html>
"""


def render_bulk_failure_text(failure: BulkComparisonFailure) -> str:
    lines = [
        f"Bulk comparison for {failure.website_name} ({failure.website_url}) finished with failures.",
        "",
        f"Total pages: {failure.total_pages}",
        f"Successful:  {failure.successful_pages}",
        f"Failed:      {len(failure.failed_pages)}",
        f"Time:        {failure.timestamp.isoformat()}",
        "",
    ]
    for page in failure.failed_pages:
        lines.append(f"- {page.page_name} ({page.page_path}): {page.error_message}")
    return "\n".join(lines)


def render_bulk_failure_html(failure: BulkComparisonFailure) -> str:
    e = html.escape
    rows = "\n".join(
        f"    <tr><td>{e(p.page_name)}</td><td><code>{e(p.page_path)}</code></td><td>{e(p.error_message)}</td></tr>"
        for p in failure.failed_pages
    )
    return f"""<!DOCTYPE html>
<html>
<body style="font-family: sans-serif;">
  <h2 style="color: #dc2626;">Bulk Comparison Issues</h2>
  <p><a href="{e(failure.website_url)}">{e(failure.website_name)}</a>:
     {len(failure.failed_pages)} of {failure.total_pages} pages failed,
     {failure.successful_pages} succeeded ({e(failure.timestamp.isoformat())}).</p>
  <table border="1" cellpadding="4" cellspacing="0">
    <tr><th>Page</th><th>Path</th><th>Error</th></tr>
{rows}
  </table>
</body>
</html>
"""


class EmailNotifier(Notifier):
    """Sends failure reports over SMTP."""

    def __init__(self, config: NotificationConfig):
        self.config = config

    def _build_message(self, recipients: list[Recipient], subject: str, text: str, html_body: str) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = f"{self.config.from_name} <{self.config.from_email}>"
        msg["To"] = ", ".join(r.formatted() for r in recipients)
        msg["Subject"] = subject
        msg.set_content(text)
        msg.add_alternative(html_body, subtype="html")
        return msg

    def _send(self, msg: EmailMessage) -> None:
        cfg = self.config
        with smtplib.SMTP(cfg.smtp_host, cfg.smtp_port, timeout=30) as smtp:
            if cfg.smtp_use_tls:
                smtp.starttls()
            if cfg.smtp_username:
                smtp.login(cfg.smtp_username, cfg.smtp_password or "")
            smtp.send_message(msg)
        logger.info("Email sent to %s", msg["To"])

    def notify_failure(self, recipients: list[Recipient], failure: ComparisonFailure) -> None:
        if not recipients:
            return
        self._send(self._build_message(
            recipients, failure_subject(failure),
            render_failure_text(failure), render_failure_html(failure),
        ))

    def notify_bulk_failure(self, recipients: list[Recipient], failure: BulkComparisonFailure) -> None:
        if not recipients:
            return
        self._send(self._build_message(
            recipients, bulk_failure_subject(failure),
            render_bulk_failure_text(failure), render_bulk_failure_html(failure),
        ))


def build_notifier(config: NotificationConfig) -> Notifier:
    if not config.enabled:
        return NullNotifier()
    if config.provider == "smtp":
        return EmailNotifier(config)
    return LoggingNotifier()


async def send_safely(send, recipients: list[Recipient], payload) -> bool:
    """Deliver a notification, logging and swallowing any delivery error.

    Returns True when the notifier accepted the message.
    """
    try:
        await asyncio.to_thread(send, recipients, payload)
        return True
    except Exception as e:
        logger.error("Failed to send failure notification: %s", e)
        return False
