"""Tests for the notification email template and SMTP mailer."""

from __future__ import annotations

import smtplib
from unittest.mock import patch

from helpers import make_commit, utc

from commitwatch.engines.github.models import Commit
from commitwatch.engines.notification.mailer import Mailer
from commitwatch.engines.notification.template import commit_url, render_commit_notification

# ── template ──────────────────────────────────────────────────────────────


class TestRenderCommitNotification:
    def test_subject_short_message(self):
        subject, _ = render_commit_notification(
            "octocat", "hello", make_commit("abc1234def", message="Fix typo")
        )
        assert subject == "New commit from octocat: Fix typo"

    def test_subject_truncates_long_message(self):
        message = "x" * 80
        subject, _ = render_commit_notification(
            "octocat", "hello", make_commit("abc1234def", message=message)
        )
        assert subject == f"New commit from octocat: {'x' * 50}..."

    def test_subject_exactly_fifty_chars_not_truncated(self):
        message = "y" * 50
        subject, _ = render_commit_notification(
            "octocat", "hello", make_commit("abc1234def", message=message)
        )
        assert not subject.endswith("...")

    def test_body_contains_commit_details(self):
        commit = make_commit("abc1234def567", utc(2024, 6, 1), message="Add parser")
        _, body = render_commit_notification("octocat", "hello", commit)

        assert "octocat/hello" in body
        assert "abc1234" in body
        assert "abc1234def567" in body  # inside the link
        assert "Add parser" in body
        assert "Octo Cat" in body
        assert commit_url("octocat", "hello", "abc1234def567") in body

    def test_unknown_author(self):
        _, body = render_commit_notification(
            "octocat", "hello", make_commit("abc1234def", author=None)
        )
        assert "Unknown" in body

    def test_prefers_api_html_url(self):
        commit = Commit(
            sha="abc1234def",
            message="m",
            html_url="https://github.com/octocat/hello/commit/abc1234def?x=1",
        )
        _, body = render_commit_notification("octocat", "hello", commit)
        assert "commit/abc1234def?x=1" in body

    def test_message_is_escaped(self):
        _, body = render_commit_notification(
            "octocat", "hello", make_commit("abc1234def", message="<script>alert(1)</script>")
        )
        assert "<script>" not in body
        assert "&lt;script&gt;" in body


# ── mailer ────────────────────────────────────────────────────────────────


class TestMailer:
    async def test_unconfigured_mailer_reports_failure(self):
        mailer = Mailer(host="")

        result = await mailer.send("dev@example.com", "s", "<p>b</p>")

        assert mailer.configured is False
        assert result.success is False
        assert result.error == "Email service not configured"

    async def test_send_uses_starttls_and_login(self):
        mailer = Mailer(
            host="smtp.example.com",
            port=2525,
            user="bot",
            password="secret",
            from_addr="bot@example.com",
        )

        with patch("commitwatch.engines.notification.mailer.smtplib.SMTP") as smtp_cls:
            result = await mailer.send("dev@example.com", "Subject", "<p>hi</p>")

        assert result.success is True
        smtp_cls.assert_called_once_with("smtp.example.com", 2525, timeout=30)
        server = smtp_cls.return_value.__enter__.return_value
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("bot", "secret")
        [message] = server.send_message.call_args.args
        assert message["From"] == "bot@example.com"
        assert message["To"] == "dev@example.com"
        assert message["Subject"] == "Subject"
        assert message.get_body(("html",)).get_content().strip() == "<p>hi</p>"

    async def test_no_login_without_user(self):
        mailer = Mailer(host="smtp.example.com", port=25, user="", password="", from_addr="a@b.io")

        with patch("commitwatch.engines.notification.mailer.smtplib.SMTP") as smtp_cls:
            await mailer.send("dev@example.com", "Subject", "<p>hi</p>")

        smtp_cls.return_value.__enter__.return_value.login.assert_not_called()

    async def test_smtp_error_is_reported_not_raised(self):
        mailer = Mailer(host="smtp.example.com", port=25, user="", password="", from_addr="a@b.io")

        with patch("commitwatch.engines.notification.mailer.smtplib.SMTP") as smtp_cls:
            smtp_cls.side_effect = smtplib.SMTPConnectError(421, b"busy")
            result = await mailer.send("dev@example.com", "Subject", "<p>hi</p>")

        assert result.success is False
        assert "SMTPConnectError" in result.error

    async def test_connection_refused_is_reported(self):
        mailer = Mailer(host="smtp.example.com", port=25, user="", password="", from_addr="a@b.io")

        with patch("commitwatch.engines.notification.mailer.smtplib.SMTP") as smtp_cls:
            smtp_cls.side_effect = ConnectionRefusedError("refused")
            result = await mailer.send("dev@example.com", "Subject", "<p>hi</p>")

        assert result.success is False
