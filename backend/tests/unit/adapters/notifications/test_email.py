"""Tests for the email notifier."""

import smtplib
from unittest.mock import MagicMock, patch

import pytest
from projectdesk.adapters.notifications import EmailConfig, EmailNotifier, LoggingNotifier


@pytest.fixture
def config() -> EmailConfig:
    """SMTP config with credentials."""
    return EmailConfig(
        smtp_host="smtp.test",
        smtp_port=2525,
        smtp_user="mailer",
        smtp_password="secret",
        from_email="invites@projectdesk.test",
    )


class TestEmailNotifier:
    """Tests for EmailNotifier.send."""

    def test_sends_via_smtp(self, config: EmailConfig) -> None:
        """Connects, upgrades to TLS, logs in and sends."""
        with patch("projectdesk.adapters.notifications.email.smtplib.SMTP") as smtp_cls:
            server = MagicMock()
            smtp_cls.return_value.__enter__.return_value = server

            sent = EmailNotifier(config).send(["carol@example.com"], "Invite", "<p>hi</p>", "hi")

        assert sent is True
        smtp_cls.assert_called_once_with("smtp.test", 2525, timeout=10.0)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("mailer", "secret")
        [message] = server.send_message.call_args.args
        assert message["Subject"] == "Invite"
        assert server.send_message.call_args.kwargs == {
            "from_addr": "invites@projectdesk.test",
            "to_addrs": ["carol@example.com"],
        }

    def test_failure_returns_false(self, config: EmailConfig) -> None:
        """SMTP failures are reported, not raised."""
        with patch("projectdesk.adapters.notifications.email.smtplib.SMTP") as smtp_cls:
            smtp_cls.side_effect = smtplib.SMTPConnectError(421, "unavailable")

            assert EmailNotifier(config).send(["carol@example.com"], "Invite", "<p>hi</p>") is False

    def test_no_login_without_credentials(self) -> None:
        """Anonymous relays skip login."""
        notifier = EmailNotifier(EmailConfig(smtp_host="smtp.test", use_tls=False))
        with patch("projectdesk.adapters.notifications.email.smtplib.SMTP") as smtp_cls:
            server = MagicMock()
            smtp_cls.return_value.__enter__.return_value = server

            notifier.send(["carol@example.com"], "Invite", "<p>hi</p>")

        server.starttls.assert_not_called()
        server.login.assert_not_called()


def test_logging_notifier_succeeds() -> None:
    """The fallback notifier never fails."""
    assert LoggingNotifier().send(["carol@example.com"], "Invite", "<p>hi</p>") is True


class TestBuildMessage:
    """Tests for EmailNotifier.build_message."""

    def test_text_and_html_alternatives(self, config: EmailConfig) -> None:
        """Both bodies are present and the sender is named."""
        message = EmailNotifier(config).build_message(
            ["carol@example.com", "dave@example.com"], "Invite", "<p>Join us</p>", "Join us"
        )

        assert message["To"] == "carol@example.com, dave@example.com"
        assert message["From"] == "Project Invite <invites@projectdesk.test>"
        plain = message.get_body(preferencelist=("plain",))
        html = message.get_body(preferencelist=("html",))
        assert plain is not None and html is not None
        assert plain.get_content().strip() == "Join us"  # type: ignore[attr-defined]
        assert "<p>Join us</p>" in html.get_content()  # type: ignore[attr-defined]
