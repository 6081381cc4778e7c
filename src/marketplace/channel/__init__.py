"""Channel adapter registry — email sender and in-app notification sink.

Fake adapters are used by default. EMAIL_ADAPTER=smtp switches email to
the SMTP adapter configured from SMTP_* environment variables.
"""

import os

from marketplace.channel.email_port import EmailPort
from marketplace.channel.notification_port import NotificationSink

_email_sender: EmailPort | None = None
_notification_sink: NotificationSink | None = None


def _email_from_env() -> EmailPort:
    if os.environ.get("EMAIL_ADAPTER", "fake").lower() == "smtp":
        from marketplace.channel.smtp_email import SMTPEmailAdapter

        return SMTPEmailAdapter(
            host=os.environ["SMTP_HOST"],
            port=int(os.environ.get("SMTP_PORT", "587")),
            username=os.environ.get("SMTP_USERNAME"),
            password=os.environ.get("SMTP_PASSWORD"),
            from_address=os.environ.get("EMAIL_FROM_ADDRESS", "no-reply@localhost"),
            use_tls=os.environ.get("SMTP_USE_TLS", "true").lower() != "false",
        )

    from marketplace.channel.fake_email import FakeEmailAdapter

    return FakeEmailAdapter()


def get_email_sender() -> EmailPort:
    """Return the configured email adapter (singleton)."""
    global _email_sender
    if _email_sender is None:
        _email_sender = _email_from_env()
    return _email_sender


def set_email_sender(sender: EmailPort) -> None:
    global _email_sender
    _email_sender = sender


def get_notification_sink() -> NotificationSink:
    """Return the configured notification sink (singleton)."""
    global _notification_sink
    if _notification_sink is None:
        from marketplace.channel.fake_notification import FakeNotificationSink

        _notification_sink = FakeNotificationSink()
    return _notification_sink


def set_notification_sink(sink: NotificationSink) -> None:
    global _notification_sink
    _notification_sink = sink


def reset_channels():
    """Reset all channel singletons (useful for testing)."""
    global _email_sender, _notification_sink
    _email_sender = None
    _notification_sink = None
