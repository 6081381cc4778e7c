"""Shared HTML layout and notification-type constants for templates."""

from enum import Enum
from html import escape


class NotificationType(Enum):
    ORDER = "order"
    RESOLUTION = "resolution"
    COWORKER = "coworker"
    REVIEW = "review"
    DEBIT = "debit"
    CREDIT = "credit"
    SYSTEM = "system"


class TargetRole(Enum):
    BUYER = "buyer"
    SELLER = "seller"
    ADMIN = "admin"


def layout(first_name: str | None, subject: str, content: str) -> str:
    """Wrap rendered content in the common email shell."""
    greeting = f"Hi {escape(first_name)}," if first_name else "Hi,"
    return (
        "<!DOCTYPE html>"
        '<html><body style="font-family: Arial, sans-serif; color: #222;">'
        f"<h2>{escape(subject)}</h2>"
        f"<p>{greeting}</p>"
        f"{content}"
        '<p style="color: #888; font-size: 12px;">You are receiving this email because of activity on your account.</p>'
        "</body></html>"
    )


def paragraph(text: str) -> str:
    return f"<p>{escape(text)}</p>"


def button(label: str, href: str) -> str:
    return (
        f'<p><a href="{escape(href, quote=True)}" '
        'style="background: #1dbf73; color: #fff; padding: 10px 16px; text-decoration: none;">'
        f"{escape(label)}</a></p>"
    )
