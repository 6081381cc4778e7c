"""Fire-and-forget delivery of emails and in-app notifications.

Called from event handlers after a state change has committed (and from
the payment capture path before aborting). Nothing here raises: every
transport failure is logged with the recipient and template, then dropped.
"""

import os

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from marketplace.channel import get_email_sender, get_notification_sink
from marketplace.member.member import Member
from marketplace.templates import get_template

logger = structlog.get_logger(__name__)


def client_link(path: str) -> str:
    """Absolute link into the web client for notification buttons."""
    base = os.environ.get("CLIENT_URL", "http://localhost:3000").rstrip("/")
    return f"{base}/{path.lstrip('/')}"


def _load_member(member_id: str) -> Member | None:
    try:
        return current_domain.repository_for(Member).get(member_id)
    except ObjectNotFoundError:
        logger.warning("Notification recipient not found", member_id=member_id)
        return None


def notify_member(
    member_id: str,
    template_key: str,
    context: dict,
    target_role: str | None = None,
    link: str | None = None,
    send_email: bool = True,
) -> None:
    """Render a template and deliver it as an email and an in-app notification."""
    member = _load_member(str(member_id))
    if member is None:
        return

    template_cls = get_template(template_key)
    rendered = template_cls.render({"first_name": member.first_name, "link": link, **context})

    if send_email:
        try:
            result = get_email_sender().send(member.email, rendered["subject"], rendered["html"])
            if result.get("status") != "sent":
                logger.warning(
                    "Email not delivered",
                    member_id=str(member.id),
                    template=template_key,
                    error=result.get("error"),
                )
        except Exception:
            logger.exception("Email dispatch failed", member_id=str(member.id), template=template_key)

    try:
        get_notification_sink().create(
            user_id=str(member.id),
            title=rendered["title"],
            description=rendered["description"],
            type=template_cls.notification_type,
            target_role=target_role or template_cls.target_role,
            link=link,
        )
    except Exception:
        logger.exception("Notification dispatch failed", member_id=str(member.id), template=template_key)
