"""Coworker invitation templates."""

from marketplace.templates.base import NotificationType, TargetRole, button, layout, paragraph


def _terms(context: dict) -> str:
    rate = context.get("rate", "0")
    if context.get("price_type") == "hourly":
        return f"${rate}/hour, up to {context.get('max_hours', 0)} hours"
    return f"${rate} fixed"


class CoworkerInvitedTemplate:
    notification_type = NotificationType.COWORKER.value
    target_role = TargetRole.SELLER.value

    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        subject = "You've Been Invited to Collaborate"
        description = f"You were invited to work on order #{order_id} ({_terms(context)})."
        html = paragraph(description)
        if context.get("accept_link"):
            html += button("Accept", context["accept_link"])
        if context.get("reject_link"):
            html += button("Decline", context["reject_link"])
        return {
            "subject": subject,
            "title": subject,
            "description": description,
            "html": layout(context.get("first_name"), subject, html),
        }


class CoworkerRespondedTemplate:
    notification_type = NotificationType.COWORKER.value
    target_role = TargetRole.SELLER.value

    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        decision = "accepted" if context.get("status") == "accepted" else "declined"
        subject = f"Coworker Invitation {decision.capitalize()}"
        description = f"{context.get('coworker_name', 'Your coworker')} {decision} your invitation on order #{order_id}."
        return {
            "subject": subject,
            "title": subject,
            "description": description,
            "html": layout(context.get("first_name"), subject, paragraph(description)),
        }
