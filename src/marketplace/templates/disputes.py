"""Dispute templates — raised, and answered by a party or an admin."""

from marketplace.templates.base import NotificationType, TargetRole, button, layout, paragraph


class DisputeRaisedInitiatorTemplate:
    notification_type = NotificationType.RESOLUTION.value
    target_role = TargetRole.BUYER.value

    @staticmethod
    def render(context: dict) -> dict:
        ticket_id = context.get("ticket_id", "N/A")
        order_id = context.get("order_id", "N/A")
        subject = f"Resolution Request {ticket_id} Submitted"
        description = f"Your resolution request for order #{order_id} was submitted. The other party has been notified."
        html = paragraph(description) + paragraph(f"Reason: {context.get('reason', '')}")
        return {
            "subject": subject,
            "title": subject,
            "description": description,
            "html": layout(context.get("first_name"), subject, html),
        }


class DisputeRaisedCounterpartyTemplate:
    notification_type = NotificationType.RESOLUTION.value
    target_role = TargetRole.SELLER.value

    @staticmethod
    def render(context: dict) -> dict:
        ticket_id = context.get("ticket_id", "N/A")
        order_id = context.get("order_id", "N/A")
        subject = f"Action Needed: Resolution Request {ticket_id}"
        description = f"A resolution request was opened on order #{order_id}. Please accept or reject it."
        html = paragraph(description)
        html += paragraph(f"Reason: {context.get('reason', '')}")
        if context.get("message"):
            html += paragraph(f"Message: {context['message']}")
        if context.get("link"):
            html += button("Respond", context["link"])
        return {
            "subject": subject,
            "title": subject,
            "description": description,
            "html": layout(context.get("first_name"), subject, html),
        }


def _outcome(decision: str) -> str:
    return "accepted and the order was cancelled" if decision == "accept" else "rejected and the order resumed"


class DisputeResolvedByAdminTemplate:
    notification_type = NotificationType.RESOLUTION.value
    target_role = TargetRole.BUYER.value

    @staticmethod
    def render(context: dict) -> dict:
        ticket_id = context.get("ticket_id", "N/A")
        subject = f"Resolution Request {ticket_id} Decided"
        description = f"An admin reviewed request {ticket_id}: it was {_outcome(context.get('decision', ''))}."
        html = paragraph(description)
        if context.get("admin_response"):
            html += paragraph(f"Admin response: {context['admin_response']}")
        return {
            "subject": subject,
            "title": subject,
            "description": description,
            "html": layout(context.get("first_name"), subject, html),
        }


class DisputeResolvedCounterpartyTemplate:
    notification_type = NotificationType.RESOLUTION.value
    target_role = TargetRole.BUYER.value

    @staticmethod
    def render(context: dict) -> dict:
        ticket_id = context.get("ticket_id", "N/A")
        subject = f"Resolution Request {ticket_id} Answered"
        description = f"Your resolution request {ticket_id} was {_outcome(context.get('decision', ''))}."
        html = paragraph(description)
        if context.get("admin_response"):
            html += paragraph(f"Response: {context['admin_response']}")
        return {
            "subject": subject,
            "title": subject,
            "description": description,
            "html": layout(context.get("first_name"), subject, html),
        }


class DisputeResolvedResponderTemplate:
    notification_type = NotificationType.RESOLUTION.value
    target_role = TargetRole.SELLER.value

    @staticmethod
    def render(context: dict) -> dict:
        ticket_id = context.get("ticket_id", "N/A")
        subject = f"You Responded to {ticket_id}"
        description = f"You responded to resolution request {ticket_id}: it was {_outcome(context.get('decision', ''))}."
        return {
            "subject": subject,
            "title": subject,
            "description": description,
            "html": layout(context.get("first_name"), subject, paragraph(description)),
        }
