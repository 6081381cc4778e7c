"""Wallet and payment templates."""

from marketplace.templates.base import NotificationType, TargetRole, layout, paragraph


class PaymentFailedTemplate:
    notification_type = NotificationType.DEBIT.value
    target_role = TargetRole.BUYER.value

    @staticmethod
    def render(context: dict) -> dict:
        amount = context.get("amount", "0.00")
        reason = context.get("reason", "The payment could not be completed")
        subject = "Payment Failed"
        description = f"We couldn't process your payment of ${amount}. {reason}."
        html = paragraph(description) + paragraph("No order was created. Please update your payment method and try again.")
        return {
            "subject": subject,
            "title": subject,
            "description": description,
            "html": layout(context.get("first_name"), subject, html),
        }


class ReferralCreditedTemplate:
    notification_type = NotificationType.CREDIT.value
    target_role = TargetRole.BUYER.value

    @staticmethod
    def render(context: dict) -> dict:
        amount = context.get("amount", "0.00")
        subject = "Referral Reward Earned"
        description = f"${amount} was added to your wallet for a referred order."
        return {
            "subject": subject,
            "title": subject,
            "description": description,
            "html": layout(context.get("first_name"), subject, paragraph(description)),
        }
