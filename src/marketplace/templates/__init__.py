"""Template registry — maps template keys to template classes.

Each template knows its in-app notification type, the role it targets by
default, and how to render subject, title, description and HTML body
from event context data.
"""

from marketplace.templates.coworkers import CoworkerInvitedTemplate, CoworkerRespondedTemplate
from marketplace.templates.disputes import (
    DisputeRaisedCounterpartyTemplate,
    DisputeRaisedInitiatorTemplate,
    DisputeResolvedByAdminTemplate,
    DisputeResolvedCounterpartyTemplate,
    DisputeResolvedResponderTemplate,
)
from marketplace.templates.orders import (
    OrderAutoCompletedTemplate,
    OrderCompletedTemplate,
    OrderDeliveredTemplate,
    OrderPlacedBuyerTemplate,
    OrderPlacedSellerTemplate,
    RequirementsReviewedTemplate,
    ReviewReceivedTemplate,
    RevisionRequestedBuyerTemplate,
    RevisionRequestedSellerTemplate,
)
from marketplace.templates.payments import PaymentFailedTemplate, ReferralCreditedTemplate

TEMPLATE_REGISTRY: dict[str, type] = {
    "order_placed_buyer": OrderPlacedBuyerTemplate,
    "order_placed_seller": OrderPlacedSellerTemplate,
    "requirements_reviewed": RequirementsReviewedTemplate,
    "order_delivered": OrderDeliveredTemplate,
    "revision_requested_buyer": RevisionRequestedBuyerTemplate,
    "revision_requested_seller": RevisionRequestedSellerTemplate,
    "order_completed": OrderCompletedTemplate,
    "order_auto_completed": OrderAutoCompletedTemplate,
    "review_received": ReviewReceivedTemplate,
    "dispute_raised_initiator": DisputeRaisedInitiatorTemplate,
    "dispute_raised_counterparty": DisputeRaisedCounterpartyTemplate,
    "dispute_resolved_by_admin": DisputeResolvedByAdminTemplate,
    "dispute_resolved_counterparty": DisputeResolvedCounterpartyTemplate,
    "dispute_resolved_responder": DisputeResolvedResponderTemplate,
    "coworker_invited": CoworkerInvitedTemplate,
    "coworker_responded": CoworkerRespondedTemplate,
    "payment_failed": PaymentFailedTemplate,
    "referral_credited": ReferralCreditedTemplate,
}


def get_template(template_key: str):
    """Look up a template class by key."""
    template_cls = TEMPLATE_REGISTRY.get(template_key)
    if template_cls is None:
        raise ValueError(f"No template registered for key: {template_key}")
    return template_cls
