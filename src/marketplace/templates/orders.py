"""Order lifecycle templates — placement, delivery, revisions, completion."""

from marketplace.templates.base import NotificationType, TargetRole, button, layout, paragraph


class OrderPlacedBuyerTemplate:
    notification_type = NotificationType.ORDER.value
    target_role = TargetRole.BUYER.value

    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        amount = context.get("amount", "0.00")
        subject = "Order Placed Successfully"
        description = f"Your order #{order_id} has been placed and paid (${amount})."
        return {
            "subject": subject,
            "title": subject,
            "description": description,
            "html": layout(
                context.get("first_name"),
                subject,
                paragraph(description) + paragraph("The seller will review your requirements shortly."),
            ),
        }


class OrderPlacedSellerTemplate:
    notification_type = NotificationType.ORDER.value
    target_role = TargetRole.SELLER.value

    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        package = context.get("package_name", "a package")
        subject = "You Have a New Order"
        description = f"A buyer ordered {package}. Order #{order_id} is waiting for you."
        html = paragraph(description)
        if context.get("delivery_due_date"):
            html += paragraph(f"Delivery is due by {context['delivery_due_date']}.")
        if context.get("link"):
            html += button("View Order", context["link"])
        return {
            "subject": subject,
            "title": subject,
            "description": description,
            "html": layout(context.get("first_name"), subject, html),
        }


class RequirementsReviewedTemplate:
    notification_type = NotificationType.ORDER.value
    target_role = TargetRole.BUYER.value

    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        subject = "Work Has Started on Your Order"
        description = f"The seller reviewed your requirements for order #{order_id} and started working."
        return {
            "subject": subject,
            "title": subject,
            "description": description,
            "html": layout(context.get("first_name"), subject, paragraph(description)),
        }


class OrderDeliveredTemplate:
    notification_type = NotificationType.ORDER.value
    target_role = TargetRole.BUYER.value

    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        revision_number = context.get("revision_number", 0)
        if revision_number:
            subject = "Revised Delivery Received"
            description = f"The seller delivered revision #{revision_number} for order #{order_id}."
        else:
            subject = "Your Order Has Been Delivered"
            description = f"The seller delivered order #{order_id}. Review it and approve or request a revision."
        html = paragraph(description)
        if context.get("message"):
            html += paragraph(f"Seller's note: {context['message']}")
        html += paragraph("Orders are completed automatically 72 hours after delivery if no action is taken.")
        return {
            "subject": subject,
            "title": subject,
            "description": description,
            "html": layout(context.get("first_name"), subject, html),
        }


class RevisionRequestedBuyerTemplate:
    notification_type = NotificationType.ORDER.value
    target_role = TargetRole.BUYER.value

    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        used = context.get("revision_number", 1)
        quota = context.get("revision_quota", used)
        subject = "Revision Request Sent"
        description = f"Your revision request for order #{order_id} was sent ({used} of {quota} revisions used)."
        return {
            "subject": subject,
            "title": subject,
            "description": description,
            "html": layout(context.get("first_name"), subject, paragraph(description)),
        }


class RevisionRequestedSellerTemplate:
    notification_type = NotificationType.ORDER.value
    target_role = TargetRole.SELLER.value

    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        subject = "Revision Requested"
        description = f"The buyer requested revision #{context.get('revision_number', 1)} on order #{order_id}."
        html = paragraph(description)
        if context.get("message"):
            html += paragraph(f"Buyer's note: {context['message']}")
        return {
            "subject": subject,
            "title": subject,
            "description": description,
            "html": layout(context.get("first_name"), subject, html),
        }


class OrderCompletedTemplate:
    notification_type = NotificationType.ORDER.value
    target_role = TargetRole.BUYER.value

    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        subject = "Order Completed"
        description = f"Order #{order_id} was approved and is now complete."
        html = paragraph(description) + paragraph("Leave a review to let others know how it went.")
        return {
            "subject": subject,
            "title": subject,
            "description": description,
            "html": layout(context.get("first_name"), subject, html),
        }


class OrderAutoCompletedTemplate:
    notification_type = NotificationType.ORDER.value
    target_role = TargetRole.SELLER.value

    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        subject = "Order Auto-Completed"
        description = (
            f"Order #{order_id} was completed automatically because the buyer did not respond "
            "within 72 hours of delivery."
        )
        return {
            "subject": subject,
            "title": subject,
            "description": description,
            "html": layout(context.get("first_name"), subject, paragraph(description)),
        }


class ReviewReceivedTemplate:
    notification_type = NotificationType.REVIEW.value
    target_role = TargetRole.SELLER.value

    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        rating = context.get("rating", "N/A")
        subject = "You Received a Review"
        description = f"You received a {rating}-star review on order #{order_id}."
        return {
            "subject": subject,
            "title": subject,
            "description": description,
            "html": layout(context.get("first_name"), subject, paragraph(description)),
        }
