"""Tests for notification templates."""

import pytest

from marketplace.templates import TEMPLATE_REGISTRY, get_template


class TestRegistry:
    @pytest.mark.parametrize("key", sorted(TEMPLATE_REGISTRY))
    def test_every_template_renders_with_minimal_context(self, key):
        rendered = get_template(key).render({"first_name": "Ada", "order_id": "ord-1"})

        assert set(rendered) == {"subject", "title", "description", "html"}
        assert "Hi Ada," in rendered["html"]

    def test_unknown_template(self):
        with pytest.raises(ValueError, match="No template registered"):
            get_template("does_not_exist")


class TestContent:
    def test_coworker_invite_carries_action_links(self):
        rendered = get_template("coworker_invited").render(
            {
                "order_id": "ord-1",
                "price_type": "hourly",
                "rate": 30,
                "max_hours": 10,
                "accept_link": "https://app.test/orders/ord-1/coworkers/u1/accept",
                "reject_link": "https://app.test/orders/ord-1/coworkers/u1/reject",
            }
        )

        assert "/accept" in rendered["html"]
        assert "/reject" in rendered["html"]
        assert "$30/hour, up to 10 hours" in rendered["description"]

    def test_user_content_is_escaped(self):
        rendered = get_template("payment_failed").render({"first_name": "<script>", "amount": "5.00"})
        assert "<script>" not in rendered["html"]
