"""Integration tests for member, gig, wallet, file and maintenance endpoints."""

import base64
from datetime import UTC, datetime, timedelta

from protean import current_domain

from marketplace.order.completion import ApproveDelivery
from marketplace.order.fulfillment import DeliverOrder
from marketplace.order.order import Order


class TestMembersAndGigs:
    def test_register_and_publish(self, client):
        response = client.post(
            "/members",
            json={"email": "Sam@Example.com", "firstName": "Sam", "lastName": "Seller", "roles": ["seller"]},
        )
        assert response.status_code == 201
        member_id = response.json()["data"]["memberId"]

        response = client.post(
            "/gigs",
            json={
                "sellerId": member_id,
                "title": "I will write your copy",
                "packages": [
                    {"packageType": "basic", "name": "Short", "price": 20.0, "deliveryTime": 2, "revisions": 1}
                ],
            },
        )
        assert response.status_code == 201
        assert response.json()["data"]["gigId"]

    def test_duplicate_email_is_409(self, client, buyer_id):
        response = client.post(
            "/members",
            json={"email": "buyer@example.com", "firstName": "Bea", "lastName": "Again"},
        )
        assert response.status_code == 409

    def test_buyer_cannot_publish(self, client, buyer_id):
        response = client.post(
            "/gigs",
            json={
                "sellerId": buyer_id,
                "title": "Nope",
                "packages": [
                    {"packageType": "basic", "name": "Short", "price": 20.0, "deliveryTime": 2, "revisions": 1}
                ],
            },
        )
        assert response.status_code == 403


class TestWallets:
    def test_open_card_top_up(self, client, buyer_id, gateway):
        assert client.post("/wallets", json={"userId": buyer_id}).status_code == 201

        response = client.post(f"/wallets/{buyer_id}/cards", json={"paymentMethodId": "pm_card_visa"})
        assert response.status_code == 201
        assert response.json()["data"]["isPrimary"] is True

        response = client.post(f"/wallets/{buyer_id}/top-up", json={"amount": 40.0})
        assert response.json()["data"] == {"balance": 40.0}

        wallet = client.get(f"/wallets/{buyer_id}").json()["data"]
        assert wallet["cards"][0]["paymentMethodId"] == "pm_card_visa"
        assert wallet["transactions"][0]["affectsBalance"] is True

    def test_unknown_wallet_is_404(self, client):
        response = client.get("/wallets/nobody")
        assert response.status_code == 404
        assert response.json()["success"] is False

    def test_non_positive_top_up_is_400(self, client, funded_wallet):
        assert client.post(f"/wallets/{funded_wallet}/top-up", json={"amount": 0}).status_code == 400

    def test_declined_top_up_is_402(self, client, funded_wallet, gateway):
        client.post("/payments/gateway/configure", json={"shouldSucceed": False, "failureReason": "Do not honor"})

        response = client.post(f"/wallets/{funded_wallet}/top-up", json={"amount": 10.0})

        assert response.status_code == 402
        assert "Do not honor" in response.json()["message"]

    def test_withdraw_after_payout_onboarding(self, client, funded_wallet, gateway):
        assert client.post(f"/wallets/{funded_wallet}/withdraw", json={"amount": 10.0}).status_code == 409

        response = client.post(f"/members/{funded_wallet}/payout-account")
        assert response.json()["data"]["onboardingUrl"].startswith("https://")

        response = client.post(f"/wallets/{funded_wallet}/withdraw", json={"amount": 10.0})
        assert response.json()["data"] == {"balance": 190.0}


class TestFiles:
    def test_upload(self, client, storage):
        response = client.post(
            "/files",
            json={"filename": "brief.txt", "contentBase64": base64.b64encode(b"hello").decode()},
        )

        assert response.status_code == 201
        public_id = response.json()["data"]["publicId"]
        assert storage.objects[public_id] == b"hello"

    def test_invalid_base64_is_400(self, client, storage):
        response = client.post("/files", json={"filename": "brief.txt", "contentBase64": "not base64!"})
        assert response.status_code == 400


class TestMaintenance:
    def test_auto_complete_endpoint(self, client, place_order, seller_id):
        order_id = place_order()
        current_domain.process(DeliverOrder(order_id=order_id, seller_id=seller_id, message="Done"), asynchronous=False)

        assert client.post("/maintenance/auto-complete-orders").json()["data"] == {"completed": 0}

        repo = current_domain.repository_for(Order)
        order = repo.get(order_id)
        stale = datetime.now(UTC) - timedelta(hours=80)
        for delivery in order.deliveries:
            delivery.delivered_at = stale
        repo.add(order)

        response = client.post("/maintenance/auto-complete-orders", json={"batchSize": 10})
        assert response.json()["data"] == {"completed": 1}

    def test_settle_referral_endpoint(self, client, place_order, buyer_id, seller_id, register_member, open_wallet):
        referrer_id = register_member("referrer@example.com")
        order_id = place_order(referrer_id=referrer_id)
        current_domain.process(DeliverOrder(order_id=order_id, seller_id=seller_id, message="Done"), asynchronous=False)
        # The referrer has no wallet yet, so settlement on completion is skipped
        current_domain.process(ApproveDelivery(order_id=order_id, buyer_id=buyer_id), asynchronous=False)
        open_wallet(referrer_id)
        payload = {"orderId": order_id, "referrerId": referrer_id}

        first = client.post("/maintenance/settle-referral", json=payload).json()
        second = client.post("/maintenance/settle-referral", json=payload).json()

        assert first["data"] == {"credited": True}
        assert second["message"] == "Referral already settled"
        assert client.get(f"/wallets/{referrer_id}").json()["data"]["balance"] == 1.0

    def test_settle_referral_for_unknown_order_is_404(self, client, register_member, open_wallet):
        referrer_id = register_member("referrer@example.com")
        open_wallet(referrer_id)

        response = client.post("/maintenance/settle-referral", json={"orderId": "order-abc", "referrerId": referrer_id})

        assert response.status_code == 404

    def test_settle_referral_by_another_member_is_409(self, client, place_order, buyer_id, seller_id, register_member):
        referrer_id = register_member("referrer@example.com")
        order_id = place_order(referrer_id=referrer_id)
        current_domain.process(DeliverOrder(order_id=order_id, seller_id=seller_id, message="Done"), asynchronous=False)
        current_domain.process(ApproveDelivery(order_id=order_id, buyer_id=buyer_id), asynchronous=False)

        response = client.post("/maintenance/settle-referral", json={"orderId": order_id, "referrerId": seller_id})

        assert response.status_code == 409
