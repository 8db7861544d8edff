import time

import pytest
import stripe

from kryptohire.models import Subscription


@pytest.fixture
def stripe_env(monkeypatch):
    monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_test_123")
    monkeypatch.setenv("STRIPE_WEBHOOK_SECRET", "whsec_123")
    monkeypatch.setenv("STRIPE_PRO_PRICE_ID", "price_pro")
    calls = {}

    def create_customer(**kwargs):
        calls["customer"] = kwargs
        return {"id": "cus_123"}

    def create_checkout(**kwargs):
        calls["checkout"] = kwargs
        return {"id": "cs_123", "url": "https://checkout.stripe.test/cs_123"}

    def create_portal(**kwargs):
        calls["portal"] = kwargs
        return {"id": "bps_123", "url": "https://billing.stripe.test/p/123"}

    monkeypatch.setattr(stripe.Customer, "create", create_customer)
    monkeypatch.setattr(stripe.checkout.Session, "create", create_checkout)
    monkeypatch.setattr(stripe.billing_portal.Session, "create", create_portal)
    return calls


def _send_event(client, monkeypatch, event, signature="good"):
    def construct_event(payload, sig_header, secret):
        if sig_header != "good" or secret != "whsec_123":
            raise stripe.SignatureVerificationError("bad signature", sig_header)
        return event

    monkeypatch.setattr(stripe.Webhook, "construct_event", construct_event)
    return client.post("/api/v1/billing/webhook", content=b"{}", headers={"stripe-signature": signature})


def test_billing_unconfigured_is_503(client, auth_headers):
    r = client.post("/api/v1/billing/checkout", headers=auth_headers)
    assert r.status_code == 503
    assert r.json()["error"]["code"] == "SERVICE_UNAVAILABLE"


def test_new_user_is_on_free_plan(client, auth_headers):
    r = client.get("/api/v1/billing/subscription", headers=auth_headers)
    assert r.status_code == 200
    state = r.json()["data"]
    assert state["plan"] == "free"
    assert state["has_pro_access"] is False
    assert state["is_trialing"] is False
    assert state["trial_days_remaining"] == 0


def test_checkout_creates_customer_and_session(client, signup, stripe_env, db_session):
    headers, data = signup()
    r = client.post("/api/v1/billing/checkout", json={"trial": True}, headers=headers)
    assert r.status_code == 200
    assert r.json()["data"]["url"] == "https://checkout.stripe.test/cs_123"

    user_id = data["user"]["id"]
    checkout = stripe_env["checkout"]
    assert checkout["mode"] == "subscription"
    assert checkout["customer"] == "cus_123"
    assert checkout["client_reference_id"] == user_id
    assert checkout["line_items"] == [{"price": "price_pro", "quantity": 1}]
    assert checkout["subscription_data"]["trial_period_days"] == 7
    assert stripe_env["customer"]["email"] == "alice@example.com"

    sub = db_session.query(Subscription).filter(Subscription.user_id == user_id).one()
    assert sub.stripe_customer_id == "cus_123"

    # the stored customer is reused on the next checkout
    stripe_env.pop("customer")
    client.post("/api/v1/billing/checkout", headers=headers)
    assert "customer" not in stripe_env
    assert "trial_period_days" not in stripe_env["checkout"]["subscription_data"]


def test_portal_requires_billing_account(client, auth_headers, stripe_env):
    r = client.post("/api/v1/billing/portal", headers=auth_headers)
    assert r.status_code == 402
    assert r.json()["error"]["code"] == "PAYMENT_REQUIRED"

    client.post("/api/v1/billing/checkout", headers=auth_headers)
    r = client.post("/api/v1/billing/portal", headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["data"]["url"] == "https://billing.stripe.test/p/123"
    assert stripe_env["portal"]["customer"] == "cus_123"


def test_webhook_rejects_bad_signature(client, stripe_env, monkeypatch):
    r = _send_event(client, monkeypatch, {"type": "invoice.paid"}, signature="forged")
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "VALIDATION_ERROR"


def test_checkout_completed_upgrades_user(client, signup, stripe_env, monkeypatch):
    headers, data = signup()
    event = {
        "type": "checkout.session.completed",
        "data": {"object": {
            "id": "cs_123",
            "customer": "cus_123",
            "subscription": "sub_123",
            "client_reference_id": data["user"]["id"],
        }},
    }
    r = _send_event(client, monkeypatch, event)
    assert r.status_code == 200
    assert r.json()["data"]["success"] is True

    state = client.get("/api/v1/billing/subscription", headers=headers).json()["data"]
    assert state["plan"] == "pro"
    assert state["status"] == "active"
    assert state["has_pro_access"] is True


def test_subscription_events_track_trial_and_cancel(client, signup, stripe_env, monkeypatch):
    headers, data = signup()
    user_id = data["user"]["id"]
    trial_end = int(time.time()) + 3 * 86400 - 60
    event = {
        "type": "customer.subscription.created",
        "data": {"object": {
            "id": "sub_123",
            "customer": "cus_123",
            "status": "trialing",
            "metadata": {"user_id": user_id},
            "trial_end": trial_end,
            "current_period_end": trial_end,
        }},
    }
    _send_event(client, monkeypatch, event)
    state = client.get("/api/v1/billing/subscription", headers=headers).json()["data"]
    assert state["plan"] == "pro"
    assert state["is_trialing"] is True
    assert state["trial_days_remaining"] == 3
    assert state["has_pro_access"] is True

    # later events find the user through the stored customer id
    event = {
        "type": "customer.subscription.deleted",
        "data": {"object": {"id": "sub_123", "customer": "cus_123", "status": "canceled"}},
    }
    _send_event(client, monkeypatch, event)
    state = client.get("/api/v1/billing/subscription", headers=headers).json()["data"]
    assert state["plan"] == "free"
    assert state["status"] == "canceled"
    assert state["has_pro_access"] is False


def test_unknown_events_are_acknowledged(client, stripe_env, monkeypatch):
    r = _send_event(client, monkeypatch, {"type": "invoice.paid", "data": {"object": {"id": "in_1"}}})
    assert r.status_code == 200
