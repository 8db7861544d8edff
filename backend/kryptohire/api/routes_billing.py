import logging
from typing import Any, Dict, Optional

import stripe
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ..auth import CurrentUser, get_current_user
from ..billing import (
    access_state,
    apply_checkout_completed,
    apply_subscription_event,
    get_subscription,
    upsert_subscription,
)
from ..db import get_db
from ..errors import PaymentRequiredError, ServiceUnavailableError, ValidationError
from ..schemas import (
    BillingSessionData,
    BillingSessionResponse,
    CheckoutRequest,
    SubscriptionResponse,
    SuccessData,
    SuccessResponse,
)
from ..settings import Settings, get_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/billing", tags=["billing"])

SUBSCRIPTION_EVENTS = {
    "customer.subscription.created",
    "customer.subscription.updated",
    "customer.subscription.deleted",
}


def _configured_stripe() -> Settings:
    settings = get_settings()
    if not settings.stripe_enabled:
        raise ServiceUnavailableError("Billing is not configured.")
    stripe.api_key = settings.stripe_secret_key
    return settings


def _as_dict(obj: Any) -> Dict[str, Any]:
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    return dict(obj or {})


def _ensure_customer(db: Session, current: CurrentUser) -> str:
    sub = get_subscription(db, current.id)
    if sub and sub.stripe_customer_id:
        return sub.stripe_customer_id
    customer = stripe.Customer.create(email=current.email, metadata={"user_id": current.id})
    upsert_subscription(db, current.id, stripe_customer_id=customer["id"])
    return customer["id"]


@router.post("/checkout", response_model=BillingSessionResponse)
def create_checkout(body: Optional[CheckoutRequest] = None, current: CurrentUser = Depends(get_current_user),
                    db: Session = Depends(get_db)):
    settings = _configured_stripe()
    body = body or CheckoutRequest()
    price_id = body.price_id or settings.stripe_pro_price_id
    if not price_id:
        raise ServiceUnavailableError("No subscription price is configured.")

    subscription_data: Dict[str, Any] = {"metadata": {"user_id": current.id}}
    if body.trial and settings.trial_period_days > 0:
        subscription_data["trial_period_days"] = settings.trial_period_days

    try:
        customer_id = _ensure_customer(db, current)
        session = stripe.checkout.Session.create(
            mode="subscription",
            customer=customer_id,
            client_reference_id=current.id,
            line_items=[{"price": price_id, "quantity": 1}],
            success_url=f"{settings.site_url}/subscription/checkout/success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{settings.site_url}/subscription",
            metadata={"user_id": current.id},
            subscription_data=subscription_data,
        )
    except stripe.StripeError as exc:
        logger.error(f"Stripe checkout failed for user {current.id}: {exc}")
        raise ServiceUnavailableError("Unable to start checkout right now.") from exc

    logger.info(f"Checkout session {session['id']} created for user {current.id}")
    return BillingSessionResponse(data=BillingSessionData(url=session["url"]))


@router.post("/portal", response_model=BillingSessionResponse)
def create_portal(current: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    settings = _configured_stripe()
    sub = get_subscription(db, current.id)
    if not sub or not sub.stripe_customer_id:
        raise PaymentRequiredError("No billing account found. Subscribe to a plan first.")
    try:
        session = stripe.billing_portal.Session.create(
            customer=sub.stripe_customer_id,
            return_url=f"{settings.site_url}/settings",
        )
    except stripe.StripeError as exc:
        logger.error(f"Stripe portal failed for user {current.id}: {exc}")
        raise ServiceUnavailableError("Unable to open the billing portal right now.") from exc
    return BillingSessionResponse(data=BillingSessionData(url=session["url"]))


@router.get("/subscription", response_model=SubscriptionResponse)
def get_subscription_state(current: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    return SubscriptionResponse(data=access_state(db, current.id))


@router.post("/webhook", response_model=SuccessResponse)
async def stripe_webhook(request: Request, db: Session = Depends(get_db)):
    settings = _configured_stripe()
    if not settings.stripe_webhook_secret:
        raise ServiceUnavailableError("Stripe webhook secret is not configured.")

    payload = await request.body()
    signature = request.headers.get("stripe-signature", "")
    try:
        event = stripe.Webhook.construct_event(
            payload=payload, sig_header=signature, secret=settings.stripe_webhook_secret
        )
    except (ValueError, stripe.SignatureVerificationError) as exc:
        raise ValidationError("Invalid webhook signature.") from exc

    event_type = event["type"]
    obj = _as_dict(event["data"]["object"])
    if event_type == "checkout.session.completed":
        apply_checkout_completed(db, obj)
    elif event_type in SUBSCRIPTION_EVENTS:
        apply_subscription_event(db, event_type, obj)
    else:
        logger.debug(f"Ignoring Stripe event {event_type}")

    return SuccessResponse(data=SuccessData(success=True))
