"""
Subscription plan lookup and Stripe subscription syncing.
"""
import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from .auth import as_utc, utcnow
from .models import Subscription

logger = logging.getLogger(__name__)

PRO_STATUSES = {"active", "trialing"}


def get_subscription(db: Session, user_id: str) -> Optional[Subscription]:
    return db.query(Subscription).filter(Subscription.user_id == user_id).first()


def get_subscription_plan(db: Session, user_id: str) -> str:
    sub = get_subscription(db, user_id)
    return (sub.subscription_plan if sub and sub.subscription_plan else None) or "free"


def is_pro(plan: Optional[str]) -> bool:
    return plan == "pro"


def access_state(db: Session, user_id: str) -> Dict[str, Any]:
    sub = get_subscription(db, user_id)
    plan = (sub.subscription_plan if sub else None) or "free"
    status = sub.subscription_status if sub else None
    trial_end = as_utc(sub.trial_end) if sub else None

    is_trialing = status == "trialing" and trial_end is not None and trial_end > utcnow()
    trial_days_remaining = 0
    if is_trialing:
        trial_days_remaining = max(0, math.ceil((trial_end - utcnow()).total_seconds() / 86400))

    return {
        "plan": plan,
        "status": status,
        "has_pro_access": is_pro(plan) and status in PRO_STATUSES,
        "is_trialing": is_trialing,
        "trial_days_remaining": trial_days_remaining,
        "current_period_end": as_utc(sub.current_period_end) if sub else None,
        "trial_end": trial_end,
    }


def _from_timestamp(value: Optional[int]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


def upsert_subscription(db: Session, user_id: str, **fields) -> Subscription:
    sub = get_subscription(db, user_id)
    if not sub:
        sub = Subscription(user_id=user_id)
        db.add(sub)
    for k, v in fields.items():
        setattr(sub, k, v)
    db.commit()
    db.refresh(sub)
    return sub


def _user_for_customer(db: Session, customer_id: Optional[str]) -> Optional[str]:
    if not customer_id:
        return None
    sub = db.query(Subscription).filter(Subscription.stripe_customer_id == customer_id).first()
    return sub.user_id if sub else None


def apply_checkout_completed(db: Session, session: Dict[str, Any]) -> Optional[Subscription]:
    metadata = session.get("metadata") or {}
    user_id = metadata.get("user_id") or session.get("client_reference_id")
    if not user_id:
        logger.warning("Checkout session %s has no user reference", session.get("id"))
        return None
    return upsert_subscription(
        db,
        user_id,
        stripe_customer_id=session.get("customer"),
        stripe_subscription_id=session.get("subscription"),
        subscription_plan="pro",
        subscription_status="active",
    )


def apply_subscription_event(db: Session, event_type: str, obj: Dict[str, Any]) -> Optional[Subscription]:
    """Sync a customer.subscription.* event into the local subscription row."""
    metadata = obj.get("metadata") or {}
    user_id = metadata.get("user_id") or _user_for_customer(db, obj.get("customer"))
    if not user_id:
        logger.warning("Subscription event %s for unknown customer %s", event_type, obj.get("customer"))
        return None

    status = obj.get("status")
    if event_type == "customer.subscription.deleted":
        plan, status = "free", "canceled"
    else:
        plan = "pro" if status in PRO_STATUSES else "free"

    return upsert_subscription(
        db,
        user_id,
        stripe_customer_id=obj.get("customer"),
        stripe_subscription_id=obj.get("id"),
        subscription_plan=plan,
        subscription_status=status,
        current_period_end=_from_timestamp(obj.get("current_period_end")),
        trial_end=_from_timestamp(obj.get("trial_end")),
    )
