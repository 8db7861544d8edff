import logging
from datetime import timedelta
from typing import Optional

from sqlalchemy.orm import Session

from .auth import utcnow
from .errors import RateLimitError
from .models import RateLimitEvent
from .settings import get_settings

logger = logging.getLogger(__name__)


def check_rate_limit(db: Session, user_id: str, action: str = "ai",
                     limit: Optional[int] = None, window_seconds: Optional[int] = None) -> int:
    """Record one AI request for the user, or raise once the trailing window is full.

    Returns the number of requests left in the current window.
    """
    settings = get_settings()
    limit = limit if limit is not None else settings.rate_limit_requests
    window_seconds = window_seconds if window_seconds is not None else settings.rate_limit_window_seconds

    now = utcnow()
    # stored naive by SQLite; compare against a naive UTC bound there
    window_start = (now - timedelta(seconds=window_seconds)).replace(tzinfo=None)
    # expired events only ever fall out of the window, drop them
    db.query(RateLimitEvent).filter(
        RateLimitEvent.user_id == user_id, RateLimitEvent.created_at <= window_start
    ).delete(synchronize_session=False)
    count = (
        db.query(RateLimitEvent)
        .filter(RateLimitEvent.user_id == user_id, RateLimitEvent.created_at > window_start)
        .count()
    )
    if count >= limit:
        db.commit()
        logger.warning("Rate limit hit for user %s (%s requests in %ss)", user_id, count, window_seconds)
        raise RateLimitError(
            "Rate limit exceeded. Please try again later.",
            {"limit": limit, "windowSeconds": window_seconds},
        )

    db.add(RateLimitEvent(user_id=user_id, action=action, created_at=now.replace(tzinfo=None)))
    db.commit()
    return limit - count - 1
