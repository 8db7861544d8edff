import os
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()

DEFAULT_JWT_SECRET = "change-me-in-production"


def _int_env(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    return int(raw) if raw else default


def normalize_database_url(value: Optional[str]) -> str:
    raw = (value or "").strip()
    if raw.startswith("postgres://"):
        return "postgresql://" + raw[len("postgres://"):]
    return raw or "sqlite:///./kryptohire.db"


class Settings(BaseModel):
    database_url: str
    jwt_secret: str
    access_token_ttl_minutes: int = 60
    refresh_token_ttl_days: int = 30
    cors_origins: List[str] = []
    site_url: str = "http://localhost:3000"
    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None
    anthropic_api_key: Optional[str] = None
    openrouter_api_key: Optional[str] = None
    stripe_secret_key: Optional[str] = None
    stripe_webhook_secret: Optional[str] = None
    stripe_pro_price_id: Optional[str] = None
    trial_period_days: int = 7
    rate_limit_requests: int = 20
    rate_limit_window_seconds: int = 60
    log_level: str = "INFO"

    @property
    def uses_custom_openai_proxy(self) -> bool:
        return bool(self.openai_base_url) and "api.openai.com" not in self.openai_base_url

    @property
    def stripe_enabled(self) -> bool:
        return bool(self.stripe_secret_key)

    def provider_key(self, env_key: str) -> Optional[str]:
        """Server key for a provider, looked up by its env var name (OPENAI_API_KEY -> openai_api_key)."""
        return getattr(self, env_key.lower(), None) or None

    @classmethod
    def from_env(cls) -> "Settings":
        origins = [o.strip() for o in (os.getenv("CORS_ORIGINS") or "").split(",") if o.strip()]
        if not origins:
            # local dev frontends
            origins = ["http://localhost:3000", "http://localhost:5173"]
        return cls(
            database_url=normalize_database_url(os.getenv("DATABASE_URL")),
            jwt_secret=os.getenv("JWT_SECRET") or DEFAULT_JWT_SECRET,
            access_token_ttl_minutes=_int_env("ACCESS_TOKEN_TTL_MINUTES", 60),
            refresh_token_ttl_days=_int_env("REFRESH_TOKEN_TTL_DAYS", 30),
            cors_origins=origins,
            site_url=os.getenv("SITE_URL") or "http://localhost:3000",
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            openai_base_url=os.getenv("OPENAI_BASE_URL") or None,
            anthropic_api_key=os.getenv("ANTHROPIC_API_KEY") or None,
            openrouter_api_key=os.getenv("OPENROUTER_API_KEY") or None,
            stripe_secret_key=os.getenv("STRIPE_SECRET_KEY") or None,
            stripe_webhook_secret=os.getenv("STRIPE_WEBHOOK_SECRET") or None,
            stripe_pro_price_id=os.getenv("STRIPE_PRO_PRICE_ID") or None,
            trial_period_days=_int_env("TRIAL_PERIOD_DAYS", 7),
            rate_limit_requests=_int_env("RATE_LIMIT_REQUESTS", 20),
            rate_limit_window_seconds=_int_env("RATE_LIMIT_WINDOW_SECONDS", 60),
            log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
        )


def get_settings() -> Settings:
    """Read settings from the environment on every call."""
    return Settings.from_env()
