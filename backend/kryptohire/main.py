import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import models  # noqa: F401  registers tables on Base
from .db import Base, engine
from .errors import register_error_handlers
from .settings import get_settings

API_PREFIX = "/api/v1"

settings = get_settings()
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Kryptohire API",
    version="1.0.0",
    description="Resume building, job tracking and AI-assisted tailoring, scoring and optimization.",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_error_handlers(app)

Base.metadata.create_all(bind=engine)

from .api.routes_auth import router as auth_router
from .api.routes_profiles import router as profiles_router
from .api.routes_resumes import router as resumes_router
from .api.routes_jobs import router as jobs_router
from .api.routes_optimize import router as optimize_router
from .api.routes_cover_letters import router as cover_letters_router
from .api.routes_ai import router as ai_router
from .api.routes_billing import router as billing_router
from .api.routes_models import router as models_router
app.include_router(auth_router, prefix=API_PREFIX)
app.include_router(profiles_router, prefix=API_PREFIX)
app.include_router(resumes_router, prefix=API_PREFIX)
app.include_router(jobs_router, prefix=API_PREFIX)
app.include_router(optimize_router, prefix=API_PREFIX)
app.include_router(cover_letters_router, prefix=API_PREFIX)
app.include_router(ai_router, prefix=API_PREFIX)
app.include_router(billing_router, prefix=API_PREFIX)
app.include_router(models_router, prefix=API_PREFIX)


@app.get(f"{API_PREFIX}/docs", include_in_schema=False)
def api_docs():
    """OpenAPI document generated from the mounted routes."""
    return app.openapi()


@app.get("/health")
def health():
    return {"ok": True}


logger.info(f"Kryptohire API ready ({len(app.routes)} routes)")
