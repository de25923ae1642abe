import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi import _rate_limit_exceeded_handler
import sentry_sdk

from career_coach.api.v1.auth import router as auth_router
from career_coach.api.v1.billing import router as billing_router
from career_coach.api.v1.coach import router as coach_router
from career_coach.api.v1.documents import router as documents_router
from career_coach.api.v1.health import router as health_router
from career_coach.core.config import settings
from career_coach.core.lifespan import lifespan
from career_coach.core.rate_limit import limiter

logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s %(message)s")
if settings.sentry_dsn:
    sentry_sdk.init(dsn=settings.sentry_dsn)

app = FastAPI(title="AI Career Coach API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_allowed_origins),
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

app.include_router(health_router, prefix="/api", tags=["Health"])
app.include_router(auth_router, prefix="/api", tags=["Accounts"])
app.include_router(coach_router, prefix="/api", tags=["Coach"])
app.include_router(documents_router, prefix="/api", tags=["Documents"])
app.include_router(billing_router, prefix="/api", tags=["Billing"])
