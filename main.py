from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi_users import exceptions as fau_exceptions
import logging

from facepet.core.config import settings
from facepet.core.database import Base, engine
from facepet.routers.api import api_router
from facepet.services.rate_limiter import RateLimited
from facepet.utils.stores import build_email_rate_limiter, build_geocode_rate_limiter, build_verification_store

logger = logging.getLogger(__name__)

async def init_models():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Initialize database
    await init_models()

    # One-time codes and request throttling live in this process only
    verification_store = build_verification_store()
    email_rate_limiter = build_email_rate_limiter()
    geocode_rate_limiter = build_geocode_rate_limiter()
    for store in (verification_store, email_rate_limiter, geocode_rate_limiter):
        store.start()
    app.state.verification_store = verification_store
    app.state.email_rate_limiter = email_rate_limiter
    app.state.geocode_rate_limiter = geocode_rate_limiter
    logger.info("Verification store and rate limiters started")

    yield

    # Cleanup
    for store in (verification_store, email_rate_limiter, geocode_rate_limiter):
        store.shutdown()
    await engine.dispose()

app = FastAPI(
    title=settings.APP_NAME,
    description="Backend API for Facepet pet tags",
    version="0.1.0",
    lifespan=lifespan
)

# Add exception handler for inactive users
@app.exception_handler(fau_exceptions.UserInactive)
async def user_inactive_exception_handler(request: Request, exc: fau_exceptions.UserInactive):
    return JSONResponse(
        status_code=400,
        content={"detail": "Your account has been blocked by the administrator. Please contact support for assistance."}
    )

@app.exception_handler(RateLimited)
async def rate_limited_exception_handler(request: Request, exc: RateLimited):
    return JSONResponse(
        status_code=429,
        content={"success": False, "error": str(exc), "resetTime": exc.reset_at.isoformat()}
    )

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)

@app.get("/")
async def root():
    return {"message": "Welcome to the Facepet API"}

import uvicorn

if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=False)
