# scholarseek/main.py

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
import sys

from scholarseek.core.database import test_connection, init_db, AsyncSessionLocal
from scholarseek.core.config import settings
from scholarseek.core.exceptions import ReviewError
from scholarseek.services.auth_service import ensure_admin

# Routers
from scholarseek.api.endpoints import (
    auth as auth_router,
    applications as applications_router,
    notifications as notifications_router,
    logs as logs_router,
)

# ------------------------------------------------------------
# LOGURU CONFIGURATION
# ------------------------------------------------------------
logger.remove()
logger.add(
    sys.stdout,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
           "<level>{level}</level> | "
           "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
           "<level>{message}</level>",
    colorize=True,
    backtrace=True,
    diagnose=settings.ENV != "prod",
)

# ------------------------------------------------------------
# FASTAPI APP INIT
# ------------------------------------------------------------
app = FastAPI(
    title="ScholarSeek Backend",
    version="1.0.0",
    description="Scholarship applications, reviewer decisions and student notifications.",
)


# ------------------------------------------------------------
# REVIEW ERRORS → {success: false, message, error_code}
# ------------------------------------------------------------
@app.exception_handler(ReviewError)
async def review_error_handler(request: Request, exc: ReviewError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected ({exc.error_code}): {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.message, "error_code": exc.error_code},
    )


# ------------------------------------------------------------
# CORS CONFIGURATION
# ------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.SITE_URL, "http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

# ------------------------------------------------------------
# REGISTER ROUTERS
# ------------------------------------------------------------
app.include_router(auth_router.router)
app.include_router(applications_router.router)
app.include_router(notifications_router.router)
app.include_router(logs_router.router)


# ------------------------------------------------------------
# APPLICATION STARTUP EVENTS
# ------------------------------------------------------------
@app.on_event("startup")
async def on_startup():
    logger.info("🚀 Starting ScholarSeek Backend...")

    # 1) Database connection test
    try:
        await test_connection()
    except Exception:
        logger.exception("Startup aborted: Database connection failed.")
        return

    # 2) Initialize database tables
    try:
        await init_db()
        logger.success("Database tables ready.")
    except Exception as e:
        logger.warning(f"Table initialization encountered an issue: {e}")

    # 3) Seed the admin account
    try:
        async with AsyncSessionLocal() as session:
            await ensure_admin(session)
    except Exception:
        logger.exception("Admin seeding failed.")

    logger.success("Backend startup completed successfully.")


# ------------------------------------------------------------
# ROOT HEALTH CHECK
# ------------------------------------------------------------
@app.get("/", tags=["System"])
async def root():
    return {
        "status": "ok",
        "service": "ScholarSeek Backend",
        "version": app.version,
    }
