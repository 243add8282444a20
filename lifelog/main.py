from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from lifelog.db.base import get_db
from lifelog.core.config import settings
from lifelog.core.logs import setup_logging
from lifelog.routers import records as records_router
from lifelog.routers import reports as reports_router
from lifelog.routers import notifications as notifications_router
from lifelog.services.notifications import notification_hub
from lifelog.core.errors import (
    LifelogException,
    lifelog_exception_handler,
    validation_exception_handler,
    unhandled_exception_handler,
)

logger = setup_logging(settings.LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Lifelog API starting (env=%s, tz=%s)", settings.APP_ENV, settings.TIMEZONE)
    yield
    await notification_hub.shutdown()


app = FastAPI(
    title="Lifelog API",
    description=(
        "**Diary, todos and periodic reflection**\n\n"
        "Weekly / monthly AI summaries generated exactly once per period, and "
        "once-per-day reminder prompts.\n\n"
        "Callers identify themselves with the `X-User-Id` header. "
        "All error responses follow the `{code, message, details}` envelope."
    ),
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# --- CORS ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Exception handlers (most specific first) ---
app.add_exception_handler(LifelogException, lifelog_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# --- Routers ---
app.include_router(records_router.router)
app.include_router(reports_router.router)
app.include_router(notifications_router.router)


@app.get("/health", tags=["health"], summary="Health check")
def health(db: Session = Depends(get_db)):
    """
    Returns `{"status": "ok", "db": "ok"}` when both the API and the database
    are reachable. Returns HTTP 503 if the DB is down.
    """
    try:
        db.execute(text("SELECT 1"))
        db_status = "ok"
    except SQLAlchemyError:
        logger.exception("Health check could not reach the database")
        db_status = "unreachable"

    if db_status != "ok":
        return JSONResponse(
            status_code=503,
            content={"status": "error", "db": db_status},
        )
    return {"status": "ok", "db": "ok", "env": settings.APP_ENV}
