from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from dotenv import load_dotenv
from contextlib import asynccontextmanager
import os
import asyncio
import logging
import traceback

from app.config import Capabilities, is_dev_mode
from app.jobs import router as jobs_router
from app.rate_limit import limiter
from slowapi.errors import RateLimitExceeded
from slowapi import _rate_limit_exceeded_handler
from orchestrator import ScrapeScheduler
from pipeline.integration import ScrapePipeline
from metrics import render_latest, CONTENT_TYPE

load_dotenv()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://localhost:5000"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application lifecycle events."""
    dypse_env = os.getenv("DYPSE_ENV", "production").lower()
    logger.info(f"[dypse] env: DYPSE_ENV={dypse_env}")

    scheduler = ScrapeScheduler(ScrapePipeline())
    app.state.scheduler = scheduler

    try:
        scheduler.start()
    except Exception as e:
        logger.error(f"[orchestrator] Failed to start scheduler: {e}", exc_info=True)

    if dypse_env == "dev":
        # Populate a fresh dev database without waiting for the nightly run
        logger.info("[orchestrator] Dev mode: running initial scrape")
        scheduler.trigger_now()

    yield

    # Shutdown
    await scheduler.stop()


app = FastAPI(title="DYPSE Jobs API", version="0.1.0", lifespan=lifespan)

# Add rate limiter state
app.state.limiter = limiter

# Rate limit exceeded handler
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render HTTP errors with the same envelope as the rest of the API."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    content = {"success": False, "message": "Invalid query parameters"}
    if is_dev_mode():
        content["error"] = jsonable_encoder(exc.errors())
    return JSONResponse(status_code=422, content=content)


# Error masking middleware
@app.middleware("http")
async def error_masking_middleware(request: Request, call_next):
    """Mask detailed errors in production; show full errors in dev."""
    try:
        response = await call_next(request)
        return response
    except HTTPException:
        # Let HTTPException propagate untouched (proper status codes like 404, 400, 401, etc.)
        raise
    except Exception as e:
        is_dev = is_dev_mode()

        # Log the full error
        logger.error(f"Unhandled error: {str(e)}")
        if is_dev:
            logger.error(traceback.format_exc())

        # Return masked or detailed error based on environment
        content = {
            "success": False,
            "message": "An internal error occurred. Please try again later.",
        }
        if is_dev:
            content["error"] = str(e)
            content["traceback"] = traceback.format_exc()
        return JSONResponse(status_code=500, content=content)


app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", DEFAULT_CORS_ORIGINS).split(",")
        if origin.strip()
    ],
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(jobs_router)


@app.get("/api/healthz")
async def healthz(request: Request):
    # Blocking psycopg2 check with retries, kept off the event loop
    status = await asyncio.to_thread(Capabilities.get_status)
    scheduler = getattr(request.app.state, "scheduler", None)
    status["scheduler"] = scheduler.status() if scheduler else None
    return status


@app.get("/api/metrics")
async def metrics():
    return Response(content=render_latest(), media_type=CONTENT_TYPE)

