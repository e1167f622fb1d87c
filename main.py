"""Main entry point for the Google Business Profile dashboard backend.

Startup sequence:
1. Initialize DI container
2. Inject handlers and services into routers
3. Start the review auto-reply and auto-posting pollers
4. Serve HTTP with FastAPI
"""
import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from app.config import Settings, settings
from app.container import Container
from app.errors import register_exception_handlers
from app.routers import (
    auth_router,
    business_router,
    automation_router,
    set_auth_dependencies,
    set_business_handler,
    set_automation_dependencies,
)
from app.middleware import PrometheusMiddleware
from app.metrics import (
    BACKGROUND_JOB_RUNS_TOTAL,
    BACKGROUND_JOB_DURATION_SECONDS,
    BACKGROUND_JOB_LAST_RUN_TIMESTAMP,
)

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Global container and scheduler
container: Container = None
scheduler: AsyncIOScheduler = None


async def _run_locked_job(job_name: str, run) -> None:
    """Run one poller tick under the Redis job lock, recording job metrics.

    A tick is skipped when another replica holds the lock.
    """
    dao = container.automation_dao
    token = dao.acquire_lock(job_name, container.settings.automation_lock_ttl_seconds)
    if token is None:
        logger.info(f"[Scheduler] {job_name} already running elsewhere, skipping tick")
        BACKGROUND_JOB_RUNS_TOTAL.labels(job_name=job_name, status="skipped").inc()
        return

    start_time = time.perf_counter()
    try:
        result = await run()
        duration = time.perf_counter() - start_time
        BACKGROUND_JOB_DURATION_SECONDS.labels(job_name=job_name).observe(duration)
        BACKGROUND_JOB_RUNS_TOTAL.labels(job_name=job_name, status="success").inc()
        BACKGROUND_JOB_LAST_RUN_TIMESTAMP.labels(job_name=job_name).set_to_current_time()
        logger.debug(f"[Scheduler] {job_name} completed: {result}")
    except Exception as e:
        duration = time.perf_counter() - start_time
        BACKGROUND_JOB_DURATION_SECONDS.labels(job_name=job_name).observe(duration)
        BACKGROUND_JOB_RUNS_TOTAL.labels(job_name=job_name, status="error").inc()
        logger.error(f"[Scheduler] {job_name} failed: {e}")
    finally:
        dao.release_lock(job_name, token)


async def run_review_auto_reply_job():
    """Background job: reply to new reviews of enabled locations."""
    await _run_locked_job(
        "review_auto_reply",
        container.review_automation_service.check_and_process_reviews,
    )


async def run_auto_posting_job():
    """Background job: publish posts whose schedule is due."""
    await _run_locked_job(
        "auto_posting",
        container.auto_posting_service.check_and_execute_posts,
    )


def start_background_jobs(settings: Settings):
    """Start the automation pollers using APScheduler."""
    global scheduler
    scheduler = AsyncIOScheduler(timezone=settings.scheduler_timezone)

    if settings.review_automation_enabled:
        container.review_automation_service.start()
        scheduler.add_job(
            run_review_auto_reply_job,
            trigger=IntervalTrigger(seconds=settings.review_check_interval_seconds),
            id="review_auto_reply",
            name="Review Auto-Reply",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        logger.info(
            f"[Scheduler] Scheduled review auto-reply every "
            f"{settings.review_check_interval_seconds} seconds"
        )
    else:
        logger.info("[Scheduler] Review auto-reply disabled (REVIEW_AUTOMATION_ENABLED=false)")

    if settings.auto_posting_enabled:
        container.auto_posting_service.start()
        scheduler.add_job(
            run_auto_posting_job,
            trigger=IntervalTrigger(seconds=settings.auto_posting_check_interval_seconds),
            id="auto_posting",
            name="Auto-Posting",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        logger.info(
            f"[Scheduler] Scheduled auto-posting check every "
            f"{settings.auto_posting_check_interval_seconds} seconds"
        )
    else:
        logger.info("[Scheduler] Auto-posting disabled (AUTO_POSTING_ENABLED=false)")

    scheduler.start()
    logger.info("[Scheduler] Background jobs started")


async def startup_sequence(settings: Settings):
    """Build the container, wire the routers and start the pollers."""
    global container

    logger.info("[Main] Starting startup sequence")
    logger.info(f"[Main] Configuration: {settings.get_summary()}")

    missing = settings.missing_required()
    if missing:
        logger.warning(
            f"[Main] Missing required settings: {', '.join(missing)}. "
            f"Google sign-in will not work until they are set."
        )

    logger.info("[Main] Initializing DI container")
    container = Container(settings)

    # Inject dependencies into routers (routes already registered at app creation)
    set_auth_dependencies(container.token_service, settings.frontend_url)
    set_business_handler(container.business_handler)
    set_automation_dependencies(
        container.review_automation_service,
        container.auto_posting_service,
        container.content_generator_service,
        container.notification_service,
        container.token_service,
    )
    logger.info("[Main] Router dependencies injected")

    logger.info("[Main] Starting periodic jobs")
    start_background_jobs(settings)

    logger.info("[Main] Startup sequence completed")


async def shutdown_sequence():
    """Clean up resources on shutdown."""
    global container, scheduler

    logger.info("[Main] Starting shutdown sequence")

    if scheduler:
        logger.info("[Main] Stopping scheduler")
        scheduler.shutdown(wait=False)
        logger.info("[Main] Scheduler stopped")

    if container:
        logger.info("[Main] Shutting down container")
        await container.shutdown()
        logger.info("[Main] Container shut down")

    logger.info("[Main] Shutdown sequence completed")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """FastAPI lifespan context manager for startup and shutdown."""
    await startup_sequence(settings)
    yield
    await shutdown_sequence()


# Create FastAPI app
app = FastAPI(
    title="GBP Dashboard API",
    description="Google Business Profile proxy, review auto-reply and auto-posting backend",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(PrometheusMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
)
register_exception_handlers(app)

# Register routers at app creation time (before uvicorn starts)
app.include_router(auth_router)
app.include_router(business_router)
app.include_router(automation_router)


# Health check endpoint
@app.get("/health")
def health():
    """Health check endpoint."""
    return {
        "status": "OK",
        "message": "Google Business Profile Backend Server is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# Prometheus metrics endpoint
@app.get("/metrics", response_class=PlainTextResponse)
def metrics():
    """Prometheus metrics endpoint for scraping."""
    return PlainTextResponse(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )


if __name__ == "__main__":
    import uvicorn

    logger.info("[Main] Starting GBP Dashboard backend")
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=settings.server_port,
        log_level=settings.log_level.lower(),
    )
