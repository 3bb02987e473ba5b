"""
Santa letters service: app wiring and lifecycle.
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from santa_letters.config import settings
from santa_letters.infrastructure.observability.logging import (
    get_logger,
    log_request,
    setup_logging,
)
from santa_letters.jobs.letter_dispatch_job import LetterDispatchJob
from santa_letters.middleware import RequestContextMiddleware
from santa_letters.routes import health, letters, scheduler
from santa_letters.services.authorization_service import AuthorizationService
from santa_letters.services.email_service import EmailService
from santa_letters.services.letters_service import LettersService

# Setup logging before creating the app
setup_logging(log_level=settings.LOG_LEVEL, json_logs=settings.json_logs())
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the services, start the dispatch scheduler, tear down in reverse."""

    logger.info("Application starting", environment=settings.environment, debug=settings.debug)

    authorization_service = AuthorizationService()
    email_service = EmailService()
    letters_service = LettersService(sender=email_service.send_letter)
    letter_dispatch_job = LetterDispatchJob(letters_service, config=settings.get_scheduler_config())

    app.state.authorization_service = authorization_service
    app.state.email_service = email_service
    app.state.letters_service = letters_service
    app.state.letter_dispatch_job = letter_dispatch_job

    letter_dispatch_job.start()
    logger.info("All services initialized", scheduler_running=letter_dispatch_job.state.is_running)

    yield

    logger.info("Application shutting down")

    shutdown_errors = []

    try:
        await letter_dispatch_job.shutdown()
    except Exception as e:
        logger.error("Error stopping letter dispatch scheduler", error=str(e))
        shutdown_errors.append(f"Scheduler: {e}")

    pending = len(letters_service.pending_letters)
    if pending:
        logger.warning("Shutting down with undelivered letters", pending=pending)

    try:
        await authorization_service.close()
    except Exception as e:
        logger.error("Error closing user data client", error=str(e))
        shutdown_errors.append(f"User data client: {e}")

    if shutdown_errors:
        logger.warning("Some services had shutdown errors", errors=shutdown_errors)
    else:
        logger.info("All services closed successfully")


app = FastAPI(
    title="Santa Letters",
    description="Collects letters to Santa and emails them on a schedule",
    version="0.1.0",
    lifespan=lifespan,
)

# Include routers
app.include_router(health.router)
app.include_router(letters.router)
app.include_router(scheduler.router)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log HTTP requests with timing."""
    start_time = time.time()
    response = await call_next(request)
    process_time = (time.time() - start_time) * 1000

    log_request(
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=round(process_time, 2),
    )
    return response


# Added last so it wraps log_requests and the request_id is bound for it
app.add_middleware(RequestContextMiddleware)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
