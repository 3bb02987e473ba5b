"""
Health check endpoints.
"""

import time

from fastapi import APIRouter, Depends

from santa_letters.config import settings
from santa_letters.dependencies import get_letter_dispatch_job
from santa_letters.jobs.letter_dispatch_job import LetterDispatchJob

router = APIRouter()


@router.get("/healthz")
async def healthz():
    """Basic health check - always returns 200 if app is running."""
    return {"status": "ok", "service": "santa-letters"}


@router.get("/readyz")
async def readyz(job: LetterDispatchJob = Depends(get_letter_dispatch_job)):
    """
    Readiness check covering the dispatch scheduler and configuration.
    """
    checks = {}
    overall_ok = True

    # 1) Scheduler
    try:
        scheduler_health = job.health_check()
        checks["scheduler"] = {"ok": scheduler_health["healthy"], **scheduler_health}
        overall_ok = overall_ok and scheduler_health["healthy"]
    except Exception as e:
        checks["scheduler"] = {"ok": False, "error": f"{type(e).__name__}: {e}"}
        overall_ok = False

    # 2) Configuration
    config_issues = []

    if not settings.smtp_configured():
        config_issues.append("SMTP_USERNAME/SMTP_PASSWORD not set")

    if not settings.MAIL_TO:
        config_issues.append("MAIL_TO not set")

    config_ok = not config_issues
    checks["configuration"] = {
        "ok": config_ok,
        "issues": config_issues if config_issues else None,
        "environment": settings.environment,
    }
    overall_ok = overall_ok and config_ok

    return {"overall_ok": overall_ok, "checks": checks, "timestamp": time.time()}
