"""
Domain models for the letter dispatch scheduler.

SchedulerConfig is validated with pydantic because it is built from
settings and from partial updates coming over HTTP. The runtime records
are plain dataclasses owned by a single LetterDispatchJob instance.
"""

from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel, Field


class SchedulerConfig(BaseModel):
    interval_minutes: int = Field(default=15, gt=0)
    enabled: bool = True


@dataclass(slots=True)
class SchedulerRuntimeState:
    """Process-lifetime state, reset only on restart."""

    is_running: bool = False
    last_check: datetime | None = None
    total_letters_processed: int = 0


@dataclass(frozen=True, slots=True)
class EmailCheckResult:
    """Outcome of one check-and-process run."""

    success: bool
    new_letters_count: int
    error: str | None = None


@dataclass(frozen=True, slots=True)
class SchedulerStatus:
    is_running: bool
    total_emails_processed: int
    next_run: datetime | None = None
    last_check: datetime | None = None
