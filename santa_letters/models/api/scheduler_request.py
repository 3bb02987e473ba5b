from datetime import datetime

from pydantic import BaseModel


class SchedulerConfigUpdateRequest(BaseModel):
    """
    Partial update for PUT /scheduler/config; unset fields keep their value.

    Range checks happen in LetterDispatchJob.update_config so an invalid
    merge is reported as 400 without touching the running timer.
    """

    interval_minutes: int | None = None
    enabled: bool | None = None


class SchedulerStatusResponse(BaseModel):
    is_running: bool
    next_run: datetime | None = None
    last_check: datetime | None = None
    total_emails_processed: int


class EmailCheckResponse(BaseModel):
    success: bool
    new_letters_count: int
    error: str | None = None
