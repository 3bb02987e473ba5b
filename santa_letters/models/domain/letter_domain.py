"""
Domain models for letters and the emails they are dispatched as.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Letter:
    """A letter to Santa. Created by LettersService, never modified."""

    id: str  # uuid4
    username: str
    address: str
    message: str


@dataclass(frozen=True, slots=True)
class Email:
    """Outbound message handed to the SMTP transport."""

    sender: str
    to: str
    subject: str
    text: str
