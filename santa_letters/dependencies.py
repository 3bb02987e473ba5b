"""
FastAPI dependencies for the services built in the application lifespan.

Tests replace these through app.dependency_overrides.
"""

from fastapi import Request

from santa_letters.jobs.letter_dispatch_job import LetterDispatchJob
from santa_letters.services.authorization_service import AuthorizationService
from santa_letters.services.letters_service import LettersService


def get_authorization_service(request: Request) -> AuthorizationService:
    return request.app.state.authorization_service


def get_letters_service(request: Request) -> LettersService:
    return request.app.state.letters_service


def get_letter_dispatch_job(request: Request) -> LetterDispatchJob:
    return request.app.state.letter_dispatch_job
