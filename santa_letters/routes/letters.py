"""
letters.py
----------
Purpose:
    API endpoints for submitting letters to Santa.

Usage:
    1. POST /letters - Authorize the child and queue the letter
    2. GET /letters/pending - Letters waiting for the next dispatch
"""

from fastapi import APIRouter, Depends, HTTPException, status

from santa_letters.dependencies import get_authorization_service, get_letters_service
from santa_letters.infrastructure.observability.logging import get_logger
from santa_letters.models.api.letter_request import PostLetterRequest
from santa_letters.models.api.letter_response import LetterResponse, PendingLettersResponse
from santa_letters.services.authorization_service import AuthorizationService, DataFetchError
from santa_letters.services.letters_service import LettersService

router = APIRouter(prefix="/letters", tags=["letters"])
logger = get_logger(__name__)


@router.post("", response_model=LetterResponse, status_code=status.HTTP_201_CREATED)
async def submit_letter(
    request: PostLetterRequest,
    authorization: AuthorizationService = Depends(get_authorization_service),
    letters: LettersService = Depends(get_letters_service),
):
    """
    Submit a letter to Santa.

    Raises:
        403: Child is 10 or older
        404: Unknown user or missing profile
        500: Remote user data could not be fetched
    """
    try:
        result = await authorization.validate_user(request.username)
    except DataFetchError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e)) from e

    if not result.is_valid:
        raise HTTPException(status_code=result.error.code, detail=result.error.message)

    letter = await letters.create(
        username=request.username,
        address=request.address,
        message=request.message,
    )
    return LetterResponse.from_domain(letter)


@router.get("/pending", response_model=PendingLettersResponse)
async def list_pending_letters(letters: LettersService = Depends(get_letters_service)):
    pending = list(letters.pending_letters)
    return PendingLettersResponse(
        count=len(pending),
        letters=[LetterResponse.from_domain(letter) for letter in pending],
    )
