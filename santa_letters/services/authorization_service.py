"""
Age authorization for letter submitters.

Fetches the remote users and user profiles lists, joins them on uid and
accepts only children younger than MAX_AGE. Both lists are re-fetched on
every call; there is no cache.
"""

import asyncio
from collections.abc import Callable
from datetime import date

import httpx
from fastapi import status
from pydantic import TypeAdapter, ValidationError

from santa_letters.config import settings
from santa_letters.infrastructure.observability.logging import get_logger
from santa_letters.models.domain.user_domain import (
    AuthorizationError,
    RemoteUser,
    RemoteUserProfile,
    ValidatedUser,
    ValidationResult,
)

logger = get_logger(__name__)

MAX_AGE = 10  # exclusive

FETCH_USER_DATA_FAILED = "Failed to fetch user data"
USER_NOT_FOUND = "User not found"
USER_PROFILE_NOT_FOUND = "User profile not found"
INVALID_BIRTHDATE = "User profile has an invalid birthdate"

_users_adapter = TypeAdapter(list[RemoteUser])
_profiles_adapter = TypeAdapter(list[RemoteUserProfile])


def _index_first(records, key: str) -> dict:
    """Index records by an attribute; on duplicates the first record wins."""
    index = {}
    for record in records:
        index.setdefault(getattr(record, key), record)
    return index


def user_too_old_message(age: int) -> str:
    return f"User is too old: {age} years old"


def calculate_age(birthdate: date, today: date) -> int:
    """Whole years between birthdate and today."""
    age = today.year - birthdate.year
    if (today.month, today.day) < (birthdate.month, birthdate.day):
        age -= 1
    return age


class DataFetchError(Exception):
    """Remote user data could not be fetched, or a list was not the expected shape."""

    def __init__(self, message: str = FETCH_USER_DATA_FAILED, source: str | None = None):
        super().__init__(message)
        self.source = source
        self.recoverable = False


class AuthorizationService:
    """
    Decides whether a submitter may send a letter.

    Domain rejections (unknown user, missing profile, unparseable birthdate,
    too old) come back as ValidationResult values. Only infrastructure failures raise.
    """

    def __init__(
        self,
        users_url: str | None = None,
        profiles_url: str | None = None,
        client: httpx.AsyncClient | None = None,
        clock: Callable[[], date] = date.today,
    ):
        self.users_url = users_url or settings.USERS_DATA_URL
        self.profiles_url = profiles_url or settings.USER_PROFILES_DATA_URL
        self._client = client or self._create_client()
        self._clock = clock

    def _create_client(self) -> httpx.AsyncClient:
        timeout = httpx.Timeout(settings.DATA_FETCH_TIMEOUT)
        return httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def _fetch_json(self, url: str):
        response = await self._client.get(url)
        if not response.is_success:
            logger.error("User data source returned error", url=url, status_code=response.status_code)
            raise DataFetchError(source=url)
        return response.json()

    async def fetch_user_data(self) -> tuple[list[RemoteUser], list[RemoteUserProfile]]:
        """
        Fetch both remote lists concurrently.

        Raises:
            DataFetchError: If either source is unreachable, non-OK or malformed
        """
        try:
            users_payload, profiles_payload = await asyncio.gather(
                self._fetch_json(self.users_url),
                self._fetch_json(self.profiles_url),
            )
            users = _users_adapter.validate_python(users_payload)
            profiles = _profiles_adapter.validate_python(profiles_payload)
        except DataFetchError:
            raise
        except (httpx.HTTPError, ValueError, ValidationError) as e:
            logger.error("Error fetching user data", error=str(e), error_type=type(e).__name__)
            raise DataFetchError() from e

        return users, profiles

    async def validate_user(self, username: str) -> ValidationResult:
        users, profiles = await self.fetch_user_data()

        users_by_name = _index_first(users, "username")
        user = users_by_name.get(username)
        if user is None:
            logger.info("Letter rejected, unknown user", username=username)
            return ValidationResult(
                is_valid=False,
                error=AuthorizationError(status.HTTP_404_NOT_FOUND, USER_NOT_FOUND),
            )

        profiles_by_uid = _index_first(profiles, "user_uid")
        profile = profiles_by_uid.get(user.uid)
        if profile is None:
            logger.info("Letter rejected, no profile", username=username, uid=user.uid)
            return ValidationResult(
                is_valid=False,
                error=AuthorizationError(status.HTTP_404_NOT_FOUND, USER_PROFILE_NOT_FOUND),
            )

        try:
            birthdate = profile.birth_date()
        except ValueError as e:
            logger.warning(
                "Letter rejected, unparseable birthdate",
                username=username,
                birthdate=profile.birthdate,
                error=str(e),
            )
            return ValidationResult(
                is_valid=False,
                error=AuthorizationError(422, INVALID_BIRTHDATE),
            )

        age = calculate_age(birthdate, self._clock())
        if age >= MAX_AGE:
            logger.info("Letter rejected, user too old", username=username, age=age)
            return ValidationResult(
                is_valid=False,
                error=AuthorizationError(status.HTTP_403_FORBIDDEN, user_too_old_message(age)),
            )

        return ValidationResult(
            is_valid=True,
            user=ValidatedUser(
                uid=user.uid,
                username=user.username,
                age=age,
                address=profile.address,
            ),
        )

    async def is_user_under_10(self, username: str) -> bool:
        result = await self.validate_user(username)
        return result.is_valid

    async def get_user_info(self, username: str) -> ValidatedUser | None:
        result = await self.validate_user(username)
        return result.user if result.is_valid else None
