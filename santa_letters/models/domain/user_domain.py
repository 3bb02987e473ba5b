from dataclasses import dataclass
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

BIRTHDATE_FORMAT = "%Y/%m/%d"


class RemoteUser(BaseModel):
    """Entry of the remote users.json list."""

    model_config = ConfigDict(extra="ignore")

    uid: str
    username: str


class RemoteUserProfile(BaseModel):
    """
    Entry of the remote userProfiles.json list, joined to RemoteUser on uid.

    birthdate stays a raw string so one bad record does not break the whole
    list; only the matched profile is parsed, through birth_date().
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    user_uid: str = Field(alias="userUid")
    address: str | None = None
    birthdate: str | None = None

    def birth_date(self) -> date:
        """
        Raises:
            ValueError: If birthdate is missing or not a real YYYY/MM/DD date
        """
        if not self.birthdate:
            raise ValueError("birthdate missing")
        return datetime.strptime(self.birthdate, BIRTHDATE_FORMAT).date()


class ValidatedUser(BaseModel):
    """Remote user joined with its profile, annotated with the computed age."""

    uid: str
    username: str
    age: int
    address: str | None


@dataclass(frozen=True, slots=True)
class AuthorizationError:
    """Expected rejection of a submitter; code is the HTTP status to surface."""

    code: int
    message: str


@dataclass(frozen=True, slots=True)
class ValidationResult:
    is_valid: bool
    user: ValidatedUser | None = None
    error: AuthorizationError | None = None
