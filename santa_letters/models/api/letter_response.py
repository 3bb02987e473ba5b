from pydantic import BaseModel

from santa_letters.models.domain.letter_domain import Letter


class LetterResponse(BaseModel):
    id: str
    username: str
    address: str
    message: str

    @classmethod
    def from_domain(cls, letter: Letter) -> "LetterResponse":
        return cls(
            id=letter.id,
            username=letter.username,
            address=letter.address,
            message=letter.message,
        )


class PendingLettersResponse(BaseModel):
    """Response for GET /letters/pending"""

    count: int
    letters: list[LetterResponse]
