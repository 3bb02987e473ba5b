from pydantic import BaseModel, Field


class PostLetterRequest(BaseModel):
    """Request body for submitting a letter to Santa."""

    username: str = Field(..., min_length=1, max_length=25)
    address: str = Field(..., min_length=1, max_length=50)
    message: str = Field(..., min_length=1, max_length=100)
