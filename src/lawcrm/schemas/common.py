"""Common schemas used across the API."""

from pydantic import BaseModel


class MessageResponse(BaseModel):
    """Simple message response."""

    message: str
    success: bool = True


class SourceError(BaseModel):
    """A failure scoped to one data source; other sources may still have answered."""

    source: str
    message: str
