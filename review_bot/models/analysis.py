"""Analysis service data models."""

from typing import Optional

from pydantic import BaseModel, field_validator


class ContentBlock(BaseModel):
    """Typed block of a free-text completion."""

    type: str  # 'text' or 'refusal'
    text: Optional[str] = None


class IssueDraft(BaseModel):
    """Structured triage result, published verbatim as a GitHub issue."""

    title: str
    body: str

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("title must not be empty")
        return value
