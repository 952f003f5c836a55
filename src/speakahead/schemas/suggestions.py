"""Schemas for word suggestions and the phrase bank."""

from pydantic import BaseModel, Field


class PhraseCategory(BaseModel):
    """A named group of ready-made phrases."""

    name: str = Field(..., min_length=1, description="Category label")
    phrases: list[str] = Field(default_factory=list)


class WordSuggestionsResponse(BaseModel):
    prefix: str
    suggestions: list[str]


class PhraseBankResponse(BaseModel):
    categories: list[PhraseCategory]


class AddPhrasePayload(BaseModel):
    phrase: str = Field(..., min_length=1)


__all__ = [
    "AddPhrasePayload",
    "PhraseBankResponse",
    "PhraseCategory",
    "WordSuggestionsResponse",
]
