"""REST API endpoints for word suggestions and the phrase bank."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status

from ..schemas.suggestions import (
    AddPhrasePayload,
    PhraseBankResponse,
    PhraseCategory,
    WordSuggestionsResponse,
)
from ..services.suggestions import PhraseBankService, suggest_words

router = APIRouter(prefix="/api/suggestions", tags=["suggestions"])


def get_phrase_bank_service(request: Request) -> PhraseBankService:
    """Dependency to access the global phrase bank service."""
    service = getattr(request.app.state, "phrase_bank_service", None)
    if service is None:  # pragma: no cover - defensive
        raise RuntimeError("Phrase bank service is not configured")
    return service


@router.get("/words", response_model=WordSuggestionsResponse)
async def get_word_suggestions(text: str = "") -> WordSuggestionsResponse:
    """Complete the word currently being typed."""
    prefix = text.split()[-1] if text.strip() else ""
    return WordSuggestionsResponse(prefix=prefix, suggestions=suggest_words(text))


@router.get("/phrases", response_model=PhraseBankResponse)
async def get_phrases(
    category: str | None = None,
    service: PhraseBankService = Depends(get_phrase_bank_service),
) -> PhraseBankResponse:
    """Get the whole phrase bank, or a single category."""
    if category is None:
        return PhraseBankResponse(categories=await service.get_categories())
    try:
        return PhraseBankResponse(categories=[await service.get_category(category)])
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc


@router.post(
    "/phrases/{category}",
    response_model=PhraseCategory,
    status_code=status.HTTP_201_CREATED,
)
async def add_phrase(
    category: str,
    payload: AddPhrasePayload,
    service: PhraseBankService = Depends(get_phrase_bank_service),
) -> PhraseCategory:
    return await service.add_phrase(category, payload.phrase)


@router.delete("/phrases/{category}/{index}", response_model=PhraseCategory)
async def delete_phrase(
    category: str,
    index: int,
    service: PhraseBankService = Depends(get_phrase_bank_service),
) -> PhraseCategory:
    try:
        return await service.delete_phrase(category, index)
    except (KeyError, IndexError) as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc


__all__ = ["router"]
