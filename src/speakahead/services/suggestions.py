"""Word completions and the phrase bank offered while typing."""

from __future__ import annotations

import asyncio
import json
import logging
import re
from pathlib import Path
from typing import List

from pydantic import ValidationError

from ..schemas.suggestions import PhraseCategory

logger = logging.getLogger(__name__)

COMMON_WORDS = [
    "the", "be", "to", "of", "and", "a", "in", "that", "have",
    "please", "help", "thank", "need", "want", "like", "can", "could",
    "hello", "goodbye", "yes", "no", "maybe", "sorry", "okay", "fine",
    "good", "bad", "happy", "sad", "tired", "hungry", "thirsty",
]

DEFAULT_PHRASE_BANK = {
    "Greetings": [
        "Hello, how are you?",
        "Good morning",
        "Good afternoon",
        "Good evening",
        "Nice to meet you",
    ],
    "Courtesy": [
        "Thank you very much",
        "You're welcome",
        "Excuse me",
        "I'm sorry",
        "Please help me",
    ],
    "Common": [
        "Could you repeat that?",
        "I don't understand",
        "What time is it?",
        "Where is the bathroom?",
        "How much does this cost?",
    ],
    "Emergency": [
        "I need help",
        "Call an ambulance",
        "Is there a doctor?",
        "It's an emergency",
        "Please call the police",
    ],
}

MIN_PREFIX_LENGTH = 2
MAX_SUGGESTIONS = 5


def suggest_words(text: str, limit: int = MAX_SUGGESTIONS) -> List[str]:
    """Complete the word under the caret from the common-words list.

    Only the last whitespace-separated token is considered, and only once it
    has at least two characters.
    """
    last_word = re.split(r"\s+", text)[-1].lower() if text else ""
    if len(last_word) < MIN_PREFIX_LENGTH:
        return []
    return [word for word in COMMON_WORDS if word.startswith(last_word)][:limit]


class PhraseBankService:
    """Manage the categorized phrases offered as one-tap messages."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._lock = asyncio.Lock()
        self._categories: List[PhraseCategory] = []
        self._load_from_disk()

    def _load_from_disk(self) -> None:
        if not self._path.exists():
            self._categories = self._get_defaults()
            return

        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Failed to read phrase bank file %s: %s", self._path, exc)
            self._categories = self._get_defaults()
            return

        items = raw.get("categories", []) if isinstance(raw, dict) else []

        loaded: List[PhraseCategory] = []
        for item in items:
            try:
                loaded.append(PhraseCategory.model_validate(item))
            except ValidationError as exc:
                logger.warning("Skipping invalid phrase category: %s", exc)
                continue

        self._categories = loaded if loaded else self._get_defaults()

    def _get_defaults(self) -> List[PhraseCategory]:
        return [
            PhraseCategory(name=name, phrases=list(phrases))
            for name, phrases in DEFAULT_PHRASE_BANK.items()
        ]

    def _save_to_disk(self) -> None:
        payload = {
            "categories": [c.model_dump(mode="json") for c in self._categories]
        }
        self._path.parent.mkdir(parents=True, exist_ok=True)
        serialized = json.dumps(payload, indent=2)
        self._path.write_text(serialized + "\n", encoding="utf-8")

    def _find(self, name: str) -> PhraseCategory:
        for category in self._categories:
            if category.name.lower() == name.lower():
                return category
        raise KeyError(f"Unknown phrase category: {name}")

    async def get_categories(self) -> List[PhraseCategory]:
        async with self._lock:
            return [c.model_copy(deep=True) for c in self._categories]

    async def get_category(self, name: str) -> PhraseCategory:
        async with self._lock:
            return self._find(name).model_copy(deep=True)

    async def add_phrase(self, name: str, phrase: str) -> PhraseCategory:
        """Add a phrase, creating the category when it does not exist yet."""
        async with self._lock:
            try:
                category = self._find(name)
            except KeyError:
                category = PhraseCategory(name=name)
                self._categories.append(category)
            if phrase not in category.phrases:
                category.phrases.append(phrase)
            self._save_to_disk()
            return category.model_copy(deep=True)

    async def delete_phrase(self, name: str, index: int) -> PhraseCategory:
        async with self._lock:
            category = self._find(name)
            if index < 0 or index >= len(category.phrases):
                raise IndexError(f"Invalid phrase index: {index}")
            category.phrases.pop(index)
            self._save_to_disk()
            return category.model_copy(deep=True)


__all__ = ["COMMON_WORDS", "PhraseBankService", "suggest_words"]
