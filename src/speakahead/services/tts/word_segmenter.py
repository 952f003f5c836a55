"""
Word Segmenter for Predictive Speech Timing.

This module turns the live contents of a text input into the ordered list of
words the user has finished typing. A word counts as finished once it is
followed by whitespace or one of the punctuation marks ``. , ! ? ; :``; the
token under the caret is never emitted.

Architecture:
    text input → segment() → [Word, ...] → SessionController

Segmentation is a pure function of the input string. Extending a string that
ends on a boundary never changes the words already emitted, so callers can
detect newly finished words by comparing list lengths:

    words, last_index = new_words_since(text, last_index)
    for word in words:
        ...
"""

import re
from dataclasses import dataclass, field
from typing import List, Tuple

BOUNDARY_CHARS = ".,!?;:"

# A token and the run of boundary characters that closed it
_WORD_PATTERN = re.compile(r"([^\s.,!?;:]+)([\s.,!?;:]+)")


@dataclass(frozen=True)
class Word:
    """A finished word and the boundary characters that closed it.

    Words compare by text; the boundary run can still grow as the user types.
    """

    text: str
    boundary: str = field(compare=False)

    def __str__(self) -> str:
        return self.text


def segment(text: str) -> List[Word]:
    """
    Split text into the words that have been completed.

    Args:
        text: Current contents of the text input. Any string is valid.

    Returns:
        Completed words in typing order. An unterminated trailing token is
        left out.
    """
    if not text:
        return []
    return [
        Word(text=match.group(1), boundary=match.group(2))
        for match in _WORD_PATTERN.finditer(text)
    ]


def new_words_since(text: str, last_index: int) -> Tuple[List[Word], int]:
    """
    Return the words completed after ``last_index``.

    Args:
        text: Current contents of the text input.
        last_index: Index of the last word already observed (-1 for none).

    Returns:
        ``(new_words, new_last_index)``. When nothing new has been completed
        the list is empty and ``last_index`` is returned unchanged.
    """
    words = segment(text)
    start = max(last_index + 1, 0)
    if len(words) <= start:
        return [], last_index
    return words[start:], len(words) - 1


__all__ = ["BOUNDARY_CHARS", "Word", "new_words_since", "segment"]
