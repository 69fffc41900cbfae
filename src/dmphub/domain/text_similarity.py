"""Letter-pair text similarity used to compare titles and abstracts."""

from __future__ import annotations

import re
from typing import Final

STOP_WORDS: Final[frozenset[str]] = frozenset(
    {"a", "an", "and", "if", "of", "or", "the", "then", "they"}
)

_MARKUP = re.compile(r"<[^>]+>")
_NON_WORD = re.compile(r"[^\w\s]")


def cleanse(text: str | None) -> str:
    """Case-fold, strip markup and punctuation, and drop stop words."""

    if not text:
        return ""
    plain = _NON_WORD.sub(" ", _MARKUP.sub(" ", text)).casefold()
    return " ".join(word for word in plain.split() if word not in STOP_WORDS)


def letter_pairs(text: str) -> list[str]:
    pairs: list[str] = []
    for word in text.upper().split():
        pairs.extend(word[index : index + 2] for index in range(len(word) - 1))
    return pairs


def white_similarity(first: str, second: str) -> float:
    """Dice coefficient over adjacent letter pairs within words (0.0 to 1.0).

    Each pair of the second string can be matched once. Two texts without any letter pairs
    have a similarity of 0.0.
    """

    first_pairs = letter_pairs(first)
    remaining = letter_pairs(second)
    union = len(first_pairs) + len(remaining)
    if union == 0:
        return 0.0

    intersection = 0
    for pair in first_pairs:
        try:
            remaining.remove(pair)
        except ValueError:
            continue
        intersection += 1
    return (2.0 * intersection) / union
