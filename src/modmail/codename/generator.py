"""
Codename generation.

``generate`` draws a random adjective and noun and joins them with the
configured separator, rejecting anything in ``excluded`` (the codenames of
active conversations). Random draws are bounded; once they run out the
generator scans the remaining free pairs and picks one of those, so a nearly
full vocabulary still succeeds and a completely full one fails with
``ExhaustedVocabulary`` instead of looping forever.
"""

from __future__ import annotations

import random
from typing import AbstractSet, Sequence

from modmail.codename.wordlists import ADJECTIVES, NOUNS
from modmail.errors import ExhaustedVocabulary
from modmail.util.logger import get_logger

logger = get_logger("codename_generator")


class CodenameGenerator:
    """Random ``adjective<sep>noun`` codenames from fixed word lists."""

    def __init__(
        self,
        adjectives: Sequence[str] = ADJECTIVES,
        nouns: Sequence[str] = NOUNS,
        *,
        separator: str = " ",
        max_attempts: int = 64,
        rng: random.Random | None = None,
    ) -> None:
        if not adjectives or not nouns:
            raise ValueError("Codename word lists must not be empty")
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._adjectives = tuple(dict.fromkeys(adjectives))
        self._nouns = tuple(dict.fromkeys(nouns))
        self._separator = separator
        self._max_attempts = max_attempts
        self._rng = rng or random.SystemRandom()

    @property
    def capacity(self) -> int:
        """Number of distinct codenames the vocabulary can produce."""
        return len(self._adjectives) * len(self._nouns)

    def _join(self, adjective: str, noun: str) -> str:
        return f"{adjective}{self._separator}{noun}"

    def generate(self, excluded: AbstractSet[str] = frozenset()) -> str:
        """
        Return a codename that is not in ``excluded``.

        Raises:
            ExhaustedVocabulary: Every combination is already excluded.
        """
        for _ in range(self._max_attempts):
            candidate = self._join(self._rng.choice(self._adjectives), self._rng.choice(self._nouns))
            if candidate not in excluded:
                return candidate

        free = [
            name
            for name in (self._join(a, n) for a in self._adjectives for n in self._nouns)
            if name not in excluded
        ]
        if not free:
            logger.error("[CODENAME] All %d codenames are in use", self.capacity)
            raise ExhaustedVocabulary(f"All {self.capacity} codenames are in use.")

        logger.debug(
            "[CODENAME] Random draws exhausted after %d attempts, picking from %d free codenames",
            self._max_attempts,
            len(free),
        )
        return self._rng.choice(free)
