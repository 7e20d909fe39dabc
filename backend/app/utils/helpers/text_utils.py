"""
Utility functions for text comparison and formatting.

This module provides:
- Word-set extraction and Jaccard similarity used to relate processing records.
- Truncation helpers for the previews shown to the LLM.
- Normalisation of free text or list values into display strings.
"""

from typing import Any, Iterable, Set

from backend.app.configs.rgpd_config import MIN_WORD_LENGTH


class TextUtils:
    """Utilities for lightweight text similarity."""

    @staticmethod
    def word_set(text: str) -> Set[str]:
        """
        Split a text on whitespace and keep the significant words.

        Words are lowercased; words of MIN_WORD_LENGTH characters or fewer are dropped.

        Args:
            text: The text to split.

        Returns:
            The set of significant words.
        """
        if not text:
            return set()
        return {word for word in text.lower().split() if len(word) > MIN_WORD_LENGTH}

    @staticmethod
    def jaccard_similarity(text1: str, text2: str) -> float:
        """
        Jaccard index between the significant word sets of two texts.

        Args:
            text1: First text.
            text2: Second text.

        Returns:
            |A ∩ B| / |A ∪ B|, or 0.0 when both sets are empty.
        """
        words1 = TextUtils.word_set(text1)
        words2 = TextUtils.word_set(text2)
        union = words1 | words2
        if not union:
            return 0.0
        return len(words1 & words2) / len(union)

    @staticmethod
    def truncate(text: str, limit: int, suffix: str = "...") -> str:
        """Cut a text to `limit` characters, appending `suffix` only when cut."""
        if len(text) <= limit:
            return text
        return text[:limit] + suffix

    @staticmethod
    def join_values(value: Any, separator: str = ", ") -> str:
        """Render a list (or a plain value) as a single string."""
        if value is None:
            return ""
        if isinstance(value, str):
            return value
        if isinstance(value, Iterable):
            return separator.join(str(item) for item in value if item not in (None, ""))
        return str(value)
