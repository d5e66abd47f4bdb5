"""Keyword dictionary and keyword scoring.

The dictionary maps a category name to the keywords that suggest it. It is
plain configuration: loaded once from YAML, never written to at runtime.

Scoring constants were tuned by hand against real descriptions. They are kept
here as named values so they can be adjusted, but changing them changes which
category wins for existing users.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Mapping

import yaml

from finance_tracker.categorization.text import normalize_text, tokenize
from finance_tracker.core.exceptions import DictionaryLoadError

logger = logging.getLogger(__name__)

DEFAULT_DICTIONARY_PATH = Path(__file__).resolve().parent / "data" / "keywords.yaml"

CATEGORY_KINDS: frozenset[str] = frozenset({"expense", "income", "investment"})

# Tunable scoring weights.
EXACT_MATCH_POINTS = 20
FULL_WORD_MATCH_POINTS = 8
FULL_SHORT_WORD_MATCH_POINTS = 4
PARTIAL_MATCH_POINTS = 1
EXACT_MATCH_MULTIPLIER = 1.5

MIN_KEYWORD_WORD_LEN = 3  # shorter keyword words are ignored
MIN_PREFIX_WORD_LEN = 4
SIGNIFICANT_WORD_LEN = 5
PREFIX_RATIO_THRESHOLD = 0.7


@dataclass(frozen=True)
class KeywordScore:
    """Score of one category's keywords against one description."""

    score: int
    exact: bool


@dataclass(frozen=True)
class CategoryScore:
    category: str
    score: int
    exact: bool


@dataclass(frozen=True)
class KeywordDictionary:
    """Immutable category -> keywords mapping."""

    keywords: Mapping[str, tuple[str, ...]]
    kinds: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_mapping(
        cls,
        keywords: Mapping[str, Iterable[str]],
        kinds: Mapping[str, str] | None = None,
    ) -> "KeywordDictionary":
        frozen = {name: tuple(words) for name, words in keywords.items()}
        return cls(
            keywords=MappingProxyType(frozen),
            kinds=MappingProxyType(dict(kinds or {})),
        )

    @property
    def categories(self) -> list[str]:
        return list(self.keywords)

    def kind_of(self, category: str | None) -> str | None:
        """Return the kind of a category, matching names accent-insensitively."""
        if not category:
            return None
        if category in self.kinds:
            return self.kinds[category]
        wanted = normalize_text(category)
        for name, kind in self.kinds.items():
            if normalize_text(name) == wanted:
                return kind
        return None

    def __len__(self) -> int:
        return len(self.keywords)


def load_dictionary(path: str | Path | None = None) -> KeywordDictionary:
    """Load the keyword dictionary from a YAML file.

    Args:
        path: YAML file to read. Defaults to the packaged dictionary.

    Returns:
        The parsed dictionary. Results are cached per path.

    Raises:
        DictionaryLoadError: If the file is missing or malformed.
    """
    resolved = Path(path) if path else DEFAULT_DICTIONARY_PATH
    return _load_dictionary_cached(str(resolved))


@lru_cache
def _load_dictionary_cached(path: str) -> KeywordDictionary:
    try:
        with open(path, encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as e:
        raise DictionaryLoadError("CAT_003", {"path": path, "reason": type(e).__name__}) from e

    categories = raw.get("categories") if isinstance(raw, dict) else None
    if not isinstance(categories, dict) or not categories:
        raise DictionaryLoadError("CAT_003", {"path": path, "reason": "missing 'categories'"})

    keywords: dict[str, list[str]] = {}
    kinds: dict[str, str] = {}
    for name, entry in categories.items():
        if not isinstance(entry, dict) or not isinstance(entry.get("keywords"), list):
            raise DictionaryLoadError(
                "CAT_003", {"path": path, "category": name, "reason": "missing keyword list"}
            )
        words = [str(word) for word in entry["keywords"] if normalize_text(str(word))]
        kind = entry.get("kind", "expense")
        if kind not in CATEGORY_KINDS:
            raise DictionaryLoadError(
                "CAT_003", {"path": path, "category": name, "reason": f"unknown kind {kind!r}"}
            )
        keywords[str(name)] = words
        kinds[str(name)] = kind

    logger.info(
        "Loaded keyword dictionary",
        extra={"categories_count": len(keywords), "keywords_count": sum(len(w) for w in keywords.values())},
    )
    return KeywordDictionary.from_mapping(keywords, kinds)


def words_match(keyword_word: str, token: str) -> bool:
    """True when a keyword word and a description token are the same word.

    Besides equality this accepts prefix matches between words of four or more
    letters whose lengths are close (plurals, conjugations).
    """
    if keyword_word == token:
        return True
    if len(keyword_word) < MIN_PREFIX_WORD_LEN or len(token) < MIN_PREFIX_WORD_LEN:
        return False
    if not (token.startswith(keyword_word) or keyword_word.startswith(token)):
        return False
    shorter, longer = sorted((len(keyword_word), len(token)))
    return shorter / longer > PREFIX_RATIO_THRESHOLD


def score_keywords(normalized_description: str, keywords: Iterable[str]) -> KeywordScore:
    """Score a normalized description against one category's keywords."""
    tokens = tokenize(normalized_description)
    score = 0
    exact = False

    for keyword in keywords:
        normalized_keyword = normalize_text(keyword)
        if normalized_keyword in normalized_description:
            score += EXACT_MATCH_POINTS
            exact = True
            continue

        keyword_words = tokenize(normalized_keyword)
        word_matches = 0
        significant_matches = 0
        for word in keyword_words:
            if len(word) < MIN_KEYWORD_WORD_LEN:
                continue
            if any(words_match(word, token) for token in tokens):
                word_matches += 1
                if len(word) >= SIGNIFICANT_WORD_LEN:
                    significant_matches += 1

        # Skipped short words still count toward the total, so a keyword
        # containing one can only ever score a partial match.
        if word_matches and word_matches == len(keyword_words):
            score += FULL_WORD_MATCH_POINTS if significant_matches else FULL_SHORT_WORD_MATCH_POINTS
        elif significant_matches:
            score += PARTIAL_MATCH_POINTS

    if exact:
        return KeywordScore(score=int(score * EXACT_MATCH_MULTIPLIER), exact=True)
    return KeywordScore(score=score, exact=False)


def score_categories(description: str | None, dictionary: KeywordDictionary) -> list[CategoryScore]:
    """Score every dictionary category, keeping those with a positive score.

    Results keep dictionary order.
    """
    normalized = normalize_text(description)
    scores: list[CategoryScore] = []
    for category, keywords in dictionary.keywords.items():
        result = score_keywords(normalized, keywords)
        if result.score > 0:
            scores.append(CategoryScore(category=category, score=result.score, exact=result.exact))
    return scores
