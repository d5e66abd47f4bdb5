"""Match a description against the user's own categorization history."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Iterable

from finance_tracker.categorization.text import normalize_text, tokenize

MIN_TOKEN_LEN = 3
MIN_SHARED_TOKENS = 2
SHARED_TOKEN_RATIO = 0.6
MIN_SIMILAR_SAMPLES = 2

BASE_CONFIDENCE = 60
CONFIDENCE_PER_SAMPLE = 10
MAX_CONFIDENCE = 90


@dataclass(frozen=True)
class HistoricalSample:
    """A previously categorized transaction, as seen by the matcher."""

    category: str
    description: str | None
    kind: str | None = None


@dataclass(frozen=True)
class HistoricalMatch:
    """Best category found in history and how many similar samples backed it."""

    category: str | None
    count: int
    kind: str | None = None

    @property
    def accepted(self) -> bool:
        return self.category is not None and self.count >= MIN_SIMILAR_SAMPLES

    @property
    def confidence(self) -> int:
        return min(MAX_CONFIDENCE, BASE_CONFIDENCE + CONFIDENCE_PER_SAMPLE * self.count)


NO_MATCH = HistoricalMatch(category=None, count=0)


def is_similar(tokens: list[str], sample_description: str) -> bool:
    normalized = normalize_text(sample_description)
    shared = sum(1 for token in tokens if len(token) >= MIN_TOKEN_LEN and token in normalized)
    return shared >= MIN_SHARED_TOKENS or shared / len(tokens) > SHARED_TOKEN_RATIO


def match_history(description: str | None, samples: Iterable[HistoricalSample]) -> HistoricalMatch:
    """Find the category most often used for similar past descriptions.

    Ties go to the category seen first. The returned match may have a count of
    one; check ``accepted`` before trusting it.
    """
    tokens = tokenize(normalize_text(description))
    counts: Counter[str] = Counter()
    kinds: dict[str, str | None] = {}
    for sample in samples:
        if not sample.description:
            continue
        if is_similar(tokens, sample.description):
            counts[sample.category] += 1
            kinds.setdefault(sample.category, sample.kind)

    if not counts:
        return NO_MATCH
    # Counter.most_common keeps insertion order among equal counts.
    category, count = counts.most_common(1)[0]
    return HistoricalMatch(category=category, count=count, kind=kinds[category])
