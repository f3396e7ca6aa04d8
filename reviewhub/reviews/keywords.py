"""
Keyword aggregation.

Two sources of keywords exist: pre-tagged keyword lists attached to a review
by the upstream NLP step (used as-is after lower-casing) and free review text
(tokenized, stop words and short tokens dropped). Both rank by frequency and
break ties by first-seen order.
"""
import re
from collections import Counter
from dataclasses import dataclass
from typing import Iterable, List, Optional

MIN_TOKEN_LENGTH = 4

STOP_WORDS = frozenset({
    # articles / determiners
    "a", "an", "the", "this", "that", "these", "those", "some", "any", "each",
    # pronouns
    "i", "me", "my", "mine", "we", "us", "our", "ours", "you", "your", "yours",
    "he", "him", "his", "she", "her", "hers", "it", "its", "they", "them",
    "their", "theirs", "what", "which", "who", "whom",
    # auxiliaries
    "am", "is", "are", "was", "were", "be", "been", "being", "have", "has",
    "had", "having", "do", "does", "did", "will", "would", "shall", "should",
    "can", "could", "may", "might", "must",
    # connectives / prepositions
    "and", "but", "or", "nor", "so", "if", "then", "than", "because", "while",
    "of", "at", "by", "for", "with", "about", "from", "into", "onto", "over",
    "under", "again", "very", "just", "also", "there", "here", "when", "where",
    "not", "no", "all", "more", "most", "other", "such", "only", "own", "same",
    "too", "on", "in", "to", "up", "out", "off",
})

_TOKEN_RE = re.compile(r"[a-zA-Z]+")


@dataclass(frozen=True)
class KeywordCount:
    keyword: str
    count: int

    def to_dict(self) -> dict:
        return {"keyword": self.keyword, "count": self.count}


def _ranked(counter: Counter, limit: int) -> List[KeywordCount]:
    # Counter preserves insertion order and sorted() is stable, so equal
    # counts stay in first-seen order.
    ranked = sorted(counter.items(), key=lambda item: item[1], reverse=True)
    return [KeywordCount(keyword, count) for keyword, count in ranked[:limit]]


def top_keywords(keyword_lists: Iterable[Optional[Iterable[str]]], limit: int = 10) -> List[KeywordCount]:
    """
    Rank pre-tagged keywords.

    Args:
        keyword_lists: One keyword list per review (None entries allowed)
        limit: How many to return

    Returns:
        Top keywords by frequency, lower-cased
    """
    counter = Counter()
    for keywords in keyword_lists:
        for keyword in keywords or ():
            normalized = keyword.strip().lower() if keyword else ""
            if normalized:
                counter[normalized] += 1
    return _ranked(counter, limit)


def tokenize(text: str) -> List[str]:
    """Alphabetic lower-case tokens, stop words and short tokens removed."""
    return [
        token
        for token in (match.lower() for match in _TOKEN_RE.findall(text or ""))
        if len(token) >= MIN_TOKEN_LENGTH and token not in STOP_WORDS
    ]


def extract_text_keywords(texts: Iterable[Optional[str]], limit: int = 10) -> List[KeywordCount]:
    """Rank keywords mined from free review text."""
    counter = Counter()
    for text in texts:
        counter.update(tokenize(text))
    return _ranked(counter, limit)


def unique_keyword_count(keyword_lists: Iterable[Optional[Iterable[str]]]) -> int:
    return len({
        keyword.strip().lower()
        for keywords in keyword_lists
        for keyword in (keywords or ())
        if keyword and keyword.strip()
    })
