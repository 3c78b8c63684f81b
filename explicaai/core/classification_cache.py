"""Classification Cache — bounded LRU memo wrapped around the pure classifier.

Invariants:
    - CachedClassifier.classify(text) == classify(text) for every str, lone
      surrogates included
    - At most max_size entries; least recently used evicted first
    - Keyed by SHA-256 of the raw text (no normalization before hashing)

Design Decisions:
    - Lives outside classify_problem.py so the classifier stays referentially transparent
    - Instance owned by the application (app.state), not a module singleton
    - functools.lru_cache per instance: eviction, hit/miss counters and locking
      come from the standard implementation
"""

import hashlib
import logging
from dataclasses import dataclass, field
from functools import lru_cache

from explicaai.core.classify_problem import ClassificationResult, classify

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _CacheKey:
    """Hashes and compares by digest only; text rides along for the miss path."""
    digest: str
    text: str = field(compare=False)


class CachedClassifier:
    """LRU cache in front of classify()."""

    def __init__(self, max_size: int = 100):
        if max_size < 1:
            raise ValueError("max_size must be >= 1")
        self.max_size = max_size
        self._lookup = lru_cache(maxsize=max_size)(_classify_key)

    def classify(self, text: str) -> ClassificationResult:
        text = text or ""
        return self._lookup(_CacheKey(_digest(text), text))

    def clear(self) -> None:
        self._lookup.cache_clear()
        logger.info("Classification cache cleared")

    def stats(self) -> dict:
        info = self._lookup.cache_info()
        lookups = info.hits + info.misses
        return {
            "size": info.currsize,
            "max_size": info.maxsize,
            "hits": info.hits,
            "misses": info.misses,
            "hit_rate": info.hits / lookups if lookups else 0.0,
        }


def _classify_key(key: _CacheKey) -> ClassificationResult:
    result = classify(key.text)
    logger.debug(
        "Problem classified",
        extra={"category": result.category.value},
    )
    return result


def _digest(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8", "surrogatepass")).hexdigest()
