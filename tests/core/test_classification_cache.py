"""Classification Cache — tests for the bounded LRU wrapper around classify().

Tests cover:
    - Cached result equals the pure classifier's result
    - Hit/miss accounting and hit_rate
    - LRU eviction at max_size
    - clear() resets entries and counters
    - Surrogate-bearing and None input hash without raising
"""

import pytest

from explicaai.core.classification_cache import CachedClassifier
from explicaai.core.classify_problem import classify


def test_cached_result_matches_pure_classifier():
    cache = CachedClassifier()
    text = "Calcule sen(30°) em um triângulo retângulo"
    assert cache.classify(text) == classify(text)
    assert cache.classify(text) == classify(text)


def test_second_lookup_is_a_hit():
    cache = CachedClassifier()
    cache.classify("2x + 5 = 13")
    cache.classify("2x + 5 = 13")
    stats = cache.stats()
    assert stats["hits"] == 1
    assert stats["misses"] == 1
    assert stats["hit_rate"] == 0.5


def test_key_is_raw_text():
    cache = CachedClassifier()
    cache.classify("2x + 5 = 13")
    cache.classify("2x + 5 = 13 ")
    assert cache.stats()["size"] == 2


def test_least_recently_used_entry_is_evicted():
    cache = CachedClassifier(max_size=2)
    cache.classify("a")
    cache.classify("b")
    cache.classify("a")          # a is now most recent
    cache.classify("c")          # evicts b
    assert cache.stats()["size"] == 2

    cache.classify("a")
    assert cache.stats()["hits"] == 2
    cache.classify("b")
    assert cache.stats()["misses"] == 4


def test_clear_resets_everything():
    cache = CachedClassifier()
    cache.classify("x = 3")
    cache.classify("x = 3")
    cache.clear()
    assert cache.stats() == {
        "size": 0, "max_size": 100, "hits": 0, "misses": 0, "hit_rate": 0.0,
    }


def test_max_size_must_be_positive():
    with pytest.raises(ValueError):
        CachedClassifier(max_size=0)


def test_lone_surrogate_is_classified_like_the_pure_classifier():
    cache = CachedClassifier()
    text = "2x + 5 = 13 \ud800"
    assert cache.classify(text) == classify(text)
    assert cache.classify(text) == classify(text)
    assert cache.stats()["hits"] == 1


def test_none_and_empty_share_one_entry():
    cache = CachedClassifier()
    cache.classify("")
    cache.classify(None)
    assert cache.stats()["size"] == 1
    assert cache.stats()["hits"] == 1


def test_instances_do_not_share_entries():
    first, second = CachedClassifier(), CachedClassifier()
    first.classify("x = 3")
    second.classify("x = 3")
    assert first.stats()["misses"] == 1
    assert second.stats()["misses"] == 1
