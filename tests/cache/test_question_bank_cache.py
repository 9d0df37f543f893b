from types import SimpleNamespace

import pytest

from app.core import cache as cache_module
from app.core.cache import CacheManager, MemoryCacheBackend
from app.core.config import settings
from app.schemas.exam import ExamDefinition, QuestionDefinition
from app.services.question_bank import QuestionBankCache


def make_definition(course_id: int) -> ExamDefinition:
    return ExamDefinition(
        exam_id=course_id * 10,
        course_id=course_id,
        title=f"Course {course_id} Exam",
        time_limit_minutes=60,
        passing_score=80,
        max_attempts=2,
        questions=[
            QuestionDefinition(key=f"c{course_id}-q1", question_text="Pick B", options=["A", "B"], correct_answer=1),
        ],
    )


@pytest.fixture
def bank_cache():
    return QuestionBankCache(CacheManager(MemoryCacheBackend()))


def test_miss_returns_none(bank_cache):
    assert bank_cache.get(1) is None


def test_set_then_get_returns_equal_definition(bank_cache):
    definition = make_definition(1)

    assert bank_cache.set(1, definition) is True
    assert bank_cache.get(1) == definition


def test_invalidate_only_touches_one_course(bank_cache):
    bank_cache.set(1, make_definition(1))
    bank_cache.set(2, make_definition(2))

    assert bank_cache.invalidate(1) == 1
    assert bank_cache.get(1) is None
    assert bank_cache.get(2) is not None


def test_invalidate_all(bank_cache):
    bank_cache.set(1, make_definition(1))
    bank_cache.set(2, make_definition(2))
    bank_cache.manager.set("unrelated:key", "keep", 0)

    assert bank_cache.invalidate_all() == 2
    assert bank_cache.manager.get("unrelated:key") == "keep"


def test_entries_expire_after_ttl(bank_cache, monkeypatch):
    now = {"t": 1_000_000.0}
    monkeypatch.setattr(cache_module, "time", SimpleNamespace(time=lambda: now["t"]))
    bank_cache.set(1, make_definition(1))

    now["t"] += settings.QUESTION_BANK_CACHE_TTL - 1
    assert bank_cache.get(1) is not None

    now["t"] += 2
    assert bank_cache.get(1) is None


def test_disabled_cache_always_misses(bank_cache, monkeypatch):
    monkeypatch.setattr(settings, "CACHE_ENABLED", False)

    assert bank_cache.set(1, make_definition(1)) is False
    assert bank_cache.get(1) is None


def test_prefixes_keep_deployments_apart():
    backend = MemoryCacheBackend()
    staging = QuestionBankCache(CacheManager(backend, prefix="staging:"))
    production = QuestionBankCache(CacheManager(backend, prefix="prod:"))
    staging.set(1, make_definition(1))

    assert production.get(1) is None
    assert production.manager.clear() == 0
    assert staging.get(1) is not None
