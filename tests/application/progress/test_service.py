import math
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from retain.application.progress.service import ProgressService, validate_quality
from retain.domain.errors import CatalogUnavailableError, InvalidInputError
from retain.domain.progress.models import ProgressAggregate
from retain.infrastructure.adapters.catalog.yaml_catalog import YamlContentCatalog
from retain.infrastructure.adapters.progress.memory_store import InMemoryProgressRepository


@pytest.fixture
def repo():
    return InMemoryProgressRepository()


@pytest.fixture
def service(repo, catalog_file, clock):
    return ProgressService(repo, YamlContentCatalog(catalog_file), clock=clock)


@pytest.mark.parametrize("quality", [0, 3, 5])
def test_validate_quality_accepts_full_range(quality):
    assert validate_quality(quality) == quality


@pytest.mark.parametrize("quality", [-1, 6, 2.5, "4", None, True])
def test_validate_quality_rejects(quality):
    with pytest.raises(InvalidInputError):
        validate_quality(quality)


@pytest.mark.asyncio
async def test_get_progress_creates_and_saves_default(service, repo):
    progress = await service.get_progress("alice")

    assert progress.user_id == "alice"
    assert len(repo) == 1
    assert await repo.load("alice") == progress


@pytest.mark.asyncio
async def test_get_progress_requires_user_id(service):
    with pytest.raises(InvalidInputError):
        await service.get_progress("")


@pytest.mark.asyncio
async def test_flashcard_review_persists_and_advances_streak(service, repo, now):
    progress = await service.record_flashcard_review("alice", "ethics-001", 4)

    stored = await repo.load("alice")
    assert stored == progress
    assert stored.flashcards["ethics-001"].next_review_at == now + timedelta(days=1)
    assert stored.stats.current_streak == 1
    assert stored.stats.last_study_date == now.date()


@pytest.mark.asyncio
async def test_same_day_events_count_streak_once(service):
    await service.record_flashcard_review("alice", "ethics-001", 4)
    progress = await service.record_question_attempt("alice", "q-ethics-001", True)

    assert progress.stats.current_streak == 1


@pytest.mark.asyncio
async def test_invalid_quality_is_rejected_before_loading(catalog_file, clock):
    repo = AsyncMock()
    service = ProgressService(repo, clock=clock)

    with pytest.raises(InvalidInputError):
        await service.record_flashcard_review("alice", "ethics-001", 7)

    repo.load.assert_not_called()
    repo.save.assert_not_called()


@pytest.mark.asyncio
async def test_question_attempt_requires_boolean(service):
    with pytest.raises(InvalidInputError):
        await service.record_question_attempt("alice", "q-ethics-001", "yes")


@pytest.mark.asyncio
async def test_mark_unanswered_resets_and_tolerates_missing(service, repo):
    await service.record_question_attempt("alice", "q-ethics-001", True)

    progress = await service.mark_unanswered("alice", "q-ethics-001")
    assert progress.questions["q-ethics-001"].attempts == 0

    unchanged = await service.mark_unanswered("alice", "never-attempted")
    assert unchanged == progress


@pytest.mark.asyncio
async def test_study_time_does_not_advance_streak(service):
    progress = await service.record_study_time("alice", 30)

    assert progress.stats.total_study_time == 30
    assert progress.stats.current_streak == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("minutes", [0, -5, None, "10", math.nan, math.inf])
async def test_study_time_rejects_invalid_minutes(service, minutes):
    with pytest.raises(InvalidInputError):
        await service.record_study_time("alice", minutes)


@pytest.mark.asyncio
async def test_end_study_session_rounds_minutes(service, now):
    minutes, progress = await service.end_study_session(
        "alice", now - timedelta(minutes=24, seconds=40), now
    )

    assert minutes == 25
    assert progress.stats.total_study_time == 25
    assert progress.stats.current_streak == 1


@pytest.mark.asyncio
async def test_end_study_session_rejects_reversed_times(service, now):
    with pytest.raises(InvalidInputError):
        await service.end_study_session("alice", now, now - timedelta(minutes=5))


@pytest.mark.asyncio
async def test_end_study_session_rejects_end_slightly_before_start(service, repo, now):
    with pytest.raises(InvalidInputError):
        await service.end_study_session("alice", now, now - timedelta(seconds=20))

    assert len(repo) == 0


@pytest.mark.asyncio
async def test_nan_study_time_leaves_record_untouched(service, repo):
    await service.record_study_time("alice", 10)

    with pytest.raises(InvalidInputError):
        await service.record_study_time("alice", math.nan)

    assert (await repo.load("alice")).stats.total_study_time == 10


def test_start_study_session_issues_id(service, now):
    session_id, started = service.start_study_session()

    assert session_id.startswith("session_")
    assert started == now


@pytest.mark.asyncio
async def test_due_cards_uses_catalog_order(service):
    await service.record_flashcard_review("alice", "ethics-002", 5)

    assert await service.due_cards("alice") == ["ethics-001", "quant-001"]


@pytest.mark.asyncio
async def test_weak_areas_and_topic_accuracy(service):
    await service.record_question_attempt("alice", "q-ethics-001", False)
    await service.record_question_attempt("alice", "q-ethics-002", True)
    await service.record_question_attempt("alice", "q-quant-001", True)

    areas = await service.weak_areas("alice")

    assert [a.topic_id for a in areas] == ["ethics"]
    assert areas[0].accuracy == 50
    assert await service.topic_accuracy("alice", "quantitative") == 100


@pytest.mark.asyncio
async def test_queries_without_catalog_raise(repo, clock):
    service = ProgressService(repo, clock=clock)

    with pytest.raises(CatalogUnavailableError):
        await service.due_cards("alice")


@pytest.mark.asyncio
async def test_summary(service):
    await service.record_flashcard_review("alice", "quant-001", 4)

    summary = await service.summary("alice")

    assert summary.total_cards == 3
    assert summary.reviewed_cards == 1
    assert summary.due_cards == 2
    assert isinstance(summary.stats.current_streak, int)


@pytest.mark.asyncio
async def test_service_uses_repository_port(clock):
    repo = AsyncMock()
    repo.load.return_value = ProgressAggregate(user_id="bob")
    service = ProgressService(repo, clock=clock)

    await service.record_flashcard_review("bob", "c1", 3)

    repo.load.assert_awaited_once_with("bob")
    saved = repo.save.await_args.args[0]
    assert saved.user_id == "bob"
    assert saved.flashcards["c1"].repetitions == 1
