from datetime import datetime, timezone

import pytest

FIXED_NOW = datetime(2026, 3, 10, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def now():
    """A fixed review time so schedules are deterministic."""
    return FIXED_NOW


@pytest.fixture
def clock(now):
    return lambda: now


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config and data files
    monkeypatch.setenv("HOME", str(home))
    for var in (
        "RETAIN_DATA_PATH",
        "RETAIN_CATALOG_PATH",
        "RETAIN_DEFAULT_USER_ID",
        "RETAIN_VERBOSE",
    ):
        monkeypatch.delenv(var, raising=False)
    return home


@pytest.fixture
def catalog_file(tmp_path):
    """A small catalog with two topics."""
    path = tmp_path / "catalog.yaml"
    path.write_text(
        """
flashcards:
  - {id: ethics-001, front: F1, back: B1, topicId: ethics, subtopicId: ethics-code}
  - {id: ethics-002, front: F2, back: B2, topicId: ethics, subtopicId: ethics-code}
  - {id: quant-001, front: F3, back: B3, topicId: quantitative, subtopicId: tvm}
questions:
  - id: q-ethics-001
    text: Q1
    options: [a, b]
    correctAnswer: 0
    explanation: E1
    topicId: ethics
    subtopicId: ethics-code
  - id: q-ethics-002
    text: Q2
    options: [a, b]
    correctAnswer: 1
    explanation: E2
    topicId: ethics
    subtopicId: ethics-code
  - id: q-quant-001
    text: Q3
    options: [a, b, c]
    correctAnswer: 2
    explanation: E3
    topicId: quantitative
    subtopicId: tvm
    difficulty: hard
""",
        encoding="utf-8",
    )
    return path
