import pytest

from retain.domain.errors import CatalogError, UnknownItemError
from retain.infrastructure.adapters.catalog.yaml_catalog import YamlContentCatalog


def test_loads_flashcards_and_questions(catalog_file):
    catalog = YamlContentCatalog(catalog_file)

    assert catalog.all_flashcard_ids() == ["ethics-001", "ethics-002", "quant-001"]
    assert catalog.questions["q-quant-001"].difficulty == "hard"
    assert catalog.questions["q-ethics-001"].difficulty == "medium"
    assert catalog.questions["q-quant-001"].options == ("a", "b", "c")


def test_topic_lookup(catalog_file):
    catalog = YamlContentCatalog(catalog_file)

    assert catalog.topic_of("quant-001") == "quantitative"
    assert catalog.topic_of("q-ethics-002") == "ethics"
    with pytest.raises(UnknownItemError):
        catalog.topic_of("nope")


def test_question_grouping(catalog_file):
    catalog = YamlContentCatalog(catalog_file)

    assert catalog.question_ids_by_topic() == {
        "ethics": ["q-ethics-001", "q-ethics-002"],
        "quantitative": ["q-quant-001"],
    }
    assert catalog.question_ids_for_topic("ethics") == ["q-ethics-001", "q-ethics-002"]
    assert catalog.question_ids_for_topic("economics") == []


def test_duplicate_ids_rejected(tmp_path):
    path = tmp_path / "dup.yaml"
    path.write_text(
        "flashcards:\n"
        "  - {id: a, topicId: t}\n"
        "questions:\n"
        "  - {id: a, topicId: t}\n"
    )

    with pytest.raises(CatalogError, match="Duplicate"):
        YamlContentCatalog(path)


def test_duplicate_keys_rejected(tmp_path):
    path = tmp_path / "dupkey.yaml"
    path.write_text("flashcards: []\nflashcards: []\n")

    with pytest.raises(CatalogError):
        YamlContentCatalog(path)


def test_missing_topic_rejected(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("flashcards:\n  - {id: a}\n")

    with pytest.raises(CatalogError):
        YamlContentCatalog(path)


def test_missing_file(tmp_path):
    with pytest.raises(CatalogError):
        YamlContentCatalog(tmp_path / "absent.yaml")


def test_sample_catalog_loads():
    from pathlib import Path

    sample = Path(__file__).resolve().parents[3] / "data" / "sample_catalog.yaml"
    catalog = YamlContentCatalog(sample)

    assert "quant-001" in catalog.all_flashcard_ids()
    assert catalog.flashcards["quant-002"].tags == ("formula",)
