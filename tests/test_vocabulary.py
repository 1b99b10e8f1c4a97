"""
Tests for loading vocabulary sets from level folders.
"""
import json
import random

import pytest

from kanjiquiz.controller import SessionController
from kanjiquiz.errors import NotFound
from kanjiquiz.models import QuizMode
from kanjiquiz.vocabulary import VocabularyManager, item_id_for


@pytest.fixture
def vocab_dir(tmp_path):
    n5 = tmp_path / "N5"
    n5.mkdir()
    (n5 / "kata_benda_n5.csv").write_text(
        "kanji,reading,meaning\n日,にち,sun\n月,げつ,\n火,,fire\n", encoding="utf-8"
    )
    (n5 / "notes.txt").write_text("ignored", encoding="utf-8")
    (n5 / "broken.csv").write_text("word,translation\nHund,dog\n", encoding="utf-8")

    dummy = tmp_path / "Dummy"
    dummy.mkdir()
    (dummy / "test_soal_3.json").write_text(
        json.dumps(
            [
                {"Question Text": "亜", "Option 1": "あ", "Answer explanation": "a"},
                {"Question Text": "伊", "Option 1": "い", "Answer explanation": None},
            ]
        ),
        encoding="utf-8",
    )
    return tmp_path


class TestVocabularyManager:
    def test_loads_csv_and_legacy_json(self, vocab_dir):
        manager = VocabularyManager(str(vocab_dir))
        manager.load_all()

        n5 = manager.get_set("N5_kata_benda_n5")
        assert [item.prompt for item in n5.items] == ["日", "月", "火"]
        assert n5.items[1].meaning == ""
        assert n5.items[2].reading == ""

        dummy = manager.get_set("Dummy_test_soal_3")
        assert dummy.items[0].reading == "あ"
        assert dummy.items[1].meaning == ""

    def test_item_ids_are_unique(self, vocab_dir):
        manager = VocabularyManager(str(vocab_dir))
        manager.load_all()

        ids = [item.id for item in manager.get_set("N5_kata_benda_n5").items]
        assert len(set(ids)) == len(ids)

    def test_skips_files_without_prompt_column(self, vocab_dir):
        manager = VocabularyManager(str(vocab_dir))
        manager.load_all()

        assert manager.find_set("N5_broken") is None

    def test_set_summaries(self, vocab_dir):
        manager = VocabularyManager(str(vocab_dir))
        manager.load_all()

        assert manager.get_sets() == [
            {"id": "Dummy_test_soal_3", "level": "Dummy", "name": "Test Soal 3", "count": 2},
            {"id": "N5_kata_benda_n5", "level": "N5", "name": "Kata Benda N5", "count": 3},
        ]

    def test_unknown_set(self, vocab_dir):
        manager = VocabularyManager(str(vocab_dir))
        manager.load_all()

        with pytest.raises(NotFound):
            manager.get_set("N1_missing")

    def test_missing_directory_is_created(self, tmp_path):
        manager = VocabularyManager(str(tmp_path / "vocab"))
        manager.load_all()

        assert (tmp_path / "vocab").is_dir()
        assert manager.get_sets() == []

    def test_delete_all(self, vocab_dir):
        manager = VocabularyManager(str(vocab_dir))
        manager.load_all()
        manager.delete_all()

        assert manager.get_sets() == []

    def test_item_ids_survive_reload(self, vocab_dir):
        first = VocabularyManager(str(vocab_dir))
        first.load_all()
        second = VocabularyManager(str(vocab_dir))
        second.load_all()

        for set_id in ("N5_kata_benda_n5", "Dummy_test_soal_3"):
            assert [item.id for item in first.get_set(set_id).items] == [
                item.id for item in second.get_set(set_id).items
            ]

    def test_id_column_is_used_when_present(self, tmp_path):
        level = tmp_path / "N4"
        level.mkdir()
        (level / "kata_kerja_n4.csv").write_text(
            "id,kanji,reading,meaning\nv-1,行,い,go\n,来,く,come\n", encoding="utf-8"
        )
        manager = VocabularyManager(str(tmp_path))
        manager.load_all()

        items = manager.get_set("N4_kata_kerja_n4").items
        assert items[0].id == "v-1"
        assert items[1].id == item_id_for("N4_kata_kerja_n4", 1, "来")


class TestResumeAcrossReload:
    def test_progress_survives_reloading_the_files(self, vocab_dir, sessions, orders):
        before = VocabularyManager(str(vocab_dir))
        before.load_all()
        controller = SessionController(sessions, orders, rng=random.Random(3))
        controller.setup_session(before.get_set("N5_kata_benda_n5"), QuizMode.TEXT_INPUT)
        first_item = controller.current_question.source_item_id
        controller.submit_answer(controller.current_question.correct_answer_text)
        controller.proceed()

        # A new process reads the same files again.
        after = VocabularyManager(str(vocab_dir))
        after.load_all()
        result = SessionController(sessions, orders, rng=random.Random(8)).setup_session(
            after.get_set("N5_kata_benda_n5"), QuizMode.TEXT_INPUT
        )

        assert result.session.current_index == 1
        assert result.session.score == 10
        assert result.session.answered_item_ids == [first_item]
        assert result.current_question.source_item_id != first_item
