"""
Unit tests for sidebar aggregation
"""
from types import SimpleNamespace

from domain.errors import StoreUnavailable
from domain.services import group_by_chapter, load_sidebar


def _q(qid, chapter, title, difficulty="Medium"):
    return SimpleNamespace(id=qid, chapter=chapter, title=title, difficulty=difficulty)


class TestGroupByChapter:

    def test_groups_and_keeps_input_order(self):
        questions = [
            _q(3, "Arrays", "Kadane"),
            _q(1, "Arrays", "Two Sum"),
            _q(2, "Strings", "Anagram"),
        ]

        grouped = group_by_chapter(questions)

        assert list(grouped) == ["Arrays", "Strings"]
        assert [q.id for q in grouped["Arrays"]] == [3, 1]
        assert [q.id for q in grouped["Strings"]] == [2]

    def test_empty_input(self):
        assert group_by_chapter([]) == {}


class _DownStore:
    def list_ordered(self):
        raise StoreUnavailable()


class _FixedStore:
    def __init__(self, questions):
        self.questions = questions

    def list_ordered(self):
        return self.questions


class TestLoadSidebar:

    def test_serializes_grouping(self):
        sidebar = load_sidebar(_FixedStore([_q(1, "Arrays", "Two Sum", "Easy")]))

        assert sidebar == {"Arrays": [{"id": 1, "title": "Two Sum", "difficulty": "Easy"}]}

    def test_store_outage_degrades_to_empty(self):
        assert load_sidebar(_DownStore()) == {}
