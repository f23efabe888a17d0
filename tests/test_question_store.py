"""
Unit tests for the question record store
"""
import pytest

from domain.errors import NotFound, ValidationError
from domain.models import Question
from domain.schemas import ImportPayload, QuestionCreate, QuestionUpdate, parse_input
from domain.services import QuestionStore


def _create(store, **overrides):
    fields = {"chapter": "Arrays", "title": "Two Sum", "code": "int main() {}", "language": "cpp"}
    fields.update(overrides)
    return store.add(parse_input(QuestionCreate, fields))


class TestAdd:

    def test_add_defaults_difficulty_to_medium(self, db_session):
        store = QuestionStore(db_session)
        qid = _create(store)

        stored = store.get(qid)
        assert stored.difficulty == "Medium"
        assert stored.chapter == "Arrays"
        assert stored.title == "Two Sum"
        assert stored.language == "cpp"
        assert stored.output == ""
        assert stored.explanation == ""
        assert stored.tags == []
        assert stored.created_at is not None

    def test_blank_difficulty_from_form_defaults_to_medium(self, db_session):
        store = QuestionStore(db_session)
        qid = _create(store, difficulty="")

        assert store.get(qid).difficulty == "Medium"

    def test_add_keeps_explicit_values(self, db_session):
        store = QuestionStore(db_session)
        qid = _create(
            store,
            difficulty="Hard",
            language="python",
            output="[0, 1]",
            explanation="hash map",
            tags="hashing, arrays, hashing",
        )

        stored = store.get(qid)
        assert stored.difficulty == "Hard"
        assert stored.language == "python"
        assert stored.output == "[0, 1]"
        assert stored.explanation == "hash map"
        assert stored.tags == ["hashing", "arrays"]

    def test_add_then_get_returns_what_was_submitted(self, db_session):
        store = QuestionStore(db_session)
        submitted = {
            "chapter": "Arrays",
            "title": "Two Sum",
            "code": "int main() {  \r\n  return 0;   \r\n}\r\n\r\n",
            "output": "0  \n",
            "difficulty": "Easy",
            "language": "java",
            "explanation": "  indented\n",
            "tags": ["hashing"],
            "file_name": "two_sum.java",
        }
        qid = store.add(parse_input(QuestionCreate, submitted))

        stored = store.get(qid).to_dict()
        for key, value in submitted.items():
            assert stored[key] == value, key
        assert stored["id"] == qid

    def test_edit_stores_code_verbatim(self, db_session):
        store = QuestionStore(db_session)
        qid = _create(store)

        store.edit(qid, parse_input(QuestionUpdate, {"code": "x = 1   \n\n\n"}))

        assert store.get(qid).code == "x = 1   \n\n\n"

    @pytest.mark.parametrize("missing", ["chapter", "title", "code"])
    def test_missing_required_field_is_rejected(self, missing):
        fields = {"chapter": "Arrays", "title": "Two Sum", "code": "x"}
        fields[missing] = "   "

        with pytest.raises(ValidationError):
            parse_input(QuestionCreate, fields)

    def test_unknown_difficulty_is_rejected(self):
        with pytest.raises(ValidationError) as exc:
            parse_input(QuestionCreate, {"chapter": "A", "title": "B", "code": "c", "difficulty": "Insane"})
        assert "difficulty" in exc.value.message


class TestEdit:

    def test_edit_overwrites_only_given_fields(self, db_session):
        store = QuestionStore(db_session)
        qid = _create(store, output="[0, 1]")

        store.edit(qid, parse_input(QuestionUpdate, {"title": "Two Sum II", "difficulty": "Easy"}))

        stored = store.get(qid)
        assert stored.title == "Two Sum II"
        assert stored.difficulty == "Easy"
        assert stored.chapter == "Arrays"
        assert stored.output == "[0, 1]"

    def test_edit_missing_id_raises_not_found_without_changes(self, db_session):
        store = QuestionStore(db_session)
        qid = _create(store)

        with pytest.raises(NotFound):
            store.edit(qid + 100, parse_input(QuestionUpdate, {"title": "Other"}))

        assert store.get(qid).title == "Two Sum"
        assert store.count() == 1

    def test_edit_cannot_blank_required_field(self):
        with pytest.raises(ValidationError):
            parse_input(QuestionUpdate, {"title": ""})


class TestDelete:

    def test_delete_twice_reports_not_found(self, db_session):
        store = QuestionStore(db_session)
        qid = _create(store)

        store.delete(qid)
        with pytest.raises(NotFound):
            store.delete(qid)
        assert store.count() == 0

    def test_delete_selected_counts_only_existing(self, db_session):
        store = QuestionStore(db_session)
        a = _create(store, title="A")
        b = _create(store, title="B")
        c = _create(store, title="C")
        store.delete(b)
        store.delete(c)

        removed = store.delete_selected([a, b, c])

        assert removed == 1
        assert store.count() == 0

    def test_delete_selected_empty_is_noop(self, db_session):
        store = QuestionStore(db_session)
        _create(store)

        assert store.delete_selected([]) == 0
        assert store.count() == 1

    def test_delete_all(self, db_session):
        store = QuestionStore(db_session)
        for title in ("A", "B", "C"):
            _create(store, title=title)

        assert store.delete_all() == 3
        assert db_session.query(Question).count() == 0


class TestReads:

    def test_list_ordered_by_chapter_then_title(self, db_session):
        store = QuestionStore(db_session)
        _create(store, chapter="Strings", title="Anagram")
        _create(store, chapter="Arrays", title="Two Sum")
        _create(store, chapter="Arrays", title="Kadane")

        ordered = [(q.chapter, q.title) for q in store.list_ordered()]

        assert ordered == [("Arrays", "Kadane"), ("Arrays", "Two Sum"), ("Strings", "Anagram")]

    def test_search_first_is_case_insensitive_substring(self, db_session):
        store = QuestionStore(db_session)
        _create(store, chapter="Strings", title="Two Pointers Palindrome")
        qid = _create(store, chapter="Arrays", title="Two Sum")

        assert store.search_first("two").id == qid
        assert store.search_first("PALIN").chapter == "Strings"
        assert store.search_first("graph") is None
        assert store.search_first("   ") is None

    def test_search_treats_wildcards_literally(self, db_session):
        store = QuestionStore(db_session)
        _create(store, title="Two Sum")

        assert store.search_first("%") is None
        assert store.search_first("_") is None


class TestImport:

    def test_import_skips_existing_chapter_title_pairs(self, db_session):
        store = QuestionStore(db_session)
        _create(store, chapter="Arrays", title="Two Sum")
        payload = parse_input(ImportPayload, {
            "Arrays": [
                {"name": "Two Sum", "code": "dup"},
                {"name": "Kadane", "code": "k", "output": "6"},
                {"name": "Kadane", "code": "k again"},
            ],
            "Strings": [
                {"title": "Two Sum", "code": "same title, other chapter", "language": "java"},
            ],
        })

        created = store.import_chapters(payload.root)

        assert created == 2
        assert store.count() == 3
        kadane = db_session.query(Question).filter(Question.title == "Kadane").one()
        assert kadane.output == "6"
        assert kadane.difficulty == "Medium"
        strings = db_session.query(Question).filter(Question.chapter == "Strings").one()
        assert strings.language == "java"

    def test_import_rejects_malformed_payload(self):
        with pytest.raises(ValidationError):
            parse_input(ImportPayload, {"Arrays": [{"name": "No code"}]})

    def test_import_items_share_the_form_defaults(self):
        payload = parse_input(ImportPayload, {
            "Graphs": [{
                "name": "  BFS  ",
                "code": "queue<int> q;\n",
                "difficulty": "",
                "language": None,
                "output": None,
                "tags": "graphs, bfs",
            }],
        })

        item = payload.root["Graphs"][0]
        assert item.title == "BFS"
        assert item.code == "queue<int> q;\n"
        assert item.difficulty.value == "Medium"
        assert item.language.value == "cpp"
        assert item.output == ""
        assert item.tags == ["graphs", "bfs"]

    def test_import_rejects_whitespace_only_code(self):
        with pytest.raises(ValidationError):
            parse_input(ImportPayload, {"Arrays": [{"name": "Blank", "code": "   "}]})
