"""
Tests for the SQLite document store: references, batches, sentinels and
serialisation.
"""
from datetime import date, datetime, timezone

import pytest

from factories import make_bank, make_brief

from career_path.database import SERVER_TIMESTAMP, ArrayUnion, DocumentStore, to_document
from career_path.models import CourseDifficulty, PhaseStatus


class TestDocumentReference:
    def test_set_and_get(self, store):
        ref = store.collection("careerPaths").doc("career-1")
        ref.set({"title": "Data Analyst", "course_ids": ["a", "b"]})
        assert ref.get() == {"title": "Data Analyst", "course_ids": ["a", "b"]}

    def test_get_missing_returns_none(self, store):
        assert store.collection("careerPaths").doc("nope").get() is None

    def test_set_replaces_without_merge(self, store):
        ref = store.collection("c").doc("d")
        ref.set({"a": 1, "b": 2})
        ref.set({"a": 3})
        assert ref.get() == {"a": 3}

    def test_merge_keeps_other_fields(self, store):
        ref = store.collection("c").doc("d")
        ref.set({"a": 1, "nested": {"x": 1, "y": 2}})
        ref.set({"b": 2, "nested": {"y": 9}}, merge=True)
        assert ref.get() == {"a": 1, "b": 2, "nested": {"x": 1, "y": 9}}

    def test_delete(self, store):
        ref = store.collection("c").doc("d")
        ref.set({"a": 1})
        ref.delete()
        assert ref.get() is None

    def test_path(self, store):
        assert store.collection("careerCourses").doc("x").path == "careerCourses/x"

    def test_collection_list_and_count(self, store):
        col = store.collection("banks")
        col.doc("b").set({"n": 2})
        col.doc("a").set({"n": 1})
        store.collection("other").doc("z").set({"n": 0})
        assert col.list() == [{"n": 1}, {"n": 2}]
        assert col.count() == 2

    def test_data_survives_new_store_instance(self, tmp_path):
        path = tmp_path / "persist.db"
        DocumentStore(path).collection("c").doc("d").set({"v": 1})
        assert DocumentStore(path).collection("c").doc("d").get() == {"v": 1}


class TestSentinels:
    def test_server_timestamp_resolved(self, store):
        ref = store.collection("c").doc("d")
        ref.set({"created_at": SERVER_TIMESTAMP})
        stamp = ref.get()["created_at"]
        assert datetime.fromisoformat(stamp).tzinfo is not None

    def test_array_union_on_new_document(self, store):
        ref = store.collection("profiles").doc("u1")
        ref.set({"saved": ArrayUnion(["a", "a", "b"])}, merge=True)
        assert ref.get()["saved"] == ["a", "b"]

    def test_array_union_appends_without_duplicates(self, store):
        ref = store.collection("profiles").doc("u1")
        ref.set({"saved": ["a"], "name": "x"})
        ref.set({"saved": ArrayUnion(["a", "c"])}, merge=True)
        assert ref.get() == {"saved": ["a", "c"], "name": "x"}


class TestWriteBatch:
    def test_commit_writes_everything(self, store):
        batch = store.batch()
        for i in range(3):
            batch.set(store.collection("careerCourses").doc(f"c{i}"), {"order": i + 1})
        assert len(batch) == 3
        assert batch.commit() == 3
        assert store.collection("careerCourses").count() == 3

    def test_nothing_visible_before_commit(self, store):
        batch = store.batch()
        batch.set(store.collection("c").doc("d"), {"a": 1})
        assert store.collection("c").doc("d").get() is None
        batch.commit()
        assert store.collection("c").doc("d").get() == {"a": 1}

    def test_failed_commit_rolls_back_all_writes(self, store):
        batch = store.batch()
        batch.set(store.collection("c").doc("good"), {"a": 1})
        batch.set(store.collection("c").doc("bad"), {"a": object()})
        with pytest.raises(TypeError):
            batch.commit()
        assert store.collection("c").count() == 0

    def test_commit_twice_raises(self, store):
        batch = store.batch()
        batch.set(store.collection("c").doc("d"), {"a": 1})
        batch.commit()
        with pytest.raises(RuntimeError):
            batch.commit()

    def test_set_after_commit_raises(self, store):
        batch = store.batch()
        batch.commit()
        with pytest.raises(RuntimeError):
            batch.set(store.collection("c").doc("d"), {})

    def test_merge_inside_batch_sees_earlier_write(self, store):
        ref = store.collection("profiles").doc("u1")
        batch = store.batch()
        batch.set(ref, {"saved": ["a"]})
        batch.set(ref, {"saved": ArrayUnion(["b"]), "active": "b"}, merge=True)
        batch.commit()
        assert ref.get() == {"saved": ["a", "b"], "active": "b"}


class TestToDocument:
    def test_pydantic_model(self):
        doc = to_document(make_brief())
        assert doc["career_title"] == "Data Analyst"
        assert doc["skill_domains"][0]["category"] == "foundation"

    def test_dataclass_with_nested_models(self):
        doc = to_document(make_bank())
        assert doc["skill_name"] == "SQL Querying"
        assert doc["questions"][0]["difficulty"] == "easy"
        assert len(doc["questions"][0]["options"]) == 4

    def test_enums_and_dates(self):
        doc = to_document({
            "d": CourseDifficulty.ADVANCED,
            "s": PhaseStatus.LOCKED,
            "when": date(2025, 1, 2),
            "at": datetime(2025, 1, 2, 3, 4, tzinfo=timezone.utc),
        })
        assert doc == {
            "d": "advanced",
            "s": "locked",
            "when": "2025-01-02",
            "at": "2025-01-02T03:04:00+00:00",
        }

    def test_unsupported_type_raises(self):
        with pytest.raises(TypeError):
            to_document(object())
