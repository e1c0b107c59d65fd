"""
Unit tests for the saved-query repository.
Covers validation, save, import reconciliation, duplication, sorting and deletion.
"""

import copy
import threading
import pytest
from datetime import datetime, timezone
from unittest.mock import Mock

from app.saved_queries.exceptions import DuplicateName, InvalidSavedQuery, NoValidEntries, NotFound
from app.saved_queries.repository import SavedQueryRepository, flatten_payload

EMP_CONFIG = {"selectedTable": "EMP", "selectedColumns": ["ENAME", "SAL"]}


def candidate(name, **extra):
    return {"name": name, "config": dict(EMP_CONFIG), **extra}


@pytest.fixture
def repository():
    """Repository without persistence"""
    return SavedQueryRepository()


class TestValidate:

    def test_valid_candidate(self):
        assert SavedQueryRepository.validate(candidate("Q")) is True

    def test_empty_column_list_is_valid(self):
        assert SavedQueryRepository.validate({"name": "Q", "config": {"selectedTable": "EMP", "selectedColumns": []}})

    @pytest.mark.parametrize(
        "value",
        [
            None,
            "not a query",
            {"config": EMP_CONFIG},
            {"name": "   ", "config": EMP_CONFIG},
            {"name": "Q"},
            {"name": "Q", "config": {"selectedColumns": ["ENAME"]}},
            {"name": "Q", "config": {"selectedTable": "", "selectedColumns": []}},
            {"name": "Q", "config": {"selectedTable": "EMP"}},
            {"name": "Q", "config": {"selectedTable": "EMP", "selectedColumns": "ENAME"}},
        ],
    )
    def test_invalid_candidates(self, value):
        assert SavedQueryRepository.validate(value) is False


class TestSave:

    def test_save_assigns_id_timestamp_and_version(self, repository):
        saved = repository.save(EMP_CONFIG, "High earners", "desc")
        assert saved.id.startswith("query_")
        assert saved.timestamp.tzinfo is not None
        assert saved.version == "1.0"
        assert repository.list() == [saved]

    def test_duplicate_name_is_rejected_ignoring_case(self, repository):
        repository.save(EMP_CONFIG, "High earners")
        before = repository.list()

        with pytest.raises(DuplicateName):
            repository.save(EMP_CONFIG, "HIGH EARNERS")

        assert repository.list() == before

    def test_save_appends(self, repository):
        first = repository.save(EMP_CONFIG, "A")
        second = repository.save(EMP_CONFIG, "B")
        assert [q.id for q in repository.list()] == [first.id, second.id]

    def test_invalid_config_is_rejected(self, repository):
        with pytest.raises(InvalidSavedQuery):
            repository.save({"selectedColumns": []}, "No table")
        assert repository.list() == []

    def test_failed_persistence_leaves_collection_unchanged(self):
        dao = Mock()
        dao.replace_all.side_effect = RuntimeError("disk full")
        repository = SavedQueryRepository(dao)

        with pytest.raises(RuntimeError):
            repository.save(EMP_CONFIG, "A")

        assert repository.list() == []

    def test_concurrent_saves_of_one_name_keep_a_single_entry(self, repository):
        errors = []

        def save():
            try:
                repository.save(EMP_CONFIG, "Race")
            except DuplicateName as e:
                errors.append(e)

        threads = [threading.Thread(target=save) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(repository.list()) == 1
        assert len(errors) == 7


class TestFlattenPayload:

    def test_list(self):
        assert flatten_payload([1, 2]) == [1, 2]

    def test_single_object(self):
        assert flatten_payload({"name": "Q"}) == [{"name": "Q"}]

    @pytest.mark.parametrize("key", ["queries", "savedQueries", "saved_queries", "items", "data"])
    def test_envelope_keys(self, key):
        assert flatten_payload({"version": "1.0", key: [{"name": "Q"}]}) == [{"name": "Q"}]

    def test_scalar(self):
        assert flatten_payload("nope") == []


class TestImportBatch:

    def test_import_backfills_missing_fields(self, repository):
        result = repository.import_batch([candidate("Imported")])

        assert result.imported == 1
        [query] = repository.list()
        assert query.id.startswith("query_")
        assert query.timestamp.tzinfo is not None
        assert query.version == "1.0"

    @pytest.mark.parametrize("legacy_id, expected", [(42, "42"), (7.5, "7.5")])
    def test_numeric_ids_are_kept_as_text(self, repository, legacy_id, expected):
        result = repository.import_batch([candidate("Legacy", id=legacy_id)])

        assert result.imported == 1
        assert repository.get(expected).name == "Legacy"

    def test_numeric_id_matches_its_text_form(self, repository):
        repository.import_batch([candidate("Legacy", id="42")])
        result = repository.import_batch([candidate("Renamed", id=42)])

        assert result.imported == 0
        assert [q.name for q in repository.list()] == ["Legacy"]

    def test_existing_ids_and_timestamps_are_kept(self, repository, saved_query_payload):
        repository.import_batch(saved_query_payload)

        query = repository.get("query_existing")
        assert query.timestamp == datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc)
        assert query.config.selected_columns == ["ENAME", "SAL"]

    def test_legacy_created_at(self, repository):
        repository.import_batch([candidate("Old", createdAt="2023-05-04T12:00:00Z")])
        assert repository.list()[0].timestamp == datetime(2023, 5, 4, 12, tzinfo=timezone.utc)

    def test_known_id_is_a_zero_import_success(self, repository, saved_query_payload):
        repository.import_batch([saved_query_payload])
        before = repository.list()

        renamed = {**saved_query_payload, "name": "Another name"}
        result = repository.import_batch([renamed])

        assert result.success is True
        assert result.imported == 0
        assert result.skipped == 1
        assert repository.list() == before

    def test_known_name_is_skipped_ignoring_case(self, repository):
        repository.save(EMP_CONFIG, "Monthly")
        result = repository.import_batch([candidate("MONTHLY"), candidate("Weekly")])
        assert result.imported == 1
        assert sorted(q.name for q in repository.list()) == ["Monthly", "Weekly"]

    def test_duplicates_within_the_batch(self, repository):
        result = repository.import_batch([candidate("Same", id="a"), candidate("same", id="b"), candidate("Other", id="a")])
        assert result.imported == 1
        assert [q.id for q in repository.list()] == ["a"]

    @pytest.mark.parametrize("payload", [[], {"queries": []}, [{"name": "No config"}], "garbage", None])
    def test_nothing_valid_fails(self, repository, payload):
        with pytest.raises(NoValidEntries):
            repository.import_batch(payload)
        assert repository.list() == []

    def test_invalid_entries_are_skipped(self, repository):
        result = repository.import_batch([candidate("Good"), {"name": "Bad"}])
        assert result.imported == 1
        assert result.skipped == 1

    def test_unparseable_timestamp_is_skipped(self, repository):
        with pytest.raises(NoValidEntries):
            repository.import_batch([candidate("Bad date", timestamp="not a date")])

    def test_collection_is_sorted_newest_first(self, repository):
        repository.import_batch([
            candidate("Old", timestamp="2020-01-01T00:00:00Z"),
            candidate("New", timestamp="2024-01-01T00:00:00Z"),
            candidate("Mid", timestamp="2022-01-01T00:00:00Z"),
        ])
        assert [q.name for q in repository.list()] == ["New", "Mid", "Old"]

    def test_export_then_import_round_trip(self, repository, saved_query_payload):
        repository.import_batch([saved_query_payload, candidate("Second", timestamp="2024-02-01T00:00:00Z")])
        document = repository.export().model_dump(mode="json", by_alias=True)

        fresh = SavedQueryRepository()
        result = fresh.import_batch(document)

        assert result.imported == 2
        assert fresh.list() == repository.list()


class TestDuplicate:

    def test_duplicate_creates_a_copy(self, repository):
        original = repository.save(EMP_CONFIG, "Report")
        snapshot = copy.deepcopy(original)

        clone = repository.duplicate(original.id)

        assert clone.id != original.id
        assert clone.name == "Report (Copy)"
        assert clone.config == original.config
        assert repository.get(original.id) == snapshot
        assert repository.list()[-1] == clone

    def test_second_copy_gets_a_number(self, repository):
        original = repository.save(EMP_CONFIG, "Report")
        repository.duplicate(original.id)
        assert repository.duplicate(original.id).name == "Report (Copy 2)"

    def test_unknown_id(self, repository):
        with pytest.raises(NotFound):
            repository.duplicate("missing")


class TestSortAndDelete:

    def test_sort_by_name_ignores_case(self, repository):
        for name in ["beta", "Alpha", "gamma", "Delta"]:
            repository.save(EMP_CONFIG, name)
        assert [q.name for q in repository.sort_by_name()] == ["Alpha", "beta", "Delta", "gamma"]

    def test_sort_by_name_places_accented_names_with_their_letter(self, repository):
        for name in ["Zeta", "Éclair", "apple", "eclair", "Österreich", "Oslo"]:
            repository.save(EMP_CONFIG, name)
        assert [q.name for q in repository.sort_by_name()] == [
            "apple", "eclair", "Éclair", "Oslo", "Österreich", "Zeta",
        ]

    def test_sort_by_date_newest_first(self, repository):
        repository.import_batch([
            candidate("A", timestamp="2021-01-01T00:00:00Z"),
            candidate("B", timestamp="2023-01-01T00:00:00Z"),
        ])
        repository.sort_by_name()
        assert [q.name for q in repository.sort_by_date()] == ["B", "A"]

    def test_sort_by_date_is_stable(self, repository):
        stamp = "2022-06-01T00:00:00Z"
        repository.import_batch([candidate(name, timestamp=stamp) for name in ["C", "A", "B"]])
        repository.sort_by_name()
        assert [q.name for q in repository.sort_by_date()] == ["A", "B", "C"]

    def test_delete(self, repository):
        keep = repository.save(EMP_CONFIG, "Keep")
        drop = repository.save(EMP_CONFIG, "Drop")
        repository.delete(drop.id)
        assert repository.list() == [keep]

    def test_delete_unknown_id(self, repository):
        repository.save(EMP_CONFIG, "Keep")
        with pytest.raises(NotFound):
            repository.delete("missing")
        assert len(repository.list()) == 1


class TestPersistence:

    def test_collection_survives_reload(self, saved_query_repository, config_session_factory):
        first = saved_query_repository.save(EMP_CONFIG, "First")
        second = saved_query_repository.save(EMP_CONFIG, "Second")
        saved_query_repository.sort_by_name()

        from app.saved_queries.dao import SavedQueryDAO
        reloaded = SavedQueryRepository(SavedQueryDAO(config_session_factory))
        reloaded.load()

        assert [q.id for q in reloaded.list()] == [first.id, second.id]
        assert reloaded.get(first.id).timestamp == first.timestamp
        assert reloaded.get(first.id).config == first.config
