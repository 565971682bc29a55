"""Tests for the bulk translation processor."""

from __future__ import annotations

import pytest

from bulk_translator.errors import ErrorCategory, PersistError
from bulk_translator.processor import TranslationProcessor, selection_order_key
from bulk_translator.selection import build_selection
from bulk_translator.structures import Outcome, OutcomeTally
from tests.conftest import make_entity


def _process(entities, from_language="en", to_language="fr", force=False, **kwargs):
    processor = TranslationProcessor(**kwargs)
    return processor, processor.process_batch(
        build_selection(entities), from_language, to_language, force
    )


class TestScenarios:
    def test_mixed_batch_without_force(self, scenario):
        _, tally = _process(scenario.values(), force=False)
        assert tally[Outcome.CREATED] == 1
        assert tally[Outcome.ALREADY_EXISTS] == 1
        assert tally[Outcome.SOURCE_MISSING] == 1
        assert tally[Outcome.FAILED] == 0
        assert tally.entity_outcomes == {
            1: Outcome.ALREADY_EXISTS,
            2: Outcome.CREATED,
            3: Outcome.SOURCE_MISSING,
        }

    def test_mixed_batch_with_force(self, scenario):
        _, tally = _process(scenario.values(), force=True)
        assert tally.created == 2
        assert tally.already_exists == 0
        assert tally.source_missing == 1
        assert tally.entity_outcomes[1] == Outcome.CREATED
        assert tally.entity_outcomes[2] == Outcome.CREATED

    @pytest.mark.parametrize("force", [False, True])
    def test_counts_sum_to_batch_size(self, scenario, force):
        _, tally = _process(scenario.values(), force=force)
        assert sum(tally.values()) == len(scenario)
        assert tally.total == 3

    def test_empty_selection_is_zero_tally(self):
        _, tally = _process([])
        assert tally.as_dict() == {
            "created": 0,
            "already_exists": 0,
            "source_missing": 0,
            "failed": 0,
        }


class TestSourceMissing:
    def test_entity_is_not_touched(self, storage):
        entity = make_entity(3, {"fr": {"title": "Troisième"}}, storage=storage)
        _, tally = _process([entity])

        assert tally.entity_outcomes[3] == Outcome.SOURCE_MISSING
        assert storage.operations == []
        assert entity.languages == ["fr"]
        assert dict(entity.get_translation("fr")) == {"title": "Troisième"}


class TestAlreadyExists:
    def test_existing_target_is_unchanged(self, storage):
        entity = make_entity(
            1,
            {"en": {"title": "Hello"}, "fr": {"title": "Bonjour", "n": [1, 2]}},
            storage=storage,
        )
        _, tally = _process([entity], force=False)

        assert tally.already_exists == 1
        assert storage.operations == []
        assert dict(entity.get_translation("fr")) == {"title": "Bonjour", "n": [1, 2]}


class TestCreated:
    def test_new_target_copies_source_snapshot(self, storage):
        entity = make_entity(2, {"en": {"title": "Second", "tags": ["a"]}}, storage=storage)
        _, tally = _process([entity])

        assert tally.created == 1
        assert dict(entity.get_translation("fr")) == {"title": "Second", "tags": ["a"]}
        assert storage.ops_for(2) == [("write", 2, ("en", "fr"))]

    def test_copy_is_independent_of_source(self):
        entity = make_entity(2, {"en": {"title": "Second", "tags": ["a"]}})
        _process([entity])

        entity._translations["en"]["tags"].append("b")
        assert list(entity.get_translation("fr")["tags"]) == ["a"]

    def test_field_order_is_preserved(self):
        entity = make_entity(5, {"en": {"z": 1, "a": 2, "m": 3}})
        _process([entity])
        assert list(entity.get_translation("fr")) == ["z", "a", "m"]

    def test_forced_overwrite_removes_then_writes(self, storage):
        entity = make_entity(
            1,
            {"en": {"title": "Hello"}, "fr": {"title": "Bonjour", "extra": True}},
            storage=storage,
        )
        _, tally = _process([entity], force=True)

        assert tally.created == 1
        assert storage.ops_for(1) == [("delete", 1, "fr"), ("write", 1, ("en", "fr"))]
        assert dict(entity.get_translation("fr")) == {"title": "Hello"}

    def test_language_match_is_case_sensitive(self):
        entity = make_entity(1, {"EN": {"title": "Hello"}})
        _, tally = _process([entity], from_language="en", to_language="fr")
        assert tally.source_missing == 1


class TestIdempotence:
    def test_forced_rerun_creates_again(self, scenario):
        processor = TranslationProcessor()
        selection = build_selection(scenario.values())

        first = processor.process_batch(selection, "en", "fr", True)
        second = processor.process_batch(selection, "en", "fr", True)

        assert first.created == 2
        assert second.created == 2
        assert second.source_missing == 1

    def test_unforced_rerun_reports_existing(self, scenario):
        processor = TranslationProcessor()
        selection = build_selection(scenario.values())

        first = processor.process_batch(selection, "en", "fr", False)
        second = processor.process_batch(selection, "en", "fr", False)

        assert first.created == 1
        assert second.created == 0
        assert second.already_exists == 2
        assert second.entity_outcomes[2] == Outcome.ALREADY_EXISTS


class TestPersistFailures:
    def test_failed_save_is_counted_and_batch_continues(self, storage):
        entities = [
            make_entity(1, {"en": {"title": "a"}}, storage=storage),
            make_entity(2, {"en": {"title": "b"}}, storage=storage),
            make_entity(3, {"en": {"title": "c"}}, storage=storage),
        ]
        storage.fail_writes.add(2)

        processor, tally = _process(entities)

        assert tally.created == 2
        assert tally.failed == 1
        assert tally.entity_outcomes[2] == Outcome.FAILED
        assert tally.total == 3
        assert len(tally.failures) == 1
        assert processor.error_policy.records[0].category == ErrorCategory.PERSIST
        assert processor.error_policy.records[0].entity_id == 2

    def test_forced_overwrite_failure_loses_target_by_default(self, storage):
        entity = make_entity(
            1, {"en": {"title": "Hello"}, "fr": {"title": "Bonjour"}}, storage=storage
        )
        storage.fail_writes.add(1)

        _, tally = _process([entity], force=True)

        assert tally.failed == 1
        # The removal was persisted and is not rolled back.
        assert storage.ops_for(1) == [("delete", 1, "fr")]
        assert not entity.has_translation("fr")

    def test_forced_overwrite_failure_restores_when_enabled(self, storage):
        entity = make_entity(
            1, {"en": {"title": "Hello"}, "fr": {"title": "Bonjour"}}, storage=storage
        )
        storage.fail_writes.add(1)

        processor, tally = _process([entity], force=True, restore_on_failure=True)

        assert tally.failed == 1
        assert not entity.has_translation("fr")
        categories = [record.category for record in processor.error_policy.records]
        # The restore save goes through the same failing storage.
        assert categories == [ErrorCategory.PERSIST, ErrorCategory.RESTORE]

    def test_restore_succeeds_when_storage_recovers(self, storage):
        entity = make_entity(
            1, {"en": {"title": "Hello"}, "fr": {"title": "Bonjour"}}, storage=storage
        )
        calls = {"n": 0}
        original = storage.write_entity

        def flaky_write(target):
            calls["n"] += 1
            if calls["n"] == 1:
                raise PersistError("transient")
            original(target)

        storage.write_entity = flaky_write

        processor, tally = _process([entity], force=True, restore_on_failure=True)

        assert tally.failed == 1
        assert dict(entity.get_translation("fr")) == {"title": "Bonjour"}
        assert [r.category for r in processor.error_policy.records] == [ErrorCategory.PERSIST]

    def test_failed_removal_is_counted(self, storage):
        entity = make_entity(
            1, {"en": {"title": "Hello"}, "fr": {"title": "Bonjour"}}, storage=storage
        )
        storage.fail_deletes.add(1)

        processor, tally = _process([entity], force=True)

        assert tally.failed == 1
        assert dict(entity.get_translation("fr")) == {"title": "Bonjour"}
        assert processor.error_policy.records[0].category == ErrorCategory.REMOVAL

    def test_unsaved_target_is_dropped_after_failed_save(self, storage):
        entity = make_entity(1, {"en": {"title": "Hello"}}, storage=storage)
        storage.fail_writes.add(1)

        _, first = _process([entity])

        assert first.failed == 1
        assert entity.languages == ["en"]
        assert storage.operations == []

    def test_rerun_after_failed_save_creates(self, storage):
        entity = make_entity(1, {"en": {"title": "Hello"}}, storage=storage)
        processor = TranslationProcessor()
        selection = build_selection([entity])

        storage.fail_writes.add(1)
        first = processor.process_batch(selection, "en", "fr", False)
        storage.fail_writes.clear()
        second = processor.process_batch(selection, "en", "fr", False)

        assert first.failed == 1
        assert second.created == 1
        assert second.already_exists == 0
        assert storage.ops_for(1) == [("write", 1, ("en", "fr"))]

    def test_errors_are_scoped_to_one_batch(self, storage):
        entity = make_entity(1, {"en": {"title": "Hello"}}, storage=storage)
        processor = TranslationProcessor()
        selection = build_selection([entity])

        storage.fail_writes.add(1)
        first = processor.process_batch(selection, "en", "fr", False)
        assert len(processor.error_messages) == 1

        storage.fail_writes.clear()
        second = processor.process_batch(selection, "en", "fr", False)

        assert first.failures and not second.failures
        assert processor.error_messages == []


class TestOrdering:
    def test_entities_are_saved_in_ascending_id_order(self, storage):
        entities = [
            make_entity(10, {"en": {"t": 1}}, storage=storage),
            make_entity(2, {"en": {"t": 1}}, storage=storage),
            make_entity(7, {"en": {"t": 1}}, storage=storage),
        ]
        _process(entities)
        assert [op[1] for op in storage.operations] == [2, 7, 10]

    def test_order_key_handles_mixed_ids(self):
        ids = ["b", 3, "12", "a", 1, "²"]
        assert sorted(ids, key=selection_order_key) == [1, 3, "12", "a", "b", "²"]

    def test_superscript_digit_id_sorts_as_text(self, storage):
        entities = [
            make_entity("²", {"en": {"t": 1}}, storage=storage),
            make_entity("1", {"en": {"t": 1}}, storage=storage),
        ]
        _, tally = _process(entities)
        assert tally.created == 2
        assert [op[1] for op in storage.operations] == ["1", "²"]


class TestOutcomeTally:
    def test_starts_at_zero_for_every_outcome(self):
        tally = OutcomeTally()
        assert all(tally[outcome] == 0 for outcome in Outcome)
        assert tally.total == 0

    def test_record_tracks_entity(self):
        tally = OutcomeTally()
        tally.record("x", Outcome.CREATED)
        assert tally.created == 1
        assert tally.entity_outcomes == {"x": Outcome.CREATED}
