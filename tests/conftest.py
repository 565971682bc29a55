"""Shared test fixtures for bulk_translator tests."""

from __future__ import annotations

from typing import Any, Hashable, List, Mapping, Set, Tuple

import pytest

from bulk_translator.entities import ContentEntity, EntityStorage
from bulk_translator.errors import PersistError


class RecordingStorage(EntityStorage):
    """Storage fake that records every write and can be told to fail."""

    def __init__(self) -> None:
        self.operations: List[Tuple[str, Hashable, Any]] = []
        self.fail_writes: Set[Hashable] = set()
        self.fail_deletes: Set[Hashable] = set()

    def write_entity(self, entity: ContentEntity) -> None:
        if entity.id in self.fail_writes:
            raise PersistError(f"write rejected for {entity.id!r}")
        self.operations.append(("write", entity.id, tuple(entity.languages)))

    def delete_translation(self, entity: ContentEntity, language: str) -> None:
        if entity.id in self.fail_deletes:
            raise PersistError(f"delete rejected for {entity.id!r}")
        self.operations.append(("delete", entity.id, language))

    def ops_for(self, entity_id: Hashable) -> List[Tuple[str, Hashable, Any]]:
        return [op for op in self.operations if op[1] == entity_id]


def make_entity(
    entity_id: Hashable,
    translations: Mapping[str, Mapping[str, Any]] | None = None,
    *,
    storage: EntityStorage | None = None,
    label: str | None = None,
) -> ContentEntity:
    """Create a ContentEntity with the given language revisions."""
    return ContentEntity(
        entity_id,
        label=label,
        translations=translations or {},
        storage=storage,
    )


@pytest.fixture
def storage() -> RecordingStorage:
    return RecordingStorage()


@pytest.fixture
def scenario(storage: RecordingStorage) -> dict[int, ContentEntity]:
    """E1 has en+fr, E2 has en only, E3 has fr only."""
    return {
        1: make_entity(
            1,
            {
                "en": {"title": "Hello", "body": "English body"},
                "fr": {"title": "Bonjour", "body": "Corps"},
            },
            storage=storage,
        ),
        2: make_entity(
            2,
            {"en": {"title": "Second", "tags": ["a", "b"]}},
            storage=storage,
        ),
        3: make_entity(3, {"fr": {"title": "Troisième"}}, storage=storage),
    }
