"""Core data structures for the bulk translator."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import (
    Any,
    Dict,
    Hashable,
    Iterator,
    List,
    Mapping,
    Protocol,
    runtime_checkable,
)


FieldSnapshot = Mapping[str, Any]
LanguageCode = str


class Outcome(str, Enum):
    """Result of processing one entity."""

    CREATED = "created"
    ALREADY_EXISTS = "already_exists"
    SOURCE_MISSING = "source_missing"
    FAILED = "failed"


@runtime_checkable
class Translation(Protocol):
    """A single language revision that can be persisted."""

    language: LanguageCode

    def save(self) -> None:
        ...


@runtime_checkable
class TranslatableEntity(Protocol):
    """Capabilities the processor needs from a content entity."""

    @property
    def id(self) -> Hashable:
        ...

    def has_translation(self, language: LanguageCode) -> bool:
        ...

    def get_translation(self, language: LanguageCode) -> FieldSnapshot:
        ...

    def add_translation(
        self, language: LanguageCode, snapshot: FieldSnapshot
    ) -> Translation:
        ...

    def remove_translation(self, language: LanguageCode) -> None:
        ...

    def discard_translation(self, language: LanguageCode) -> None:
        ...

    def save(self) -> None:
        ...


BatchSelection = Mapping[Hashable, TranslatableEntity]


@dataclass
class OutcomeTally:
    """Counts of outcomes for one batch, every kind starting at zero."""

    counts: Dict[Outcome, int] = field(
        default_factory=lambda: {outcome: 0 for outcome in Outcome}
    )
    entity_outcomes: Dict[Hashable, Outcome] = field(default_factory=dict)
    failures: List[str] = field(default_factory=list)

    def record(self, entity_id: Hashable, outcome: Outcome) -> None:
        self.counts[outcome] += 1
        self.entity_outcomes[entity_id] = outcome

    def __getitem__(self, outcome: Outcome) -> int:
        return self.counts[outcome]

    def __iter__(self) -> Iterator[Outcome]:
        return iter(self.counts)

    def values(self) -> List[int]:
        return list(self.counts.values())

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    @property
    def created(self) -> int:
        return self.counts[Outcome.CREATED]

    @property
    def already_exists(self) -> int:
        return self.counts[Outcome.ALREADY_EXISTS]

    @property
    def source_missing(self) -> int:
        return self.counts[Outcome.SOURCE_MISSING]

    @property
    def failed(self) -> int:
        return self.counts[Outcome.FAILED]

    def as_dict(self) -> Dict[str, int]:
        return {outcome.value: count for outcome, count in self.counts.items()}
