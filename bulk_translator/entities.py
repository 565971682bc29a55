"""Content entities and the JSON-backed content store."""

from __future__ import annotations

import copy
import json
import pathlib
from abc import ABC, abstractmethod
from types import MappingProxyType
from typing import Any, Dict, Hashable, List, Mapping, Optional

from .errors import ContentStoreError, PersistError, TranslationExistsError
from .logging_config import get_logger
from .structures import FieldSnapshot, LanguageCode

logger = get_logger(__name__)


class EntityStorage(ABC):
    """Persistence backend that entities write through."""

    @abstractmethod
    def write_entity(self, entity: "ContentEntity") -> None:
        """Persist every revision of the entity."""

    @abstractmethod
    def delete_translation(self, entity: "ContentEntity", language: LanguageCode) -> None:
        """Persist the removal of one language revision."""


class EntityTranslation:
    """One language revision of a content entity."""

    def __init__(self, entity: "ContentEntity", language: LanguageCode) -> None:
        self.entity = entity
        self.language = language

    @property
    def fields(self) -> FieldSnapshot:
        return self.entity.get_translation(self.language)

    def save(self) -> None:
        self.entity.save()

    def __repr__(self) -> str:
        return f"EntityTranslation(entity={self.entity.id!r}, language={self.language!r})"


class ContentEntity:
    """A content item holding one field mapping per language."""

    def __init__(
        self,
        entity_id: Hashable,
        *,
        label: str | None = None,
        translations: Mapping[LanguageCode, Mapping[str, Any]] | None = None,
        storage: EntityStorage | None = None,
    ) -> None:
        self._id = entity_id
        self.label = label if label is not None else str(entity_id)
        self._translations: Dict[LanguageCode, Dict[str, Any]] = {
            language: copy.deepcopy(dict(fields))
            for language, fields in (translations or {}).items()
        }
        self.storage = storage

    @property
    def id(self) -> Hashable:
        return self._id

    @property
    def languages(self) -> List[LanguageCode]:
        return list(self._translations)

    def has_translation(self, language: LanguageCode) -> bool:
        return language in self._translations

    def get_translation(self, language: LanguageCode) -> FieldSnapshot:
        """Return a read-only copy of the fields stored for ``language``."""

        try:
            fields = self._translations[language]
        except KeyError:
            raise KeyError(
                f"Entity {self._id!r} has no '{language}' translation."
            ) from None
        return MappingProxyType(copy.deepcopy(fields))

    def add_translation(
        self, language: LanguageCode, snapshot: FieldSnapshot
    ) -> EntityTranslation:
        if language in self._translations:
            raise TranslationExistsError(
                f"Entity {self._id!r} already has a '{language}' translation."
            )
        self._translations[language] = copy.deepcopy(dict(snapshot))
        return EntityTranslation(self, language)

    def remove_translation(self, language: LanguageCode) -> None:
        if language not in self._translations:
            return
        if self.storage is not None:
            self.storage.delete_translation(self, language)
        del self._translations[language]

    def discard_translation(self, language: LanguageCode) -> None:
        """Drop an unsaved revision from memory without writing to storage."""

        self._translations.pop(language, None)

    def save(self) -> None:
        if self.storage is not None:
            self.storage.write_entity(self)

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self._id,
            "label": self.label,
            "translations": copy.deepcopy(self._translations),
        }

    def __repr__(self) -> str:
        return f"ContentEntity(id={self._id!r}, languages={self.languages!r})"


class ContentStore(EntityStorage):
    """Stores entities in a single JSON document.

    The document is shaped as ``{"entities": [{"id", "label",
    "translations": {lang: {field: value}}}]}``. Every write rewrites the
    whole file.
    """

    def __init__(self, path: pathlib.Path) -> None:
        self.path = path

    def load(self) -> List[ContentEntity]:
        document = self._read()
        entities: List[ContentEntity] = []
        for index, record in enumerate(document["entities"]):
            if not isinstance(record, dict) or "id" not in record:
                raise ContentStoreError(
                    f"Entity #{index} in {self.path} has no id."
                )
            translations = record.get("translations") or {}
            if not isinstance(translations, dict):
                raise ContentStoreError(
                    f"Entity {record['id']!r} in {self.path} has malformed translations."
                )
            entities.append(
                ContentEntity(
                    record["id"],
                    label=record.get("label"),
                    translations=translations,
                    storage=self,
                )
            )
        logger.debug("Loaded %d entities from %s", len(entities), self.path)
        return entities

    def write_entity(self, entity: ContentEntity) -> None:
        document = self._read_for_write()
        record = entity.to_record()
        existing = self._find(document, entity.id)
        if existing is None:
            document["entities"].append(record)
        else:
            existing["translations"] = record["translations"]
            existing["label"] = record["label"]
        self._write(document)

    def delete_translation(self, entity: ContentEntity, language: LanguageCode) -> None:
        document = self._read_for_write()
        existing = self._find(document, entity.id)
        if existing is None:
            return
        translations = existing.get("translations") or {}
        translations.pop(language, None)
        existing["translations"] = translations
        self._write(document)

    def _find(self, document: Dict[str, Any], entity_id: Hashable) -> Optional[Dict[str, Any]]:
        for record in document["entities"]:
            if isinstance(record, dict) and record.get("id") == entity_id:
                return record
        return None

    def _read(self) -> Dict[str, Any]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise ContentStoreError(f"Content store not found: {self.path}") from exc
        except OSError as exc:
            raise ContentStoreError(
                f"Content store could not be read: {exc}"
            ) from exc
        try:
            document = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ContentStoreError(
                f"Content store {self.path} is not valid JSON: {exc}"
            ) from exc
        if not isinstance(document, dict) or not isinstance(
            document.get("entities"), list
        ):
            raise ContentStoreError(
                f"Content store {self.path} must contain an 'entities' list."
            )
        return document

    def _read_for_write(self) -> Dict[str, Any]:
        try:
            return self._read()
        except ContentStoreError as exc:
            raise PersistError(str(exc)) from exc

    def _write(self, document: Dict[str, Any]) -> None:
        try:
            self.path.write_text(
                json.dumps(document, ensure_ascii=False, indent=2),
                encoding="utf-8",
            )
        except (OSError, TypeError, ValueError) as exc:
            raise PersistError(
                f"Content store {self.path} could not be written: {exc}"
            ) from exc
