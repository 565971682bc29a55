"""Bulk creation of translations for a batch of selected entities."""

from __future__ import annotations

from typing import Hashable, List, Tuple

from .errors import ErrorCategory, PersistError
from .logging_config import get_logger
from .policy import ErrorPolicy
from .structures import (
    BatchSelection,
    FieldSnapshot,
    LanguageCode,
    Outcome,
    OutcomeTally,
    TranslatableEntity,
)

logger = get_logger(__name__)


def selection_order_key(entity_id: Hashable) -> Tuple[int, object]:
    """Sort numeric ids numerically ahead of string ids sorted lexically."""

    if isinstance(entity_id, bool):
        return (1, str(entity_id))
    if isinstance(entity_id, int):
        return (0, entity_id)
    text = str(entity_id)
    if text.isdecimal():
        return (0, int(text))
    return (1, text)


class TranslationProcessor:
    """Copies a source-language revision into a target-language revision.

    Callers must have rejected ``from_language == to_language`` beforehand,
    see :func:`bulk_translator.validation.validate_language_choice`.
    """

    def __init__(self, *, restore_on_failure: bool = False) -> None:
        self.restore_on_failure = restore_on_failure
        self.error_policy = ErrorPolicy()

    def process_batch(
        self,
        selection: BatchSelection,
        from_language: LanguageCode,
        to_language: LanguageCode,
        force: bool,
    ) -> OutcomeTally:
        self.error_policy = ErrorPolicy()
        tally = OutcomeTally()
        if not selection:
            return tally

        for entity_id in sorted(selection, key=selection_order_key):
            entity = selection[entity_id]
            outcome = self._translate_entity(
                entity,
                entity_id=entity_id,
                from_language=from_language,
                to_language=to_language,
                force=force,
            )
            logger.debug("Entity %r: %s", entity_id, outcome.value)
            tally.record(entity_id, outcome)

        tally.failures.extend(self.error_policy.messages())
        logger.info(
            "Processed %d entities %s -> %s (force=%s): %s",
            tally.total,
            from_language,
            to_language,
            force,
            tally.as_dict(),
        )
        return tally

    def _translate_entity(
        self,
        entity: TranslatableEntity,
        *,
        entity_id: Hashable,
        from_language: LanguageCode,
        to_language: LanguageCode,
        force: bool,
    ) -> Outcome:
        if not entity.has_translation(from_language):
            return Outcome.SOURCE_MISSING

        removed: FieldSnapshot | None = None
        if entity.has_translation(to_language):
            if not force:
                return Outcome.ALREADY_EXISTS
            removed = entity.get_translation(to_language)
            try:
                entity.remove_translation(to_language)
            except PersistError as exc:
                self.error_policy.handle_error(
                    ErrorCategory.REMOVAL,
                    f"Could not remove the '{to_language}' translation of "
                    f"entity {entity_id!r}.",
                    entity_id=entity_id,
                    details=str(exc),
                )
                return Outcome.FAILED

        source = entity.get_translation(from_language)
        try:
            translation = entity.add_translation(to_language, source)
            translation.save()
        except PersistError as exc:
            self.error_policy.handle_error(
                ErrorCategory.PERSIST,
                f"Could not save the '{to_language}' translation of "
                f"entity {entity_id!r}.",
                entity_id=entity_id,
                details=str(exc),
            )
            if entity.has_translation(to_language):
                entity.discard_translation(to_language)
            if removed is not None and self.restore_on_failure:
                self._restore(entity, entity_id, to_language, removed)
            return Outcome.FAILED

        return Outcome.CREATED

    def _restore(
        self,
        entity: TranslatableEntity,
        entity_id: Hashable,
        language: LanguageCode,
        previous: FieldSnapshot,
    ) -> None:
        """Put back the revision removed by a forced overwrite that failed."""

        try:
            entity.add_translation(language, previous).save()
        except PersistError as exc:
            if entity.has_translation(language):
                entity.discard_translation(language)
            self.error_policy.handle_error(
                ErrorCategory.RESTORE,
                f"Could not restore the previous '{language}' translation of "
                f"entity {entity_id!r}.",
                entity_id=entity_id,
                details=str(exc),
            )
        else:
            logger.info(
                "Restored the previous '%s' translation of entity %r.",
                language,
                entity_id,
            )

    @property
    def error_messages(self) -> List[str]:
        return self.error_policy.messages()
