"""Two-phase bulk translation action: select entities, then confirm."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Hashable, Iterable, Mapping, Optional

from .logging_config import get_logger
from .processor import TranslationProcessor, selection_order_key
from .reporting import Notifier, report_outcomes
from .selection import SelectionHandle, SelectionStore
from .structures import LanguageCode, OutcomeTally, TranslatableEntity
from .validation import ensure_known_languages, validate_language_choice

logger = get_logger(__name__)


@dataclass
class ActionConfiguration:
    """Choices submitted on the confirmation step."""

    from_language: Optional[LanguageCode] = None
    to_language: Optional[LanguageCode] = None
    force: bool = False


@dataclass
class SelectionOverview:
    """What the confirmation step shows about the pending selection."""

    count: int
    items: Dict[Hashable, str]


class BulkTranslationAction:
    """Stashes a selection per user and processes it once confirmed."""

    def __init__(
        self,
        store: SelectionStore,
        catalog: Mapping[LanguageCode, str],
        *,
        processor: TranslationProcessor | None = None,
        notify: Notifier | None = None,
    ) -> None:
        self.store = store
        self.catalog = dict(catalog)
        self.processor = processor or TranslationProcessor()
        self.notify = notify

    def execute(self, user_id: Hashable, entity: TranslatableEntity) -> SelectionHandle:
        return self.execute_multiple(user_id, [entity])

    def execute_multiple(
        self,
        user_id: Hashable,
        entities: Iterable[TranslatableEntity],
    ) -> SelectionHandle:
        return self.store.stash(user_id, entities)

    def language_options(self) -> Dict[LanguageCode, str]:
        return dict(self.catalog)

    def describe_selection(self, handle: SelectionHandle) -> SelectionOverview:
        selection = self.store.get(handle)
        items = {
            entity_id: getattr(selection[entity_id], "label", str(entity_id))
            for entity_id in sorted(selection, key=selection_order_key)
        }
        return SelectionOverview(count=len(selection), items=items)

    def confirm(
        self,
        handle: SelectionHandle,
        configuration: ActionConfiguration,
    ) -> OutcomeTally:
        """Validate the language choice, process the selection and report.

        A validation error leaves the selection in place so the user can
        correct the languages. Otherwise the handle is released.
        """

        from_language = configuration.from_language
        to_language = configuration.to_language
        ensure_known_languages(
            self.catalog,
            from_language=from_language,
            to_language=to_language,
        )
        validate_language_choice(from_language, to_language)

        selection = self.store.get(handle)
        try:
            if not selection:
                return OutcomeTally()
            tally = self.processor.process_batch(
                selection,
                from_language,
                to_language,
                configuration.force,
            )
        finally:
            self.store.clear(handle)

        report_outcomes(
            tally,
            from_language=from_language,
            to_language=to_language,
            notify=self.notify,
        )
        return tally
