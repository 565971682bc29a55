"""Command line interface for the bulk translator."""

from __future__ import annotations

import argparse
import pathlib
import sys
from typing import Iterable, List, Mapping, Optional, Sequence

from .action import ActionConfiguration, BulkTranslationAction
from .configuration import get_settings
from .entities import ContentEntity, ContentStore
from .errors import (
    BulkTranslatorError,
    ConfigurationError,
    ContentStoreError,
    ValidationError,
)
from .logging_config import setup_logging
from .processor import TranslationProcessor
from .selection import SelectionStore
from .structures import OutcomeTally

CLI_USER = "cli"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bulk-translator",
        description=(
            "Create translations for a batch of content entities by copying "
            "the fields of a source language into a target language."
        ),
    )
    parser.add_argument(
        "store",
        nargs="?",
        help="Path to the JSON content store (default: BULK_TRANSLATOR_STORE).",
    )
    parser.add_argument(
        "-s",
        "--source-language",
        help="Language the translation is created from.",
    )
    parser.add_argument(
        "-t",
        "--target-language",
        help="Language the translation is created for.",
    )
    parser.add_argument(
        "-f",
        "--force",
        action="store_true",
        help="Delete and recreate an existing translation instead of skipping it.",
    )
    parser.add_argument(
        "--ids",
        nargs="+",
        metavar="ID",
        help="Only process these entity ids (default: every entity in the store).",
    )
    parser.add_argument(
        "--list-languages",
        action="store_true",
        help="Print the available languages and exit.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show the outcome for every entity.",
    )
    return parser


def select_entities(
    entities: Sequence[ContentEntity],
    entity_ids: Optional[Iterable[str]],
) -> List[ContentEntity]:
    """Pick the entities whose id matches one of ``entity_ids``."""

    if entity_ids is None:
        return list(entities)

    wanted = [str(entity_id) for entity_id in entity_ids]
    by_id: dict[str, ContentEntity] = {}
    ambiguous: List[str] = []
    for entity in entities:
        key = str(entity.id)
        if key in by_id and by_id[key].id != entity.id:
            ambiguous.append(key)
        by_id[key] = entity
    if ambiguous:
        raise ContentStoreError(
            "Ambiguous entity ids in the content store: "
            + ", ".join(sorted(set(ambiguous)))
            + "."
        )
    missing = [entity_id for entity_id in wanted if entity_id not in by_id]
    if missing:
        raise ContentStoreError(
            "Unknown entity ids: " + ", ".join(missing) + "."
        )
    return [by_id[entity_id] for entity_id in wanted]


def execute_bulk_translation(
    *,
    store_path: str,
    from_language: str,
    to_language: str,
    force: bool,
    entity_ids: Optional[Sequence[str]],
    catalog: Mapping[str, str],
    restore_on_failure: bool,
) -> tuple[int, OutcomeTally | None, List[str], str | None]:
    """Run one batch and return the exit code, tally, notices and message."""

    store = ContentStore(pathlib.Path(store_path).expanduser().resolve())
    try:
        entities = select_entities(store.load(), entity_ids)
    except ContentStoreError as exc:
        return 1, None, [], str(exc)

    notices: List[str] = []
    action = BulkTranslationAction(
        SelectionStore(),
        catalog,
        processor=TranslationProcessor(restore_on_failure=restore_on_failure),
        notify=notices.append,
    )
    handle = action.execute_multiple(CLI_USER, entities)
    configuration = ActionConfiguration(
        from_language=from_language,
        to_language=to_language,
        force=force,
    )

    try:
        tally = action.confirm(handle, configuration)
    except ValidationError as exc:
        return 1, None, [], str(exc)
    except BulkTranslatorError as exc:
        return 1, None, [], str(exc)
    except KeyboardInterrupt:
        return 2, None, notices, "Bulk translation interrupted by user."

    return 0, tally, notices, None


def print_languages(catalog: Mapping[str, str]) -> None:
    for code, name in catalog.items():
        print(f"  {code:<8} {name}")


def print_summary(
    tally: OutcomeTally,
    notices: Sequence[str],
    *,
    verbose: bool,
) -> None:
    """Output the notices and, when verbose, every entity's outcome."""

    if not tally.total:
        print("Nothing to translate: the selection is empty.")
        return
    print(f"Processed {tally.total} entities.")
    for notice in notices:
        print(f"  {notice}")
    if verbose:
        print("  Entities:")
        for entity_id, outcome in tally.entity_outcomes.items():
            print(f"    - {entity_id}: {outcome.value}")
    if tally.failures:
        print("  Notes:")
        for message in tally.failures:
            print(f"    - {message}")


def main(argv: Optional[Iterable[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        settings = get_settings()
        catalog = settings.languages
    except ConfigurationError as exc:
        print(exc)
        return 1

    setup_logging("DEBUG" if args.verbose else settings.BULK_TRANSLATOR_LOG_LEVEL)

    if args.list_languages:
        print("Available languages:")
        print_languages(catalog)
        return 0

    store_path = args.store or settings.BULK_TRANSLATOR_STORE
    if not store_path:
        parser.error("the following arguments are required: store")
    if not args.source_language:
        parser.error("the following arguments are required: -s/--source-language")
    if not args.target_language:
        parser.error("the following arguments are required: -t/--target-language")

    exit_code, tally, notices, message = execute_bulk_translation(
        store_path=store_path,
        from_language=args.source_language,
        to_language=args.target_language,
        force=args.force,
        entity_ids=args.ids,
        catalog=catalog,
        restore_on_failure=bool(settings.BULK_TRANSLATOR_RESTORE_ON_FAILURE),
    )

    if message:
        print(message)
    if tally is not None:
        print_summary(tally, notices, verbose=args.verbose)
    return exit_code


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
