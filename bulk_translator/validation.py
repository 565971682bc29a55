"""Language choice validation run before a batch is processed."""

from __future__ import annotations

from typing import Mapping, Optional

from .errors import SameLanguageError, UnknownLanguageError
from .structures import LanguageCode


def validate_language_choice(
    from_language: LanguageCode,
    to_language: LanguageCode,
) -> None:
    """Reject a source language equal to the target language.

    The comparison is exact and case-sensitive. The error names
    ``to_language`` as the offending field.
    """

    if from_language == to_language:
        raise SameLanguageError(
            "The source language and target language cannot be the same.",
            field="to_language",
        )


def ensure_known_languages(
    catalog: Mapping[LanguageCode, str],
    **codes: Optional[LanguageCode],
) -> None:
    """Check every named language code against the catalog."""

    for field_name, code in codes.items():
        if not code:
            raise UnknownLanguageError(
                f"No language selected for {field_name}.",
                field=field_name,
            )
        if code not in catalog:
            known = ", ".join(sorted(catalog)) or "none"
            raise UnknownLanguageError(
                f"Unknown language '{code}'. Available languages: {known}.",
                field=field_name,
            )
