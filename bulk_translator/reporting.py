"""Turns an outcome tally into user-facing notices."""

from __future__ import annotations

from typing import Callable, List, Optional

from .logging_config import get_audit_logger
from .structures import LanguageCode, Outcome, OutcomeTally


Notifier = Callable[[str], None]


def build_notices(
    tally: OutcomeTally,
    *,
    from_language: LanguageCode,
    to_language: LanguageCode,
) -> List[str]:
    """Return one notice per nonzero outcome count."""

    notices: List[str] = []
    if tally[Outcome.CREATED]:
        notices.append(f"Created {tally[Outcome.CREATED]} translations.")
    if tally[Outcome.ALREADY_EXISTS]:
        notices.append(
            f"Skipped {tally[Outcome.ALREADY_EXISTS]}, because target language "
            f"{to_language} already existed."
        )
    if tally[Outcome.SOURCE_MISSING]:
        notices.append(
            f"Skipped {tally[Outcome.SOURCE_MISSING]}, because source language "
            f"{from_language} didn't exist."
        )
    if tally[Outcome.FAILED]:
        notices.append(
            f"Failed {tally[Outcome.FAILED]}, because the translation could not be saved."
        )
    return notices


def report_outcomes(
    tally: OutcomeTally,
    *,
    from_language: LanguageCode,
    to_language: LanguageCode,
    notify: Optional[Notifier] = None,
) -> List[str]:
    """Send the notices to ``notify`` and audit-log the created count."""

    if tally[Outcome.CREATED]:
        get_audit_logger().info(
            "Created translations: %d (%s -> %s).",
            tally[Outcome.CREATED],
            from_language,
            to_language,
        )

    notices = build_notices(
        tally,
        from_language=from_language,
        to_language=to_language,
    )
    if notify is not None:
        for notice in notices:
            notify(notice)
    return notices
