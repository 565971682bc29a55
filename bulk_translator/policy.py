"""Per-entity error handling policy."""

from __future__ import annotations

from typing import Hashable, List, Optional

from .errors import ErrorCategory, ErrorRecord
from .logging_config import get_logger

logger = get_logger(__name__)


class ErrorPolicy:
    """Records per-entity failures so the batch can carry on."""

    def __init__(self) -> None:
        self.records: List[ErrorRecord] = []

    def handle_error(
        self,
        category: ErrorCategory,
        message: str,
        *,
        entity_id: Optional[Hashable] = None,
        details: Optional[str] = None,
    ) -> ErrorRecord:
        """Record an error and log it; processing of the batch continues."""

        record = ErrorRecord(
            category=category,
            message=message,
            entity_id=entity_id,
            details=details,
        )
        self.records.append(record)
        if details:
            logger.warning("%s (%s)", message, details)
        else:
            logger.warning("%s", message)
        return record

    def messages(self) -> List[str]:
        return [record.message for record in self.records]

    def for_category(self, category: ErrorCategory) -> List[ErrorRecord]:
        return [record for record in self.records if record.category == category]
