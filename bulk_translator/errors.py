"""Error definitions for the bulk translator."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Hashable, Optional


class ErrorCategory(Enum):
    """Categorises per-entity failures recorded during a batch."""

    REMOVAL = auto()
    PERSIST = auto()
    RESTORE = auto()
    OTHER = auto()


class BulkTranslatorError(Exception):
    """Base exception for all custom errors."""


class ValidationError(BulkTranslatorError):
    """Raised when the submitted language choice cannot be accepted."""

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class SameLanguageError(ValidationError):
    """Raised when the source and target language are identical."""


class UnknownLanguageError(ValidationError):
    """Raised when a language code is missing from the language catalog."""


class PersistError(BulkTranslatorError):
    """Raised when a translation revision cannot be removed or saved."""


class ContentStoreError(BulkTranslatorError):
    """Raised when the content store document cannot be read."""


class TranslationExistsError(BulkTranslatorError):
    """Raised when adding a revision for a language the entity already has."""


class SelectionNotFoundError(BulkTranslatorError):
    """Raised when a selection handle is unknown or already released."""


class ConfigurationError(BulkTranslatorError):
    """Raised when the configuration is missing or invalid."""


@dataclass
class ErrorRecord:
    """Stores context for a handled error."""

    category: ErrorCategory
    message: str
    entity_id: Optional[Hashable] = None
    details: Optional[str] = None
