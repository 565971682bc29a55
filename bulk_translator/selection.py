"""Per-user storage of entity selections between select and confirm."""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Hashable, Iterable, Tuple

from .errors import SelectionNotFoundError
from .logging_config import get_logger
from .structures import BatchSelection, TranslatableEntity

logger = get_logger(__name__)


def build_selection(entities: Iterable[TranslatableEntity]) -> BatchSelection:
    """Key entities by id; a later duplicate id replaces the earlier one."""

    keyed: Dict[Hashable, TranslatableEntity] = {}
    for entity in entities:
        keyed[entity.id] = entity
    return MappingProxyType(keyed)


@dataclass(frozen=True)
class SelectionHandle:
    """Opaque reference to a stashed selection."""

    user_id: Hashable
    token: str


class SelectionStore:
    """Holds at most one pending selection per user.

    Stashing a new selection for a user releases the previous one. The
    caller owns the handle and releases it with :meth:`clear`.
    """

    def __init__(self) -> None:
        self._selections: Dict[Hashable, Tuple[str, BatchSelection]] = {}

    def stash(
        self,
        user_id: Hashable,
        entities: Iterable[TranslatableEntity],
    ) -> SelectionHandle:
        selection = build_selection(entities)
        token = secrets.token_hex(8)
        self._selections[user_id] = (token, selection)
        logger.debug(
            "Stashed %d entities for user %r", len(selection), user_id
        )
        return SelectionHandle(user_id=user_id, token=token)

    def get(self, handle: SelectionHandle) -> BatchSelection:
        entry = self._selections.get(handle.user_id)
        if entry is None or entry[0] != handle.token:
            raise SelectionNotFoundError(
                "The selection has expired or was already processed. "
                "Select the content again."
            )
        return entry[1]

    def clear(self, handle: SelectionHandle) -> None:
        entry = self._selections.get(handle.user_id)
        if entry is not None and entry[0] == handle.token:
            del self._selections[handle.user_id]

    def __contains__(self, handle: object) -> bool:
        if not isinstance(handle, SelectionHandle):
            return False
        entry = self._selections.get(handle.user_id)
        return entry is not None and entry[0] == handle.token
