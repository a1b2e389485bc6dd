"""
Historique undo/redo — pile linéaire de snapshots du document complet.

États : vide (aucun snapshot) → suivi (index ≥ 0).
Le snapshot à l'index courant est toujours le dernier état committé ;
undo/redo ne font que déplacer l'index et renvoient des copies.
"""
import copy
import logging
from typing import Generic, List, Optional, TypeVar

log = logging.getLogger(__name__)

HISTORY_LIMIT = 50

T = TypeVar("T")


def _snapshot(state):
    """Copie profonde indépendante (modèle pydantic ou structure JSON)."""
    if hasattr(state, "model_copy"):
        return state.model_copy(deep=True)
    return copy.deepcopy(state)


class HistoryManager(Generic[T]):
    """
    Usage:
        >>> history = HistoryManager()
        >>> history.reset(loaded_doc)        # plancher d'annulation (index 0)
        >>> history.record(doc_after_edit)
        >>> previous = history.undo()
    """

    def __init__(self, limit: int = HISTORY_LIMIT):
        self.limit = limit
        self._snapshots: List[T] = []
        self._index = -1

    @property
    def index(self) -> int:
        return self._index

    @property
    def is_empty(self) -> bool:
        return not self._snapshots

    def __len__(self) -> int:
        return len(self._snapshots)

    @property
    def can_undo(self) -> bool:
        return self._index > 0

    @property
    def can_redo(self) -> bool:
        return 0 <= self._index < len(self._snapshots) - 1

    def reset(self, state: T) -> None:
        """Document chargé : seul snapshot, index 0."""
        self._snapshots = [_snapshot(state)]
        self._index = 0

    def record(self, state: T) -> None:
        """Tronque le futur abandonné, ajoute une copie, borne à `limit` entrées."""
        del self._snapshots[self._index + 1:]
        self._snapshots.append(_snapshot(state))
        self._index += 1
        overflow = len(self._snapshots) - self.limit
        if overflow > 0:
            del self._snapshots[:overflow]
            self._index -= overflow
        log.debug("history.record : %d/%d, index %d", len(self._snapshots), self.limit, self._index)

    def replace_current(self, state: T) -> None:
        """Remplace le snapshot courant sans toucher au futur (document normalisé par le serveur)."""
        if self.is_empty:
            self.reset(state)
            return
        self._snapshots[self._index] = _snapshot(state)

    def current(self) -> Optional[T]:
        if self.is_empty:
            return None
        return _snapshot(self._snapshots[self._index])

    def undo(self) -> Optional[T]:
        """None si déjà au plancher."""
        if not self.can_undo:
            return None
        self._index -= 1
        return _snapshot(self._snapshots[self._index])

    def redo(self) -> Optional[T]:
        """None si déjà au dernier snapshot."""
        if not self.can_redo:
            return None
        self._index += 1
        return _snapshot(self._snapshots[self._index])
