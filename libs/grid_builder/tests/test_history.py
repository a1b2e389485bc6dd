"""Tests historique undo/redo."""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from grid_builder.document import new_page
from grid_builder.history import HISTORY_LIMIT, HistoryManager


def test_empty_history():
    h = HistoryManager()
    assert h.is_empty
    assert h.index == -1
    assert h.undo() is None
    assert h.redo() is None
    assert h.current() is None


def test_reset_is_undo_floor():
    h = HistoryManager()
    h.reset({"v": 0})
    assert h.index == 0
    assert h.undo() is None
    assert h.index == 0
    assert not h.can_undo


def test_undo_twice_then_record_discards_future():
    h = HistoryManager()
    h.reset({"v": 0})
    h.record({"v": 1})
    h.record({"v": 2})
    h.undo()
    assert h.undo() == {"v": 0}
    h.record({"v": 3})
    assert len(h) == 2
    assert not h.can_redo
    assert h.redo() is None
    assert h.current() == {"v": 3}


def test_redo():
    h = HistoryManager()
    h.reset({"v": 0})
    h.record({"v": 1})
    h.undo()
    assert h.can_redo
    assert h.redo() == {"v": 1}
    assert h.redo() is None


def test_limit_drops_oldest():
    h = HistoryManager()
    h.reset({"v": 0})
    for i in range(1, HISTORY_LIMIT + 10):
        h.record({"v": i})
    assert len(h) == HISTORY_LIMIT
    assert h.index == HISTORY_LIMIT - 1
    while h.can_undo:
        h.undo()
    assert h.current() == {"v": 10}


def test_snapshots_are_independent_copies():
    h = HistoryManager()
    state = {"cells": [1, 2]}
    h.reset(state)
    state["cells"].append(3)
    returned = h.current()
    assert returned == {"cells": [1, 2]}
    returned["cells"].clear()
    assert h.current() == {"cells": [1, 2]}


def test_snapshots_of_documents():
    doc = new_page("Accueil")
    h = HistoryManager()
    h.reset(doc)
    h.record(doc.model_copy(update={"title": "Nouveau"}))
    previous = h.undo()
    assert previous.title == "Accueil"
    assert previous is not doc
    assert previous.grid_cells[0].cell_id == doc.grid_cells[0].cell_id


def test_replace_current_keeps_future():
    history = HistoryManager()
    history.reset({"v": 0})
    history.record({"v": 1})
    history.record({"v": 2})
    history.undo()
    history.replace_current({"v": 1, "saved": True})
    assert history.index == 1
    assert history.redo() == {"v": 2}
    assert history.undo() == {"v": 1, "saved": True}


def test_replace_current_on_empty_history():
    history = HistoryManager()
    history.replace_current({"v": 0})
    assert history.index == 0
    assert not history.can_undo
