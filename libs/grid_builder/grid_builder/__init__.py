"""
Grid Builder — éditeur de pages dynamiques par grille récursive.

Usage:
    >>> from grid_builder import BuilderSession, MemoryPageStore, new_page
    >>> store = MemoryPageStore({"p1": new_page("Accueil").dump()})
    >>> session = BuilderSession(store, "p1")
    >>> await session.load()
    >>> root = session.tree.roots()[0]
    >>> session.split_cell(root.cell_id, "vertical")
    >>> await session.save()
"""
from .blocks import (
    BLOCK_TYPES, BaseBlock, BlockContent, BlockUnion, DataBinding, DataSourceType,
    default_content, new_block,
)
from .cells import (
    DEFAULT_RATIO, MAX_RATIO, MIN_RATIO,
    Cell, GridTree, default_grid, descendants, find_cell, is_leaf, new_cell, validate,
)
from .mutations import (
    add_block, add_root_cell, clamp_ratio, delete_block, delete_cell, move_block,
    resize_cell, resolve_drop_target, split_cell, update_block, update_block_content,
    update_cell,
)
from .history import HISTORY_LIMIT, HistoryManager
from .document import PageDocument, PageSettings, canvas_colors, new_page, normalize_loaded, slugify
from .binding import (
    apply_bindings, field_options, replace_bindings, resolve_bound_value,
    toggle_binding, with_source_type,
)
from .variants import is_value_available, match_variant
from .errors import (
    BlockNotFound, CellNotFound, GridError, InvalidTree, NotABranch, NotALeaf,
    PageNotFound, PersistenceError, SaveInProgress,
)
from .store import HttpPageStore, MemoryPageStore, PageStore
from .session import BuilderSession
from .gestures import KeyEvent, ListenerRegistry, PointerEvent, ResizeGesture, ShortcutScope

__version__ = "0.1.0"
__all__ = [
    # Blocs
    "BLOCK_TYPES", "BaseBlock", "BlockContent", "BlockUnion", "DataBinding", "DataSourceType",
    "default_content", "new_block",
    # Arbre
    "DEFAULT_RATIO", "MAX_RATIO", "MIN_RATIO",
    "Cell", "GridTree", "default_grid", "descendants", "find_cell", "is_leaf", "new_cell", "validate",
    # Mutations
    "add_block", "add_root_cell", "clamp_ratio", "delete_block", "delete_cell", "move_block",
    "resize_cell", "resolve_drop_target", "split_cell", "update_block", "update_block_content",
    "update_cell",
    # Historique
    "HISTORY_LIMIT", "HistoryManager",
    # Document
    "PageDocument", "PageSettings", "canvas_colors", "new_page", "normalize_loaded", "slugify",
    # Binding / variantes
    "apply_bindings", "field_options", "replace_bindings", "resolve_bound_value",
    "toggle_binding", "with_source_type",
    "is_value_available", "match_variant",
    # Erreurs
    "BlockNotFound", "CellNotFound", "GridError", "InvalidTree", "NotABranch", "NotALeaf",
    "PageNotFound", "PersistenceError", "SaveInProgress",
    # Session / stockage / gestes
    "HttpPageStore", "MemoryPageStore", "PageStore", "BuilderSession",
    "KeyEvent", "ListenerRegistry", "PointerEvent", "ResizeGesture", "ShortcutScope",
]
