"""
Builder — sessions d'édition côté serveur.

Une session par page ouverte : arbre courant, historique undo/redo,
drapeau « modifié ». Chaque route de mutation renvoie l'état complet.
Les routes qui touchent une session sont async : elles s'exécutent sur
la boucle d'événements, jamais en parallèle dans le threadpool.
"""
import logging
import os
import time
from contextlib import contextmanager
from typing import Callable, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import ValidationError

from grid_builder import BLOCK_TYPES, BuilderSession, DataSourceType, PageStore, field_options
from grid_builder.errors import (
    BlockNotFound, CellNotFound, GridError, InvalidTree, NotABranch, NotALeaf,
    PageNotFound, SaveInProgress,
)

from ...models import BlockInput, BlockUpdateInput, CellInput, MoveInput, ResizeInput, SplitInput
from ..page_store import SqlPageStore

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin/builder", tags=["Admin Builder"])


class SessionRegistry:
    """
    Sessions ouvertes, indexées par id de page.

    Une session sans accès depuis `ttl` secondes est évincée à la prochaine
    ouverture (BUILDER_SESSION_TTL, 3600 par défaut).
    """

    def __init__(self, ttl: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        self.ttl = float(ttl if ttl is not None else os.getenv("BUILDER_SESSION_TTL", "3600"))
        self.clock = clock
        self._sessions: Dict[str, BuilderSession] = {}
        self._last_seen: Dict[str, float] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, page_id: str) -> BuilderSession:
        session = self._sessions.get(page_id)
        if session is None:
            raise HTTPException(404, "Aucune session ouverte pour cette page")
        self._last_seen[page_id] = self.clock()
        return session

    def put(self, session: BuilderSession) -> None:
        self.evict_idle()
        previous = self._sessions.get(session.page_id)
        if previous is not None and previous.dirty:
            log.warning("Session %s remplacée : modifications non sauvegardées perdues", session.page_id)
        self._sessions[session.page_id] = session
        self._last_seen[session.page_id] = self.clock()

    def pop(self, page_id: str) -> BuilderSession:
        session = self.get(page_id)
        del self._sessions[page_id]
        del self._last_seen[page_id]
        return session

    def evict_idle(self) -> int:
        limit = self.clock() - self.ttl
        idle = [pid for pid, seen in self._last_seen.items() if seen < limit]
        for pid in idle:
            session = self._sessions.pop(pid)
            del self._last_seen[pid]
            if session.dirty:
                log.warning("Session %s évincée (inactive) avec des modifications non sauvegardées", pid)
            else:
                log.info("Session %s évincée (inactive)", pid)
        return len(idle)

    def clear(self) -> None:
        self._sessions.clear()
        self._last_seen.clear()


REGISTRY = SessionRegistry()


def get_registry() -> SessionRegistry:
    return REGISTRY


def get_page_store() -> PageStore:
    return SqlPageStore()


@contextmanager
def _grid_errors():
    """Erreurs du builder → HTTP (état de session inchangé)."""
    try:
        yield
    except (CellNotFound, BlockNotFound, PageNotFound) as e:
        raise HTTPException(404, str(e))
    except (NotALeaf, NotABranch, InvalidTree, SaveInProgress) as e:
        raise HTTPException(409, str(e))
    except GridError as e:
        raise HTTPException(400, str(e))
    except ValidationError as e:
        raise HTTPException(422, str(e))


def _state(session: BuilderSession) -> dict:
    doc = session.document.with_tree(session.tree).dump()
    return {
        "pageId":       session.page_id,
        "dirty":        session.dirty,
        "canUndo":      session.can_undo,
        "canRedo":      session.can_redo,
        "historyIndex": session.history.index,
        "document":     doc,
    }


# ── Session ───────────────────────────────────────────────────────────────

@router.get("/block-types")
def block_types():
    return {"blockTypes": list(BLOCK_TYPES)}


@router.get("/field-options")
def get_field_options(source_type: str = Query(..., alias="sourceType"),
                      block_type: str = Query(..., alias="blockType")):
    try:
        source = DataSourceType(source_type)
    except ValueError:
        raise HTTPException(400, f"Source inconnue : {source_type}")
    return {"options": field_options(source, block_type)}


@router.post("/{page_id}/open")
async def open_session(page_id: str, registry: SessionRegistry = Depends(get_registry),
                       store: PageStore = Depends(get_page_store)):
    session = BuilderSession(store, page_id)
    with _grid_errors():
        await session.load()
    registry.put(session)
    return _state(session)


@router.get("/{page_id}")
async def session_state(page_id: str, registry: SessionRegistry = Depends(get_registry)):
    return _state(registry.get(page_id))


@router.delete("/{page_id}")
async def close_session(page_id: str, registry: SessionRegistry = Depends(get_registry)):
    session = registry.pop(page_id)
    warning = session.before_unload()
    if warning:
        log.warning("Session %s fermée avec des modifications non sauvegardées", page_id)
    return {"success": True, "warning": warning}


# ── Cellules ──────────────────────────────────────────────────────────────

@router.post("/{page_id}/cells/root")
async def add_root_cell(page_id: str, registry: SessionRegistry = Depends(get_registry)):
    session = registry.get(page_id)
    session.add_root_cell()
    return _state(session)


@router.post("/{page_id}/cells/split")
async def split_cell(page_id: str, payload: SplitInput, registry: SessionRegistry = Depends(get_registry)):
    session = registry.get(page_id)
    with _grid_errors():
        session.split_cell(payload.cell_id, payload.orientation)
    return _state(session)


@router.post("/{page_id}/cells/resize")
async def resize_cell(page_id: str, payload: ResizeInput, registry: SessionRegistry = Depends(get_registry)):
    session = registry.get(page_id)
    with _grid_errors():
        session.resize_cell(payload.cell_id, payload.ratio)
    return _state(session)


@router.patch("/{page_id}/cells")
async def update_cell(page_id: str, payload: CellInput, registry: SessionRegistry = Depends(get_registry)):
    session = registry.get(page_id)
    attrs = payload.model_dump(exclude_unset=True, exclude={"cell_id"})
    with _grid_errors():
        session.update_cell(payload.cell_id, **attrs)
    return _state(session)


@router.delete("/{page_id}/cells/{cell_id}")
async def delete_cell(page_id: str, cell_id: str, registry: SessionRegistry = Depends(get_registry)):
    session = registry.get(page_id)
    with _grid_errors():
        session.delete_cell(cell_id)
    return _state(session)


# ── Blocs ─────────────────────────────────────────────────────────────────

@router.post("/{page_id}/blocks")
async def add_block(page_id: str, payload: BlockInput, registry: SessionRegistry = Depends(get_registry)):
    session = registry.get(page_id)
    with _grid_errors():
        session.add_block(payload.cell_id, payload.block_type)
    return _state(session)


@router.patch("/{page_id}/blocks")
async def update_block(page_id: str, payload: BlockUpdateInput, registry: SessionRegistry = Depends(get_registry)):
    session = registry.get(page_id)
    with _grid_errors():
        if payload.content:
            session.update_block_content(payload.cell_id, payload.block_id, payload.updates)
        else:
            session.update_block(payload.cell_id, payload.block_id, payload.updates)
    return _state(session)


@router.delete("/{page_id}/blocks/{cell_id}/{block_id}")
async def delete_block(page_id: str, cell_id: str, block_id: str, registry: SessionRegistry = Depends(get_registry)):
    session = registry.get(page_id)
    with _grid_errors():
        session.delete_block(cell_id, block_id)
    return _state(session)


@router.post("/{page_id}/blocks/move")
async def move_block(page_id: str, payload: MoveInput, registry: SessionRegistry = Depends(get_registry)):
    """Cible explicite (targetCellId + targetIndex) ou brute d'un drop (overId / overData)."""
    session = registry.get(page_id)
    with _grid_errors():
        if payload.target_cell_id is not None and payload.target_index is not None:
            session.move_block(payload.source_cell_id, payload.block_id,
                               payload.target_cell_id, payload.target_index)
        else:
            session.drop_block(payload.source_cell_id, payload.block_id,
                               payload.over_id, payload.over_data)
    return _state(session)


# ── Page / historique / sauvegarde ───────────────────────────────────────

@router.patch("/{page_id}/page")
async def update_page(page_id: str, fields: dict, registry: SessionRegistry = Depends(get_registry)):
    """Métadonnées (titre, slug, SEO, réglages), clés snake_case ou camelCase."""
    session = registry.get(page_id)
    names = {field.alias: name for name, field in type(session.document).model_fields.items()}
    with _grid_errors():
        session.update_page(**{names.get(k, k): v for k, v in fields.items()})
    return _state(session)


@router.post("/{page_id}/undo")
async def undo(page_id: str, registry: SessionRegistry = Depends(get_registry)):
    session = registry.get(page_id)
    session.undo()
    return _state(session)


@router.post("/{page_id}/redo")
async def redo(page_id: str, registry: SessionRegistry = Depends(get_registry)):
    session = registry.get(page_id)
    session.redo()
    return _state(session)


@router.post("/{page_id}/save")
async def save(page_id: str, registry: SessionRegistry = Depends(get_registry)):
    session = registry.get(page_id)
    with _grid_errors():
        result = await session.save()
    return {**result, **_state(session)}
