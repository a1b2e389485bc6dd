"""
BuilderSession — état d'édition d'une page.

Relie arbre courant, document, historique, drapeau « modifié » et stockage.
Chaque action utilisateur passe par une opération pure de `mutations`,
puis commit() : snapshot du document complet + dirty. Une erreur
structurelle remonte telle quelle, l'état reste inchangé.

    session = BuilderSession(store, page_id)
    await session.load()
    session.split_cell(root_id, "vertical")
    session.undo()
    result = await session.save()   # {"ok": bool, "message": str}
"""
import logging
from typing import Any, Dict, Optional

from . import mutations
from .cells import GridTree, validate
from .blocks import merged_dump
from .document import PageDocument, slugify
from .errors import GridError, PersistenceError, SaveInProgress
from .history import HistoryManager
from .store import PageStore

log = logging.getLogger(__name__)

UNSAVED_WARNING = "You have unsaved changes. Are you sure you want to leave?"

# Champs du document modifiables hors arbre (métadonnées, SEO, réglages)
_PAGE_FIELDS = (
    "title", "slug", "description", "page_type", "is_published",
    "publish_date", "unpublish_date", "seo_title", "seo_description",
    "seo_keywords", "og_image", "page_settings",
)


class BuilderSession:

    def __init__(self, store: PageStore, page_id: str):
        self.store = store
        self.page_id = page_id
        self.document: Optional[PageDocument] = None
        self.history: HistoryManager[PageDocument] = HistoryManager()
        self.dirty = False
        self.is_saving = False
        self._tree: Optional[GridTree] = None
        self._committed: Optional[GridTree] = None

    # ── Chargement ─────────────────────────────────────────────────────────

    async def load(self) -> PageDocument:
        """Charge le document : unique snapshot à l'index 0, non modifié."""
        doc = await self.store.load_page(self.page_id)
        self._adopt(doc)
        self.history.reset(doc)
        self.dirty = False
        log.info("Session %s ouverte (%d cellules)", self.page_id, len(self._tree))
        return doc

    def _adopt(self, doc: PageDocument) -> None:
        self.document = doc
        self._tree = self._committed = doc.tree

    def _require_loaded(self) -> None:
        if self.document is None:
            raise GridError(f"Page {self.page_id!r} non chargée")

    # ── Arbre courant ──────────────────────────────────────────────────────

    @property
    def tree(self) -> GridTree:
        self._require_loaded()
        return self._tree

    def preview(self, tree: GridTree) -> None:
        """Affiche un arbre sans l'enregistrer (geste en cours)."""
        self._require_loaded()
        self._tree = tree

    def commit(self, tree: GridTree) -> GridTree:
        """Nouvel arbre committé : document mis à jour, snapshot, dirty."""
        self._require_loaded()
        if tree is self._committed:
            return tree
        self._tree = self._committed = tree
        self.document = self.document.with_tree(tree)
        self.history.record(self.document)
        self.dirty = True
        log.debug("commit %s : %d cellules, historique %d", self.page_id, len(tree), self.history.index)
        return tree

    def _apply(self, operation, *args, **kwargs) -> GridTree:
        current = self.tree
        result = operation(current, *args, **kwargs)
        if result is current:
            return current
        return self.commit(result)

    # ── Structure ──────────────────────────────────────────────────────────

    def add_root_cell(self) -> GridTree:
        return self._apply(mutations.add_root_cell)

    def split_cell(self, cell_id: str, orientation: str) -> GridTree:
        return self._apply(mutations.split_cell, cell_id, orientation)

    def delete_cell(self, cell_id: str) -> GridTree:
        return self._apply(mutations.delete_cell, cell_id)

    def resize_cell(self, cell_id: str, ratio: float) -> GridTree:
        return self._apply(mutations.resize_cell, cell_id, ratio)

    def update_cell(self, cell_id: str, **attrs) -> GridTree:
        return self._apply(mutations.update_cell, cell_id, **attrs)

    # ── Blocs ──────────────────────────────────────────────────────────────

    def add_block(self, cell_id: str, block_type: str) -> GridTree:
        return self._apply(mutations.add_block, cell_id, block_type)

    def update_block(self, cell_id: str, block_id: str, updates: Dict[str, Any]) -> GridTree:
        return self._apply(mutations.update_block, cell_id, block_id, updates)

    def update_block_content(self, cell_id: str, block_id: str, content_updates: Dict[str, Any]) -> GridTree:
        return self._apply(mutations.update_block_content, cell_id, block_id, content_updates)

    def delete_block(self, cell_id: str, block_id: str) -> GridTree:
        return self._apply(mutations.delete_block, cell_id, block_id)

    def move_block(self, source_cell_id: str, block_id: str, target_cell_id: str, target_index: int) -> GridTree:
        return self._apply(mutations.move_block, source_cell_id, block_id, target_cell_id, target_index)

    def drop_block(self, source_cell_id: str, block_id: str,
                   over_id: Optional[str], over_data: Optional[dict] = None) -> GridTree:
        """Fin de glisser-déposer : cible non résolue → drop ignoré, rien n'est committé."""
        target = mutations.resolve_drop_target(self.tree, over_id, over_data)
        if target is None:
            log.debug("drop ignoré (%s)", over_id)
            return self.tree
        return self.move_block(source_cell_id, block_id, *target)

    # ── Métadonnées ────────────────────────────────────────────────────────

    def update_page(self, **fields) -> PageDocument:
        """Titre, slug, SEO, réglages… : committé comme une mutation d'arbre."""
        self._require_loaded()
        unknown = set(fields) - set(_PAGE_FIELDS)
        if unknown:
            raise GridError(f"Champs de page non modifiables : {sorted(unknown)}")
        if "slug" in fields:
            fields["slug"] = slugify(fields["slug"])
        self.document = PageDocument.model_validate(merged_dump(self.document, fields))
        self.history.record(self.document)
        self.dirty = True
        return self.document

    # ── Historique ─────────────────────────────────────────────────────────

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo

    def undo(self) -> Optional[PageDocument]:
        doc = self.history.undo()
        if doc is not None:
            self._adopt(doc)
        return doc

    def redo(self) -> Optional[PageDocument]:
        doc = self.history.redo()
        if doc is not None:
            self._adopt(doc)
        return doc

    # ── Sauvegarde ─────────────────────────────────────────────────────────

    async def save(self) -> Dict[str, Any]:
        """
        Envoie le document courant au stockage.

        Renvoie une notification {"ok", "message"}. En cas d'échec, document
        et drapeau dirty sont conservés pour permettre un nouvel essai.
        Lève SaveInProgress si une sauvegarde est déjà en vol.
        """
        self._require_loaded()
        if self.is_saving:
            raise SaveInProgress(self.page_id)
        doc = self.document
        if not (doc.title or "").strip() or not (doc.slug or "").strip():
            return {"ok": False, "message": "Title and slug are required"}

        validate(doc.tree)
        self.is_saving = True
        try:
            saved = await self.store.save_page(self.page_id, doc)
        except PersistenceError as e:
            log.warning("Sauvegarde %s échouée : %s", self.page_id, e)
            return {"ok": False, "message": str(e)}
        finally:
            self.is_saving = False

        # Pas de modification entre-temps : le document serveur fait foi
        if self.document is doc:
            self._adopt(saved)
            self.history.replace_current(saved)
            self.dirty = False
        log.info("Page %s sauvegardée", self.page_id)
        return {"ok": True, "message": "Page saved successfully"}

    def before_unload(self) -> Optional[str]:
        """Avertissement de navigation si des modifications ne sont pas sauvegardées."""
        return UNSAVED_WARNING if self.dirty else None
