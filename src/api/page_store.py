"""
Stockage SQL des pages dynamiques — partagé par l'API REST et le builder.

Le serveur normalise avant d'écrire : slug re-slugifié (et unique), grille
validée puis réécrite au format camelCase. L'appelant adopte le document
renvoyé.
"""
import asyncio
import logging
from typing import Callable

from sqlalchemy.orm import Session

from grid_builder import GridTree, PageDocument, default_grid, normalize_loaded, slugify, validate
from grid_builder.errors import PageNotFound, PersistenceError

from ..database import (
    SessionLocal, db_create_page, db_get_page, db_get_page_by_slug, db_update_page, page_to_dict,
)
from ..models import DynamicPageDB, DynamicPageInput

log = logging.getLogger(__name__)


class DuplicateSlug(PersistenceError):
    def __init__(self, slug: str):
        self.slug = slug
        super().__init__(f"Slug déjà utilisé : {slug!r}")


def _normalize(db: Session, fields: dict, page_id: str = None) -> dict:
    if "slug" in fields:
        fields["slug"] = slugify(fields["slug"] or "")
        other = db_get_page_by_slug(db, fields["slug"])
        if other is not None and other.id != page_id:
            raise DuplicateSlug(fields["slug"])
    if fields.get("grid_cells") is not None:
        fields["grid_cells"] = validate(GridTree.from_dump(fields["grid_cells"])).dump()
    return fields


def create_page(db: Session, fields: dict) -> DynamicPageDB:
    """Nouvelle page : slug dérivé du titre si absent, grille par défaut si vide."""
    fields = dict(fields)
    fields["slug"] = fields.get("slug") or fields["title"]
    if not fields.get("grid_cells"):
        fields["grid_cells"] = default_grid().dump()
    fields = _normalize(db, fields)
    page = db_create_page(db, **{k: v for k, v in fields.items() if v is not None})
    log.info("Page dynamique créée %s (%s)", page.id, page.slug)
    return page


def update_page(db: Session, page: DynamicPageDB, fields: dict) -> DynamicPageDB:
    fields = _normalize(db, dict(fields), page.id)
    page = db_update_page(db, page, **fields)
    log.info("Page dynamique %s mise à jour (%s)", page.id, ", ".join(sorted(fields)) or "aucun champ")
    return page


def input_fields(data: dict) -> dict:
    """Payload camelCase → champs de colonne, uniquement ceux envoyés."""
    return DynamicPageInput.model_validate(data).model_dump(exclude_unset=True)


class SqlPageStore:
    """PageStore adossé à la base SQLite (une session par appel)."""

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self.session_factory = session_factory

    def _load(self, page_id: str) -> PageDocument:
        with self.session_factory() as db:
            page = db_get_page(db, page_id)
            if page is None:
                raise PageNotFound(page_id)
            return normalize_loaded(page_to_dict(page))

    def _save(self, page_id: str, doc: PageDocument) -> PageDocument:
        with self.session_factory() as db:
            page = db_get_page(db, page_id)
            if page is None:
                raise PageNotFound(page_id)
            page = update_page(db, page, input_fields(doc.dump()))
            return PageDocument.model_validate(page_to_dict(page))

    async def load_page(self, page_id: str) -> PageDocument:
        return await asyncio.to_thread(self._load, page_id)

    async def save_page(self, page_id: str, doc: PageDocument) -> PageDocument:
        return await asyncio.to_thread(self._save, page_id, doc)
