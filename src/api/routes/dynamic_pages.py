"""Admin — API REST des pages dynamiques (liste, création, lecture, mise à jour, suppression)."""
import logging
import math
from contextlib import contextmanager

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import ValidationError
from sqlalchemy.orm import Session

from grid_builder.errors import InvalidTree

from ...database import db_delete_page, db_get_page, db_list_pages, get_db, jl, page_to_dict
from ...models import DynamicPageInput
from ..page_store import DuplicateSlug, create_page, update_page

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin/dynamic-pages", tags=["Admin Dynamic Pages"])


def _get_or_404(db: Session, page_id: str):
    page = db_get_page(db, page_id)
    if not page:
        raise HTTPException(404, "Page introuvable")
    return page


@contextmanager
def _write_errors():
    """Écriture refusée : slug pris → 400, grille incohérente → 409, cellule mal formée → 422."""
    try:
        yield
    except DuplicateSlug as e:
        raise HTTPException(400, str(e))
    except InvalidTree as e:
        raise HTTPException(409, str(e))
    except ValidationError as e:
        raise HTTPException(422, str(e))


def _fields(payload: DynamicPageInput) -> dict:
    fields = payload.model_dump(exclude_unset=True)
    for key in ("title", "slug"):
        if key in fields and not (fields[key] or "").strip():
            raise HTTPException(400, f"{key} requis")
    return fields


@router.get("")
def list_pages(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: str = "",
    page_type: str = Query("all", alias="pageType"),
    db: Session = Depends(get_db),
):
    items, total = db_list_pages(db, page, limit, search.strip(), page_type)
    pages = []
    for p in items:
        summary = page_to_dict(p)
        summary["cellCount"] = len(jl(p.grid_cells))
        del summary["gridCells"]
        pages.append(summary)
    return {
        "pages":       pages,
        "currentPage": page,
        "totalPages":  math.ceil(total / limit) if total else 0,
        "totalItems":  total,
    }


@router.post("", status_code=201)
def create_dynamic_page(payload: DynamicPageInput, db: Session = Depends(get_db)):
    fields = _fields(payload)
    if not fields.get("title"):
        raise HTTPException(400, "title requis")
    with _write_errors():
        page = create_page(db, fields)
    return page_to_dict(page)


@router.get("/{page_id}")
def get_dynamic_page(page_id: str, db: Session = Depends(get_db)):
    return page_to_dict(_get_or_404(db, page_id))


@router.put("/{page_id}")
def update_dynamic_page(page_id: str, payload: DynamicPageInput, db: Session = Depends(get_db)):
    page = _get_or_404(db, page_id)
    with _write_errors():
        page = update_page(db, page, _fields(payload))
    return page_to_dict(page)


@router.delete("/{page_id}")
def delete_dynamic_page(page_id: str, db: Session = Depends(get_db)):
    page = _get_or_404(db, page_id)
    db_delete_page(db, page)
    log.info("Page dynamique %s supprimée", page_id)
    return {"success": True, "message": "Page supprimée"}
