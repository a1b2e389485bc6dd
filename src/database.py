"""SQLite — init + session + CRUD helpers pages dynamiques"""
import json, os
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple

from sqlalchemy import create_engine, func, or_
from sqlalchemy.orm import Session, sessionmaker

from .models import Base, DynamicPageDB

DATA_DIR = Path(__file__).parent.parent / "data"
DATA_DIR.mkdir(exist_ok=True)

DB_PATH      = os.getenv("DB_PATH", str(DATA_DIR / "quantum_admin.db"))
ENGINE       = create_engine(f"sqlite:///{DB_PATH}", connect_args={"check_same_thread": False})
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=ENGINE)


def init_db(engine=None):
    Base.metadata.create_all(bind=engine or ENGINE)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# ── JSON helpers ──
def jl(s: str) -> list:
    try: return json.loads(s or "[]")
    except (TypeError, ValueError): return []

def jo(s: str) -> dict:
    try: return json.loads(s or "{}")
    except (TypeError, ValueError): return {}

def jd(o) -> str:
    return json.dumps(o, ensure_ascii=False)


# Colonnes JSON ↔ clés camelCase du document
_JSON_FIELDS = {"seo_keywords": jl, "page_settings": jo, "grid_cells": jl}
_FIELDS = {
    "title": "title", "slug": "slug", "description": "description", "page_type": "pageType",
    "is_published": "isPublished", "publish_date": "publishDate", "unpublish_date": "unpublishDate",
    "seo_title": "seoTitle", "seo_description": "seoDescription", "seo_keywords": "seoKeywords",
    "og_image": "ogImage", "page_settings": "pageSettings", "grid_cells": "gridCells",
}


def page_to_dict(page: DynamicPageDB) -> dict:
    """Document camelCase tel que renvoyé par l'API."""
    out = {"id": page.id}
    for col, key in _FIELDS.items():
        value = getattr(page, col)
        if col in _JSON_FIELDS:
            value = _JSON_FIELDS[col](value)
        elif isinstance(value, datetime):
            value = value.isoformat()
        out[key] = value
    out["createdAt"] = page.created_at.isoformat() if page.created_at else None
    out["updatedAt"] = page.updated_at.isoformat() if page.updated_at else None
    return out


def _columns(**kwargs) -> dict:
    return {k: (jd(v) if k in _JSON_FIELDS else v) for k, v in kwargs.items()}


# ── Pages dynamiques ──
def db_create_page(db: Session, **kwargs) -> DynamicPageDB:
    page = DynamicPageDB(**_columns(**kwargs))
    db.add(page); db.commit(); db.refresh(page); return page

def db_get_page(db: Session, page_id: str) -> Optional[DynamicPageDB]:
    return db.query(DynamicPageDB).filter_by(id=page_id).first()

def db_get_page_by_slug(db: Session, slug: str) -> Optional[DynamicPageDB]:
    return db.query(DynamicPageDB).filter_by(slug=slug).first()

def db_update_page(db: Session, page: DynamicPageDB, **kwargs) -> DynamicPageDB:
    for k, v in _columns(**kwargs).items():
        setattr(page, k, v)
    page.updated_at = datetime.utcnow()
    db.commit(); db.refresh(page); return page

def db_delete_page(db: Session, page: DynamicPageDB):
    db.delete(page); db.commit()

def db_list_pages(db: Session, page: int = 1, limit: int = 20, search: str = "",
                  page_type: str = "all") -> Tuple[List[DynamicPageDB], int]:
    """Liste paginée (recherche titre/slug/description, filtre type), updatedAt décroissant."""
    q = db.query(DynamicPageDB)
    if search:
        pattern = f"%{search.lower()}%"
        q = q.filter(or_(
            func.lower(DynamicPageDB.title).like(pattern),
            func.lower(DynamicPageDB.slug).like(pattern),
            func.lower(DynamicPageDB.description).like(pattern),
        ))
    if page_type and page_type != "all":
        q = q.filter(DynamicPageDB.page_type == page_type)
    total = q.count()
    items = (q.order_by(DynamicPageDB.updated_at.desc())
              .offset((page - 1) * limit).limit(limit).all())
    return items, total
