"""
Data models — pages dynamiques
SQLAlchemy (SQLite) + schémas Pydantic v2 des routes (format camelCase)
"""
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

import sqlalchemy as sa
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


# ── ORM ────────────────────────────────────────────────────────────────

class Base(DeclarativeBase):
    pass


class DynamicPageDB(Base):
    """Une page du builder ; réglages, SEO et grille stockés en JSON texte."""
    __tablename__ = "dynamic_pages"
    id:              Mapped[str]                = mapped_column(sa.String, primary_key=True, default=lambda: uuid.uuid4().hex[:24])
    title:           Mapped[str]                = mapped_column(sa.String, nullable=False)
    slug:            Mapped[str]                = mapped_column(sa.String, unique=True, index=True, nullable=False)
    description:     Mapped[Optional[str]]      = mapped_column(sa.Text, nullable=True)
    page_type:       Mapped[str]                = mapped_column(sa.String, default="custom")
    is_published:    Mapped[bool]               = mapped_column(sa.Boolean, default=False)
    publish_date:    Mapped[Optional[datetime]] = mapped_column(sa.DateTime, nullable=True)
    unpublish_date:  Mapped[Optional[datetime]] = mapped_column(sa.DateTime, nullable=True)
    seo_title:       Mapped[Optional[str]]      = mapped_column(sa.String, nullable=True)
    seo_description: Mapped[Optional[str]]      = mapped_column(sa.Text, nullable=True)
    seo_keywords:    Mapped[str]                = mapped_column(sa.Text, default="[]")
    og_image:        Mapped[Optional[str]]      = mapped_column(sa.String, nullable=True)
    page_settings:   Mapped[str]                = mapped_column(sa.Text, default="{}")
    grid_cells:      Mapped[str]                = mapped_column(sa.Text, default="[]")
    created_at:      Mapped[datetime]           = mapped_column(sa.DateTime, default=datetime.utcnow)
    updated_at:      Mapped[datetime]           = mapped_column(sa.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


# ── PYDANTIC SCHEMAS ────────────────────────────────────────────────────

class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DynamicPageInput(ApiModel):
    """Création / mise à jour partielle : seuls les champs envoyés sont appliqués."""
    title:           Optional[str]                  = None
    slug:            Optional[str]                  = None
    description:     Optional[str]                  = None
    page_type:       Optional[str]                  = None
    is_published:    Optional[bool]                 = None
    publish_date:    Optional[datetime]             = None
    unpublish_date:  Optional[datetime]             = None
    seo_title:       Optional[str]                  = None
    seo_description: Optional[str]                  = None
    seo_keywords:    Optional[List[str]]            = None
    og_image:        Optional[str]                  = None
    page_settings:   Optional[Dict[str, Any]]       = None
    grid_cells:      Optional[List[Dict[str, Any]]] = None


class SplitInput(ApiModel):
    cell_id:     str
    orientation: str


class ResizeInput(ApiModel):
    cell_id: str
    ratio:   float


class CellInput(ApiModel):
    # Champs absents = inchangés (exclude_unset) ; null refusé
    cell_id:          str
    background_color: str = ""
    padding:          int = Field(20, ge=0)


class BlockInput(ApiModel):
    cell_id:    str
    block_type: str


class BlockUpdateInput(ApiModel):
    cell_id:  str
    block_id: str
    updates:  Dict[str, Any]
    content:  bool = False


class MoveInput(ApiModel):
    source_cell_id: str
    block_id:       str
    target_cell_id: Optional[str]            = None
    target_index:   Optional[int]            = None
    over_id:        Optional[str]            = None
    over_data:      Optional[Dict[str, Any]] = None
