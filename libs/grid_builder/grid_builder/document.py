"""
PageDocument — unité de chargement / sauvegarde du builder.

Titre, slug, publication, SEO, réglages de page (thème, marges) et
gridCells (liste plate de toutes les cellules, racines comprises).
"""
import re
from datetime import datetime
from typing import List, Literal, Optional, Tuple, Union

from pydantic import Field

from .blocks import BuilderModel
from .cells import Cell, GridTree, default_grid

PageType = Literal["landing", "content", "category", "brand", "custom"]

# Couleurs par défaut du canevas (fond, texte)
_ADMIN_LIGHT  = ("#ffffff", "#000000")
_ADMIN_DARK   = ("#1a1b1e", "#c1c2c5")
_CUSTOM_LIGHT = ("#ffffff", "#000000")
_CUSTOM_DARK  = ("#1a1b1e", "#ffffff")


class ThemeColors(BuilderModel):
    background_color: Optional[str] = None
    text_color:       Optional[str] = None


class CustomTheme(BuilderModel):
    light: ThemeColors = Field(default_factory=ThemeColors)
    dark:  ThemeColors = Field(default_factory=ThemeColors)


class PageMargins(BuilderModel):
    top:    int = 0
    bottom: int = 0
    left:   int = 0
    right:  int = 0


class PageSettings(BuilderModel):
    header_visible: bool                          = True
    footer_visible: bool                          = True
    custom_css:     Optional[str]                 = Field(default=None, alias="customCSS")
    canonical_url:  Optional[str]                 = None
    theme_mode:     Literal["inherit", "custom"]  = "inherit"
    custom_theme:   CustomTheme                   = Field(default_factory=CustomTheme)
    page_margins:   PageMargins                   = Field(default_factory=PageMargins)


class PageDocument(BuilderModel):
    """Document complet d'une page dynamique."""
    id:              Optional[str]      = None
    title:           str
    slug:            str                = ""
    description:     Optional[str]      = None
    page_type:       PageType           = "custom"
    is_published:    bool               = False
    publish_date:    Optional[datetime] = None
    unpublish_date:  Optional[datetime] = None
    seo_title:       Optional[str]      = None
    seo_description: Optional[str]      = None
    seo_keywords:    List[str]          = Field(default_factory=list)
    og_image:        Optional[str]      = None
    page_settings:   PageSettings       = Field(default_factory=PageSettings)
    grid_cells:      List[Cell]         = Field(default_factory=list)
    created_at:      Optional[datetime] = None
    updated_at:      Optional[datetime] = None

    @property
    def tree(self) -> GridTree:
        return GridTree(self.grid_cells)

    def with_tree(self, tree: GridTree) -> "PageDocument":
        return self.model_copy(update={"grid_cells": tree.to_cells()})

    def dump(self) -> dict:
        """Payload JSON (camelCase) tel qu'envoyé à l'API."""
        return self.model_dump(by_alias=True, mode="json")


def slugify(text: str) -> str:
    """Minuscules, espaces → '-', caractères hors [A-Za-z0-9_-] supprimés."""
    slug = re.sub(r"\s+", "-", (text or "").strip().lower())
    return re.sub(r"[^\w-]+", "", slug, flags=re.ASCII)


def new_page(title: str, slug: Optional[str] = None, **fields) -> PageDocument:
    """Création minimale « nouvelle page » : slug dérivé du titre, une racine vide."""
    return PageDocument(
        title=title,
        slug=slugify(slug or title),
        grid_cells=default_grid().to_cells(),
        **fields,
    )


def normalize_loaded(data: Union[dict, PageDocument]) -> PageDocument:
    """Document chargé : gridCells absent ou vide → une racine feuille vide."""
    doc = data if isinstance(data, PageDocument) else PageDocument.model_validate(data)
    if not doc.grid_cells:
        doc = doc.with_tree(default_grid())
    return doc


def canvas_colors(settings: PageSettings, dark: bool = False) -> Tuple[str, str]:
    """(fond, texte) du canevas d'édition selon le mode de thème et le schéma clair/sombre."""
    if settings.theme_mode != "custom":
        return _ADMIN_DARK if dark else _ADMIN_LIGHT
    colors = settings.custom_theme.dark if dark else settings.custom_theme.light
    default_bg, default_text = _CUSTOM_DARK if dark else _CUSTOM_LIGHT
    return colors.background_color or default_bg, colors.text_color or default_text
