"""Bloc MediaGallery — carrousels, diaporamas, grille. Fallback du binding = liste."""
from typing import List, Literal, Optional
from pydantic import Field

from .base import BaseBlock, BlockContent, BuilderModel, DataBinding

DisplayMode = Literal["carousel1", "carousel2", "slideshow1", "slideshow2", "grid", "thumbnails"]


class MediaItem(BuilderModel):
    type:      Literal["image", "video"] = "image"
    url:       str
    alt:       Optional[str] = None
    thumbnail: Optional[str] = None
    link:      Optional[str] = None
    id:        Optional[str] = None


class MediaGalleryContent(BlockContent):
    items:                List[MediaItem] = Field(default_factory=list)
    display_mode:         DisplayMode = "carousel1"
    items_per_view:       int  = 1
    auto_play:            bool = False
    auto_play_interval:   int  = 3000
    show_thumbnails:      bool = True
    thumbnail_position:   Literal["bottom", "right", "left"] = "bottom"
    transition_animation: Literal["slide", "fade", "zoom", "flip", "cube", "coverflow"] = "slide"
    transition_speed:     int  = 500
    aspect_ratio:         Literal["16:9", "4:3", "1:1", "auto"] = "16:9"
    width:                str  = "100%"
    show_dots:            bool = True
    show_arrows:          bool = True
    data_binding:         DataBinding = Field(default_factory=lambda: DataBinding(fallback_value=[]))


class MediaGalleryBlock(BaseBlock):
    type:    Literal["mediaGallery"] = "mediaGallery"
    content: MediaGalleryContent     = Field(default_factory=MediaGalleryContent)
