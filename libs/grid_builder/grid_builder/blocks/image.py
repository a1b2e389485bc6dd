"""Bloc Image — image seule avec lien optionnel."""
from typing import Literal
from pydantic import Field

from .base import BaseBlock, BlockContent, DataBinding


class ImageContent(BlockContent):
    image_url:    str = ""
    image_alt:    str = ""
    image_fit:    Literal["cover", "contain", "fill", "none", "scale-down"] = "cover"
    image_link:   str = ""
    width:        str = "100%"
    data_binding: DataBinding = Field(default_factory=lambda: DataBinding(fallback_value=""))


class ImageBlock(BaseBlock):
    type:    Literal["image"] = "image"
    content: ImageContent     = Field(default_factory=ImageContent)
