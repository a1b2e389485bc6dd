"""
Blocs — exports publics + BlockUnion discriminée par `type`.

Les types hors catalogue ne sont pas rejetés : ils tombent sur GenericBlock
(contenu minimal : width + dataBinding statique).
"""
from typing import Annotated, Any, Union
from pydantic import Discriminator, Tag

from .base import (
    BaseBlock, BlockContent, BuilderModel, DataBinding, DataSourceType,
    DEFAULT_BLOCK_PADDING, merged_dump, new_id,
)
from .text import TextBlock, TextContent
from .image import ImageBlock, ImageContent
from .video import VideoBlock, VideoContent, parse_video_url
from .button import ButtonBlock, ButtonContent
from .media_gallery import MediaGalleryBlock, MediaGalleryContent, MediaItem
from .product_list import ProductListBlock, ProductListContent, ProductFilter
from .product_attribute_selector import ProductAttributeSelectorBlock
from .generic import GenericBlock, GenericContent

_BLOCK_REGISTRY: dict = {
    "text":                     TextBlock,
    "image":                    ImageBlock,
    "video":                    VideoBlock,
    "button":                   ButtonBlock,
    "mediaGallery":             MediaGalleryBlock,
    "productList":              ProductListBlock,
    "productAttributeSelector": ProductAttributeSelectorBlock,
}

BLOCK_TYPES = tuple(_BLOCK_REGISTRY)


def _block_tag(value: Any) -> str:
    block_type = value.get("type") if isinstance(value, dict) else getattr(value, "type", None)
    return block_type if block_type in _BLOCK_REGISTRY else "generic"


BlockUnion = Annotated[
    Union[
        Annotated[TextBlock, Tag("text")],
        Annotated[ImageBlock, Tag("image")],
        Annotated[VideoBlock, Tag("video")],
        Annotated[ButtonBlock, Tag("button")],
        Annotated[MediaGalleryBlock, Tag("mediaGallery")],
        Annotated[ProductListBlock, Tag("productList")],
        Annotated[ProductAttributeSelectorBlock, Tag("productAttributeSelector")],
        Annotated[GenericBlock, Tag("generic")],
    ],
    Discriminator(_block_tag),
]


def default_content(block_type: str) -> BlockContent:
    """Contenu par défaut d'un type de bloc (type inconnu → contenu minimal)."""
    match block_type:
        case "text":
            return TextContent()
        case "image":
            return ImageContent()
        case "video":
            return VideoContent()
        case "button":
            return ButtonContent()
        case "mediaGallery":
            return MediaGalleryContent()
        case "productList":
            return ProductListContent()
        case "productAttributeSelector":
            return BlockContent()
        case _:
            return GenericContent()


def new_block(block_type: str) -> BaseBlock:
    """Nouveau bloc (id frais) avec le contenu par défaut de son type."""
    block_cls = _BLOCK_REGISTRY.get(block_type, GenericBlock)
    return block_cls(type=block_type, content=default_content(block_type))


__all__ = [
    # Base
    "BaseBlock", "BlockContent", "BuilderModel", "DataBinding", "DataSourceType",
    "DEFAULT_BLOCK_PADDING", "merged_dump", "new_id",
    # Types
    "TextBlock", "TextContent",
    "ImageBlock", "ImageContent",
    "VideoBlock", "VideoContent", "parse_video_url",
    "ButtonBlock", "ButtonContent",
    "MediaGalleryBlock", "MediaGalleryContent", "MediaItem",
    "ProductListBlock", "ProductListContent", "ProductFilter",
    "ProductAttributeSelectorBlock",
    "GenericBlock", "GenericContent",
    # Union + construction
    "BlockUnion", "BLOCK_TYPES", "default_content", "new_block",
]
