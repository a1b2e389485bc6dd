"""Bloc générique — tout type hors catalogue (spacer, divider, map…), contenu minimal."""
from pydantic import Field

from .base import BaseBlock, BlockContent, DataBinding


class GenericContent(BlockContent):
    width:        str         = "100%"
    data_binding: DataBinding = Field(default_factory=DataBinding)


class GenericBlock(BaseBlock):
    type:    str            = "generic"
    content: GenericContent = Field(default_factory=GenericContent)
