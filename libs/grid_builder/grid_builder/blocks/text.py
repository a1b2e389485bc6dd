"""Bloc Text — HTML riche, template {{champ}} possible via dataBinding."""
from typing import Literal, Optional
from pydantic import Field

from .base import BaseBlock, BlockContent, DataBinding


class TextContent(BlockContent):
    text:         str                                          = ""
    text_align:   Literal["left", "center", "right", "justify"] = "left"
    font_size:    str                                          = "16px"
    font_weight:  Optional[Literal["normal", "bold", "lighter", "bolder"]] = None
    color:        str                                          = "inherit"
    width:        str                                          = "100%"
    data_binding: DataBinding                                  = Field(default_factory=DataBinding)


class TextBlock(BaseBlock):
    type:    Literal["text"] = "text"
    content: TextContent     = Field(default_factory=TextContent)
