"""Bloc Button — le label peut contenir des placeholders {{source.champ}}."""
from typing import Literal
from pydantic import Field

from .base import BaseBlock, BlockContent, DataBinding


class ButtonContent(BlockContent):
    button_text:    str  = "Click Me"
    button_link:    str  = "#"
    button_style:   Literal["primary", "secondary", "outline", "ghost", "link"] = "primary"
    button_size:    Literal["xs", "sm", "md", "lg", "xl"] = "md"
    open_in_new_tab: bool = False
    button_target:  Literal["_self", "_blank"] = "_self"
    width:          str  = "auto"
    data_binding:   DataBinding = Field(default_factory=DataBinding)


class ButtonBlock(BaseBlock):
    type:    Literal["button"] = "button"
    content: ButtonContent     = Field(default_factory=ButtonContent)
