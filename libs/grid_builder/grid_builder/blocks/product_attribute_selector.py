"""
Bloc ProductAttributeSelector — toujours dynamique, aucun contenu propre.
Les contrôles de variantes sont rendus contre les données produit fournies
de l'extérieur (voir variants.match_variant).
"""
from typing import Literal
from pydantic import Field

from .base import BaseBlock, BlockContent


class ProductAttributeSelectorBlock(BaseBlock):
    type:    Literal["productAttributeSelector"] = "productAttributeSelector"
    content: BlockContent = Field(default_factory=BlockContent)
