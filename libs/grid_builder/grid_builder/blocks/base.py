"""
Blocs de base du builder.
Content séparé du bloc (padding, fonds) + DataBinding commun à tous les types.
"""
import uuid
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DEFAULT_BLOCK_PADDING = 20


def new_id() -> str:
    """Identifiant opaque (cellules, blocs) — stable pour toute la vie du document."""
    return uuid.uuid4().hex[:21]


class BuilderModel(BaseModel):
    """Modèle à champs snake_case, sérialisé en camelCase (format du document JSON)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DataSourceType(str, Enum):
    STATIC     = "static"
    PRODUCT    = "product"
    CATEGORY   = "category"
    COLLECTION = "collection"
    CUSTOMER   = "customer"


class DataBinding(BuilderModel):
    """
    Lien entre le contenu d'un bloc et un champ d'une source externe.

    field_path est requis pour résoudre une source non statique ; un binding
    fraîchement basculé n'en a pas encore (voir binding.toggle_binding).
    """
    source_type:     DataSourceType = DataSourceType.STATIC
    field_path:      Optional[str]  = None
    fallback_value:  Any            = None
    template_string: Optional[str]  = None

    @property
    def is_bound(self) -> bool:
        return self.source_type != DataSourceType.STATIC

    @property
    def is_complete(self) -> bool:
        return not self.is_bound or bool(self.field_path)


def merged_dump(model: BaseModel, updates: dict) -> dict:
    """Dump camelCase de `model` fusionné superficiellement avec `updates` (clés camelCase ou snake_case)."""
    names = {name: (field.alias or name) for name, field in type(model).model_fields.items()}
    data = model.model_dump(by_alias=True)
    for key, value in updates.items():
        data[names.get(key, key)] = value
    return data


class BlockContent(BuilderModel):
    """Contenu d'un bloc. Les champs inconnus sont conservés tels quels."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    def merged(self, updates: dict) -> "BlockContent":
        """Fusion superficielle, revalidée."""
        return type(self).model_validate(merged_dump(self, updates))


class BaseBlock(BuilderModel):
    """Bloc de base (classe parente de tous les blocs)."""
    block_id:               str           = Field(default_factory=new_id)
    type:                   str
    content:                BlockContent  = Field(default_factory=BlockContent)
    padding:                int           = DEFAULT_BLOCK_PADDING
    background_color:       Optional[str] = None
    background_color_light: Optional[str] = None
    background_color_dark:  Optional[str] = None
