"""Bloc ProductList — liste filtrée de produits."""
from typing import List, Literal, Optional
from pydantic import Field

from .base import BaseBlock, BlockContent, BuilderModel, DataBinding


class ProductFilter(BuilderModel):
    filter_type:  Literal["all", "category", "brand", "tags", "featured",
                          "bestsellers", "newArrivals", "onSale", "custom"] = "all"
    category_ids: List[str]     = Field(default_factory=list)
    brand_ids:    List[str]     = Field(default_factory=list)
    tags:         List[str]     = Field(default_factory=list)
    custom_query: Optional[str] = None
    sort_by:      Optional[Literal["price-asc", "price-desc", "name-asc",
                                   "name-desc", "newest", "popular"]] = None
    limit:        int           = 12


class ProductListContent(BlockContent):
    product_filter:   ProductFilter = Field(default_factory=ProductFilter)
    display_style:    Literal["grid", "carousel", "list", "masonry"] = "grid"
    columns:          int  = 4
    show_price:       bool = True
    show_add_to_cart: bool = True
    show_quick_view:  bool = False
    width:            str  = "100%"
    data_binding:     DataBinding = Field(default_factory=DataBinding)


class ProductListBlock(BaseBlock):
    type:    Literal["productList"] = "productList"
    content: ProductListContent     = Field(default_factory=ProductListContent)
