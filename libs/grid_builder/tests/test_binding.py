"""Tests data binding — bascule, source, placeholders, projection."""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from grid_builder.binding import (
    apply_bindings, field_options, get_nested, replace_bindings, resolve_bound_value,
    toggle_binding, with_source_type,
)
from grid_builder.blocks import DataBinding, DataSourceType, new_block


PRODUCT = {
    "name": "Sneaker",
    "price": 79.9,
    "isPublished": True,
    "brand": {"name": "Acme"},
    "tags": ["run", "sport"],
    "images": ["https://cdn/a.jpg", "https://cdn/b.jpg"],
    "hasVariants": True,
    "attributeDefinitions": {"Color": ["Black", "White"], "Size": ["S", "M"]},
    "variants": [
        {"price": 70, "isActive": True, "images": ["https://cdn/v1.jpg", {"url": "https://cdn/a.jpg"}]},
        {"price": 90, "isActive": True, "images": []},
        {"price": 10, "isActive": False},
    ],
}
CONTEXT = {"product": PRODUCT}


# ── Bascule / source ──────────────────────────────────────────────────────────

def test_toggle_resets_fields():
    assert toggle_binding(True) == DataBinding(source_type=DataSourceType.PRODUCT)
    off = toggle_binding(False)
    assert off.source_type == DataSourceType.STATIC
    assert off.field_path is None and off.fallback_value is None and off.template_string is None


def test_switch_source_resets_field_path():
    binding = DataBinding(source_type="product", field_path="product.name", fallback_value="x")
    switched = with_source_type(binding, "category")
    assert switched.source_type == DataSourceType.CATEGORY
    assert switched.field_path is None
    assert switched.fallback_value == "x"
    assert with_source_type(binding, "product") is binding


def test_binding_completeness():
    assert DataBinding().is_complete
    assert not DataBinding(source_type="product").is_complete
    assert DataBinding(source_type="product", field_path="product.name").is_complete


# ── Placeholders ──────────────────────────────────────────────────────────────

def test_get_nested():
    assert get_nested(PRODUCT, "brand.name") == "Acme"
    assert get_nested(PRODUCT, "brand.country.code") is None
    assert get_nested(None, "x") is None


def test_replace_simple_and_nested():
    assert replace_bindings("{{product.name}} by {{product.brand.name}}", CONTEXT) == "Sneaker by Acme"


def test_replace_price_range_with_active_variants():
    assert replace_bindings("{{product.price}}", CONTEXT) == "$70.00 - $90.00"


def test_replace_price_without_variants():
    ctx = {"product": {"price": 12}}
    assert replace_bindings("{{product.price}}", ctx) == "$12.00"


def test_replace_formats():
    assert replace_bindings("{{product.isPublished}}", CONTEXT) == "Yes"
    assert replace_bindings("{{product.tags}}", CONTEXT) == "run, sport"
    assert replace_bindings("{{product.images}}", CONTEXT) == "https://cdn/a.jpg"
    assert replace_bindings("{{product.brand}}", CONTEXT) == "Acme"
    assert replace_bindings("{{product.variants}}", CONTEXT) == "3 variants available"
    assert replace_bindings("{{product.attributeDefinitions}}", CONTEXT) == "Color: Black, White | Size: S, M"


def test_replace_missing_value_and_source():
    assert replace_bindings("[{{product.missing}}]", CONTEXT) == "[]"
    assert replace_bindings("{{customer.email}}", CONTEXT) == "{{customer.email}}"


def test_replace_default_source():
    assert replace_bindings("{{name}}", CONTEXT, default_source="product") == "Sneaker"


def test_resolve_bound_value():
    binding = DataBinding(source_type="product", field_path="product.brand.name")
    assert resolve_bound_value(binding, CONTEXT) == "Acme"
    missing = DataBinding(source_type="product", field_path="product.sku", fallback_value="N/A")
    assert resolve_bound_value(missing, CONTEXT) == "N/A"
    template = DataBinding(source_type="product", template_string="Buy {{name}}")
    assert resolve_bound_value(template, CONTEXT) == "Buy Sneaker"
    assert resolve_bound_value(DataBinding(), CONTEXT) is None


# ── Application aux blocs ─────────────────────────────────────────────────────

def test_apply_bindings_text_block():
    block = new_block("text")
    block = block.model_copy(update={"content": block.content.merged({"text": "<h1>{{product.name}}</h1>"})})
    resolved = apply_bindings(block, CONTEXT)
    assert resolved.content.text == "<h1>Sneaker</h1>"
    assert block.content.text == "<h1>{{product.name}}</h1>"


def test_apply_bindings_gallery_all_images():
    block = new_block("mediaGallery")
    binding = {"sourceType": "product", "fieldPath": "product.allImages"}
    block = block.model_copy(update={"content": block.content.merged({"dataBinding": binding})})
    items = apply_bindings(block, CONTEXT).content.items
    assert [i.url for i in items] == ["https://cdn/a.jpg", "https://cdn/b.jpg", "https://cdn/v1.jpg"]
    assert items[0].alt == "Sneaker - Image 1"


def test_apply_bindings_gallery_variant_images_and_skip():
    block = new_block("mediaGallery")
    binding = {"sourceType": "product", "fieldPath": "product.variantImages"}
    block = block.model_copy(update={"content": block.content.merged({"dataBinding": binding})})
    assert [i.url for i in apply_bindings(block, CONTEXT).content.items] == ["https://cdn/v1.jpg", "https://cdn/a.jpg"]
    assert apply_bindings(block, CONTEXT, skip_media_gallery=True) is block


# ── Options de champs ─────────────────────────────────────────────────────────

def test_field_options():
    text_fields = [o["value"] for o in field_options("product", "text")]
    assert "product.name" in text_fields
    gallery = [o["value"] for o in field_options(DataSourceType.PRODUCT, "mediaGallery")]
    assert gallery[0] == "product.allImages"
    assert field_options("static", "text") == []
    assert [o["value"] for o in field_options("collection", "image")] == ["collection.name", "collection.description"]
