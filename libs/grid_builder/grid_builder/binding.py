"""
Data binding — bascule statique / lié, choix de source, résolution.

Placeholders {{source.chemin}} (ex. {{product.brand.name}}) résolus contre
un contexte {"product": {...}, "category": {...}, "customer": {...},
"collection": {...}}. Source absente du contexte → placeholder laissé
intact ; valeur absente → chaîne vide.
"""
import json
import logging
import re
from typing import Any, Dict, List, Optional

from .blocks import BaseBlock, DataBinding, DataSourceType

log = logging.getLogger(__name__)

_BINDING_RE = re.compile(r"\{\{([^}]+)\}\}")

# Champs texte du contenu où les placeholders sont résolus
_BOUND_FIELDS = (
    "text", "buttonText", "buttonLink",
    "imageUrl", "imageAlt", "imageLink",
    "videoUrl", "htmlContent",
)
_CAROUSEL_FIELDS = ("title", "subtitle", "buttonText", "imageUrl", "link")

_SOURCES = tuple(s.value for s in DataSourceType if s is not DataSourceType.STATIC)


# ── Bascule / source ───────────────────────────────────────────────────────────

def toggle_binding(enabled: bool) -> DataBinding:
    """
    Nouveau binding après bascule : product si activé, static sinon.
    fieldPath, fallbackValue et templateString repartent de zéro.
    """
    return DataBinding(source_type=DataSourceType.PRODUCT if enabled else DataSourceType.STATIC)


def with_source_type(binding: DataBinding, source_type: DataSourceType) -> DataBinding:
    """Change la source ; le fieldPath de l'ancienne source est abandonné."""
    source_type = DataSourceType(source_type)
    if source_type == binding.source_type:
        return binding
    return binding.model_copy(update={"source_type": source_type, "field_path": None})


# ── Résolution ─────────────────────────────────────────────────────────────────

def get_nested(obj: Any, path: str) -> Any:
    """'brand.name' → obj['brand']['name'] ; None dès qu'un maillon manque."""
    if obj is None or not path:
        return None
    value = obj
    for key in path.split("."):
        if value is None:
            return None
        if isinstance(value, dict):
            value = value.get(key)
        else:
            value = getattr(value, key, None)
    return value


def _money(value: float) -> str:
    return f"${value:.2f}"


def _format(field_path: str, value: Any, context: dict) -> str:
    if field_path in ("category", "brand") and isinstance(value, dict) and value.get("name"):
        return value["name"]

    product = context.get("product") or {}
    if field_path == "price" and product.get("hasVariants") and product.get("variants"):
        prices = [
            v.get("price") or product.get("price") or 0
            for v in product["variants"] if v.get("isActive")
        ]
        if prices:
            low, high = min(prices), max(prices)
            return _money(low) if low == high else f"{_money(low)} - {_money(high)}"

    if field_path in ("attributeDefinitions", "attributes") and isinstance(value, dict):
        return " | ".join(
            f"{key}: {', '.join(map(str, values))}" if isinstance(values, list) else f"{key}: {values}"
            for key, values in value.items()
        )

    if field_path == "variants":
        if isinstance(value, list) and value:
            return f"{len(value)} variant{'s' if len(value) > 1 else ''} available"
        return "No variants"

    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, (int, float)):
        if "price" in field_path or "Price" in field_path:
            return _money(value)
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        return str(value)
    if isinstance(value, list):
        if field_path == "images" and value:
            return str(value[0])
        return ", ".join(str(v) for v in value)
    if isinstance(value, dict):
        if value.get("name"):
            return value["name"]
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return str(value)


def replace_bindings(text: Optional[str], context: Dict[str, Any],
                     default_source: Optional[str] = None) -> Optional[str]:
    """
    Remplace chaque {{source.chemin}} par sa valeur formatée.

    default_source : source du binding du bloc, utilisée quand le
    placeholder ne commence pas par un nom de source ({{name}}).
    """
    if not text:
        return text

    def replacer(match):
        binding = match.group(1).strip()
        source, _, field_path = binding.partition(".")
        if source not in _SOURCES and default_source:
            source, field_path = default_source, binding
        data = context.get(source)
        if not data:
            return match.group(0)
        value = get_nested(data, field_path)
        if value is None:
            return ""
        return _format(field_path, value, context)

    return _BINDING_RE.sub(replacer, text)


def resolve_bound_value(binding: DataBinding, context: Dict[str, Any]) -> Any:
    """
    Valeur projetée par un binding : template résolu si présent, sinon le
    champ fieldPath de la source ; fallbackValue quand le champ manque.
    None pour un binding statique (le contenu du bloc fait foi).
    """
    if not binding.is_bound:
        return None
    source = binding.source_type.value
    if binding.template_string:
        return replace_bindings(binding.template_string, context, default_source=source)
    if not binding.field_path:
        return binding.fallback_value
    path = binding.field_path
    if path.startswith(source + "."):
        path = path[len(source) + 1:]
    value = get_nested(context.get(source), path)
    return binding.fallback_value if value is None else value


def _product_images(product: dict, field_path: str) -> List[str]:
    def variant_images():
        urls: List[str] = []
        if product.get("hasVariants"):
            for variant in product.get("variants") or []:
                for img in variant.get("images") or []:
                    url = img if isinstance(img, str) else img.get("url")
                    if url and url not in urls:
                        urls.append(url)
        return urls

    base = list(product.get("images") or [])
    if "allImages" in field_path:
        return base + [u for u in variant_images() if u not in base]
    if "baseImages" in field_path or "product.images" in field_path:
        return base
    if "variantImages" in field_path:
        return variant_images()
    return []


def apply_bindings(block: BaseBlock, context: Dict[str, Any], skip_media_gallery: bool = False) -> BaseBlock:
    """
    Copie du bloc avec placeholders résolus dans ses champs texte ; une
    galerie liée à un produit reçoit les images projetées selon fieldPath.
    """
    if skip_media_gallery and block.type == "mediaGallery":
        return block

    content = block.content.model_dump(by_alias=True)
    for field in _BOUND_FIELDS:
        if content.get(field):
            content[field] = replace_bindings(content[field], context)

    for item in content.get("accordionItems") or []:
        item["title"] = replace_bindings(item.get("title"), context)
        item["content"] = replace_bindings(item.get("content"), context)
    for item in content.get("carouselItems") or []:
        for field in _CAROUSEL_FIELDS:
            if item.get(field):
                item[field] = replace_bindings(item[field], context)

    product = context.get("product")
    if block.type == "mediaGallery" and product:
        field_path = (content.get("dataBinding") or {}).get("fieldPath") or ""
        images = _product_images(product, field_path)
        log.debug("apply_bindings galerie %s : %d image(s)", block.block_id, len(images))
        if images:
            name = product.get("name") or "Product"
            content["items"] = [
                {
                    "id": f"media-{url.rsplit('/', 1)[-1]}-{i}",
                    "type": "image",
                    "url": url,
                    "alt": f"{name} - Image {i + 1}",
                    "thumbnail": url,
                }
                for i, url in enumerate(images)
            ]

    return block.model_copy(update={"content": type(block.content).model_validate(content)})


# ── Options de champs (éditeur) ────────────────────────────────────────────────

def _opt(value: str, label: str, description: Optional[str] = None) -> dict:
    opt = {"value": value, "label": label}
    if description:
        opt["description"] = description
    return opt


_FIELD_OPTIONS: Dict[str, Dict[str, List[dict]]] = {
    "product": {
        "text": [
            _opt("product.name", "Product Name", "The product title"),
            _opt("product.description", "Product Description", "Full product description"),
            _opt("product.slug", "Product Slug", "URL-friendly identifier"),
            _opt("product.sku", "Product SKU", "Stock keeping unit"),
            _opt("product.price", "Product Price", "Base price"),
            _opt("product.stockQuantity", "Stock Quantity", "Available stock"),
            _opt("product.category", "Category Name", "Product category"),
            _opt("product.brand", "Brand Name", "Product brand"),
            _opt("product.tags", "Product Tags", "Comma-separated tags"),
            _opt("product.seoTitle", "SEO Title", "SEO title (fallback to product name)"),
            _opt("product.seoDescription", "SEO Description", "SEO meta description"),
            _opt("product.isPublished", "Published Status", "Whether product is published"),
            _opt("product.createdAt", "Created Date", "When product was created"),
            _opt("product.updatedAt", "Updated Date", "Last update date"),
            _opt("product.hasVariants", "Has Variants", "Whether product has variants"),
            _opt("product.attributeDefinitions", "Attribute Definitions", "Available attributes (Color, Size, etc.)"),
        ],
        "mediaGallery": [
            _opt("product.allImages", "All Product Images", "Base images + all variant images"),
            _opt("product.baseImages", "Base Images Only", "Only the main product images"),
            _opt("product.variantImages", "Variant Images Only", "Images from all variants"),
            _opt("product.images", "Product Images (Legacy)", "Base product images"),
        ],
        "button": [
            _opt("product.name", "Product Name", "Use in button text"),
            _opt("product.price", "Product Price", "Use in button text"),
        ],
        "*": [
            _opt("product.name", "Product Name"),
            _opt("product.description", "Product Description"),
            _opt("product.price", "Product Price"),
            _opt("product.images", "Product Images"),
        ],
    },
    "category": {
        "text": [
            _opt("category.name", "Category Name", "The category name"),
            _opt("category.slug", "Category Slug", "URL-friendly identifier"),
            _opt("category.isPublished", "Published Status", "Whether category is published"),
            _opt("category.createdAt", "Created Date", "When category was created"),
            _opt("category.updatedAt", "Updated Date", "Last update date"),
        ],
        "mediaGallery": [_opt("category.image", "Category Banner/Image")],
        "*": [
            _opt("category.name", "Category Name"),
            _opt("category.slug", "Category Slug"),
        ],
    },
    "customer": {
        "text": [
            _opt("customer.email", "Customer Email", "Customer email address"),
            _opt("customer.firstName", "First Name", "Customer first name"),
            _opt("customer.lastName", "Last Name", "Customer last name"),
            _opt("customer.phoneNumber", "Phone Number", "Customer phone number"),
            _opt("customer.isActive", "Active Status", "Whether customer is active"),
            _opt("customer.createdAt", "Member Since", "When customer registered"),
            _opt("customer.addresses.street", "Address - Street"),
            _opt("customer.addresses.city", "Address - City"),
            _opt("customer.addresses.state", "Address - State"),
            _opt("customer.addresses.zipCode", "Address - ZIP Code"),
            _opt("customer.addresses.country", "Address - Country"),
        ],
        "*": [
            _opt("customer.firstName", "First Name"),
            _opt("customer.lastName", "Last Name"),
            _opt("customer.email", "Email"),
        ],
    },
    "collection": {
        "*": [
            _opt("collection.name", "Collection Name"),
            _opt("collection.description", "Collection Description"),
        ],
    },
}


def field_options(source_type: DataSourceType, block_type: str) -> List[dict]:
    """Champs proposés dans l'éditeur pour (source, type de bloc) ; vide pour static."""
    by_block = _FIELD_OPTIONS.get(DataSourceType(source_type).value)
    if not by_block:
        return []
    return [dict(o) for o in by_block.get(block_type, by_block["*"])]
