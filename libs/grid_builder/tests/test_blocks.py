"""Tests blocs — contenus par défaut, union discriminée, URL vidéo."""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest
from pydantic import TypeAdapter

from grid_builder.blocks import (
    BLOCK_TYPES, BlockUnion, ButtonContent, GenericBlock, MediaGalleryContent,
    ProductAttributeSelectorBlock, TextBlock, default_content, new_block, parse_video_url,
)

_ADAPTER = TypeAdapter(BlockUnion)


# ── Contenus par défaut ───────────────────────────────────────────────────────

def test_text_defaults():
    content = default_content("text")
    assert content.text == ""
    assert content.text_align == "left"
    assert content.font_size == "16px"
    assert content.color == "inherit"
    assert content.width == "100%"
    assert not content.data_binding.is_bound


def test_button_defaults():
    content = default_content("button")
    assert isinstance(content, ButtonContent)
    assert (content.button_text, content.button_link) == ("Click Me", "#")
    assert (content.button_style, content.button_size) == ("primary", "md")


def test_media_gallery_fallback_is_list():
    content = default_content("mediaGallery")
    assert isinstance(content, MediaGalleryContent)
    assert content.items == []
    assert content.data_binding.fallback_value == []
    assert content.auto_play_interval == 3000


def test_image_and_video_fallback_empty_string():
    assert default_content("image").data_binding.fallback_value == ""
    assert default_content("video").data_binding.fallback_value == ""


def test_product_list_columns():
    content = default_content("productList")
    assert content.columns == 4
    assert content.product_filter.filter_type == "all"


def test_attribute_selector_has_no_content():
    block = new_block("productAttributeSelector")
    assert isinstance(block, ProductAttributeSelectorBlock)
    assert block.content.model_dump() == {}


@pytest.mark.parametrize("block_type", ["divider", "spacer", "map", ""])
def test_unknown_types_minimal(block_type):
    content = default_content(block_type)
    assert set(content.model_dump(by_alias=True)) == {"width", "dataBinding"}


def test_every_catalog_type_builds():
    for block_type in BLOCK_TYPES:
        block = new_block(block_type)
        assert block.type == block_type
        assert block.padding == 20


# ── Union discriminée ─────────────────────────────────────────────────────────

def test_union_picks_declared_type():
    block = _ADAPTER.validate_python({"blockId": "b", "type": "text", "content": {"text": "x"}})
    assert isinstance(block, TextBlock)


def test_union_falls_back_to_generic():
    block = _ADAPTER.validate_python({"blockId": "b", "type": "accordion",
                                      "content": {"accordionItems": [{"title": "Q"}]}})
    assert isinstance(block, GenericBlock)
    dumped = block.model_dump(by_alias=True)
    assert dumped["type"] == "accordion"
    assert dumped["content"]["accordionItems"] == [{"title": "Q"}]


def test_unknown_content_fields_preserved():
    block = _ADAPTER.validate_python({"blockId": "b", "type": "text",
                                      "content": {"text": "x", "lineHeight": "1.5"}})
    assert block.model_dump(by_alias=True)["content"]["lineHeight"] == "1.5"


def test_block_wire_format_camel_case():
    data = new_block("image").model_dump(by_alias=True)
    assert {"blockId", "type", "content", "padding"} <= set(data)
    assert {"imageUrl", "imageAlt", "imageFit", "dataBinding"} <= set(data["content"])


# ── Vidéo ─────────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("url,expected", [
    ("https://www.youtube.com/watch?v=abc123&t=3", ("https://www.youtube.com/embed/abc123", "youtube")),
    ("https://youtu.be/xyz", ("https://www.youtube.com/embed/xyz", "youtube")),
    ("https://vimeo.com/76979871", ("https://player.vimeo.com/video/76979871", "vimeo")),
    ("https://cdn.example.com/clip.MP4", ("https://cdn.example.com/clip.MP4", "file")),
])
def test_parse_video_url(url, expected):
    assert parse_video_url(url) == expected


def test_parse_video_url_unknown():
    assert parse_video_url("https://example.com/page") is None
    assert parse_video_url("") is None


def test_video_is_embed():
    content = default_content("video")
    assert content.is_embed
    assert not content.merged({"videoType": "direct"}).is_embed
