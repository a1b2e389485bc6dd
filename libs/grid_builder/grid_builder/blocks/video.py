"""Bloc Video — embed (youtube/vimeo) ou fichier (direct/cloudinary)."""
import re
from typing import Literal, Optional, Tuple
from pydantic import Field

from .base import BaseBlock, BlockContent, DataBinding

EMBED_KINDS = ("youtube", "vimeo")


class VideoContent(BlockContent):
    video_url:    str  = ""
    video_type:   Literal["youtube", "vimeo", "direct", "cloudinary"] = "youtube"
    controls:     bool = True
    autoplay:     bool = False
    loop:         bool = False
    width:        str  = "100%"
    data_binding: DataBinding = Field(default_factory=lambda: DataBinding(fallback_value=""))

    @property
    def is_embed(self) -> bool:
        return self.video_type in EMBED_KINDS


class VideoBlock(BaseBlock):
    type:    Literal["video"] = "video"
    content: VideoContent     = Field(default_factory=VideoContent)


_YOUTUBE = re.compile(r"(?:youtube\.com/watch\?v=|youtu\.be/)([^&]+)")
_VIMEO   = re.compile(r"vimeo\.com/(\d+)")
_FILE    = re.compile(r"\.(mp4|webm|ogg)$", re.IGNORECASE)


def parse_video_url(url: str) -> Optional[Tuple[str, str]]:
    """(url d'embed, nature) avec nature ∈ youtube|vimeo|file ; None si non reconnue."""
    if not url:
        return None
    m = _YOUTUBE.search(url)
    if m:
        return f"https://www.youtube.com/embed/{m.group(1)}", "youtube"
    m = _VIMEO.search(url)
    if m:
        return f"https://player.vimeo.com/video/{m.group(1)}", "vimeo"
    if url.startswith("data:video") or _FILE.search(url):
        return url, "file"
    return None
