from __future__ import annotations
import re
from typing import Literal
from urllib.parse import urlparse, parse_qs

Platform = Literal["youtube", "tiktok", "instagram", "other"]

_YOUTUBE_RE = re.compile(r"^(https?://)?(www\.)?(youtube\.com|youtu\.be)/.+")
_TIKTOK_VIDEO_RE = re.compile(r"/video/(\d+)")
_TIKTOK_USER_RE = re.compile(r"@([^/?#]+)")
_INSTAGRAM_CODE_RE = re.compile(r"instagram\.com/(?:p|reel)/([A-Za-z0-9_-]+)")


def is_http_url(url: str) -> bool:
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def detect_platform(url: str) -> Platform:
    try:
        host = (urlparse(url).hostname or "").lower()
    except ValueError:
        return "other"
    if "youtube.com" in host or "youtu.be" in host:
        return "youtube"
    if "tiktok.com" in host:
        return "tiktok"
    if "instagram.com" in host:
        return "instagram"
    return "other"


def is_youtube_url(url: str) -> bool:
    return bool(_YOUTUBE_RE.match(url or ""))


def youtube_video_id(url: str) -> str | None:
    """Handles watch?v=, youtu.be/<id>, /shorts/<id> and /embed/<id>."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return None
    host = (parsed.hostname or "").lower()
    parts = [p for p in parsed.path.split("/") if p]
    if "youtu.be" in host:
        return parts[0] if parts else None
    if "youtube.com" not in host:
        return None
    if parts and parts[0] in ("shorts", "embed", "live") and len(parts) > 1:
        return parts[1]
    return (parse_qs(parsed.query).get("v") or [None])[0]


def tiktok_video_id(url: str) -> str | None:
    m = _TIKTOK_VIDEO_RE.search(url or "")
    return m.group(1) if m else None


def tiktok_username(url: str) -> str | None:
    m = _TIKTOK_USER_RE.search(url or "")
    return m.group(1) if m else None


def instagram_shortcode(url: str) -> str | None:
    m = _INSTAGRAM_CODE_RE.search(url or "")
    return m.group(1) if m else None
