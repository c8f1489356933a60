from __future__ import annotations
import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone as dt_tz
from typing import Any
import httpx
import structlog
from app.config import Settings, settings as default_settings
from app.services.platforms import (
    detect_platform, youtube_video_id, tiktok_video_id, tiktok_username, instagram_shortcode,
)

log = structlog.get_logger()

YOUTUBE_API_BASE = "https://www.googleapis.com/youtube/v3"
TIKTOK_API_BASE = "https://open-api.tiktok.com"
TIKTOK_RESEARCH_API_BASE = "https://open.tiktokapis.com"
INSTAGRAM_GRAPH_API_BASE = "https://graph.facebook.com/v21.0"
PEEKALINK_API_URL = "https://api.peekalink.io/"

TIKTOK_QUERY_FIELDS = [
    "id", "create_time", "cover_image_url", "share_url", "video_description", "duration",
    "title", "like_count", "comment_count", "share_count", "view_count",
]


class PlatformFetchError(Exception):
    pass


@dataclass
class VideoStats:
    url: str
    platform: str
    view_count: int | None = None
    success: bool = False
    error: str | None = None
    title: str | None = None
    description: str | None = None
    author: str | None = None
    thumbnail: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass
class LinkPreview:
    title: str | None = None
    description: str | None = None
    image: str | None = None


def _as_dict(value: Any, what: str) -> dict:
    if not isinstance(value, dict):
        raise PlatformFetchError(f"Unexpected {what} response shape")
    return value


def _first(items: Any, what: str) -> dict | None:
    """First element of a provider list; None when the list is empty."""
    if not items:
        return None
    if not isinstance(items, list):
        raise PlatformFetchError(f"Unexpected {what} response shape")
    return _as_dict(items[0], what)


def _to_int(value: Any, what: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise PlatformFetchError(f"{what} returned a non-numeric count: {value!r}")


def _json(r: httpx.Response, what: str) -> dict:
    return _as_dict(r.json(), what)


def _raise_api_error(err: Any, default: str) -> None:
    # TikTok reports {"code": "ok"} on success; failures come as a dict or a bare string
    if not err:
        return
    if isinstance(err, dict):
        if err.get("code") in (0, "ok", None):
            return
        raise PlatformFetchError(err.get("message") or default)
    raise PlatformFetchError(str(err))


def _peekalink_image(data: dict) -> str | None:
    image = data.get("image")
    if isinstance(image, dict):
        for size in ("large", "original", "medium", "thumbnail"):
            variant = image.get(size)
            url = variant.get("url") if isinstance(variant, dict) else None
            if url:
                return url
        return image.get("url") if isinstance(image.get("url"), str) else None
    return image if isinstance(image, str) else None


class ViewCounter:
    """
    Per-platform view-count lookups with provider fallbacks.
    Holds a request-scoped httpx client; never raises for provider failures,
    they come back as VideoStats(success=False, error=...).
    """

    def __init__(self, http: httpx.AsyncClient, cfg: Settings | None = None):
        self.http = http
        self.cfg = cfg or default_settings

    async def fetch_many(self, urls: list[str]) -> list[VideoStats]:
        return list(await asyncio.gather(*(self.fetch(u) for u in urls)))

    async def fetch(self, url: str) -> VideoStats:
        platform = detect_platform(url)
        try:
            if platform == "youtube":
                return await self._youtube(url)
            if platform == "tiktok":
                return await self._tiktok(url)
            if platform == "instagram":
                return await self._instagram(url)
            return await self._generic(url)
        except (httpx.HTTPError, PlatformFetchError, ValueError, KeyError) as e:
            log.warning("view_fetch_failed", url=url, platform=platform, error=str(e))
            return VideoStats(url=url, platform=platform, success=False, error=str(e))

    async def link_preview(self, url: str) -> LinkPreview:
        """Best-effort title/description/image; empty when Peekalink is unconfigured or fails."""
        if not self.cfg.peekalink_api_key:
            return LinkPreview()
        try:
            data = await self._peekalink(url)
        except (httpx.HTTPError, PlatformFetchError, ValueError) as e:
            log.warning("link_preview_failed", url=url, error=str(e))
            return LinkPreview()
        return LinkPreview(title=data.get("title"), description=data.get("description"), image=_peekalink_image(data))

    # ---------- youtube ----------

    async def _youtube(self, url: str) -> VideoStats:
        video_id = youtube_video_id(url)
        if not video_id:
            raise PlatformFetchError("Invalid YouTube URL - could not extract video ID")
        if not self.cfg.youtube_api_key:
            raise PlatformFetchError("YouTube API key not configured. Please set YOUTUBE_API_KEY")

        r = await self.http.get(
            f"{YOUTUBE_API_BASE}/videos",
            params={"part": "statistics,snippet", "id": video_id, "key": self.cfg.youtube_api_key},
        )
        r.raise_for_status()
        item = _first(_json(r, "YouTube").get("items"), "YouTube")
        if item is None:
            raise PlatformFetchError("Video not found or is private")
        stats = _as_dict(item.get("statistics") or {}, "YouTube")
        snippet = _as_dict(item.get("snippet") or {}, "YouTube")
        thumbs = snippet.get("thumbnails") or {}
        thumb = None
        if isinstance(thumbs, dict):
            best = thumbs.get("high") or thumbs.get("medium") or thumbs.get("default")
            thumb = best.get("url") if isinstance(best, dict) else None
        return VideoStats(
            url=url,
            platform="youtube",
            view_count=_to_int(stats.get("viewCount", 0), "YouTube"),
            success=True,
            title=snippet.get("title"),
            description=snippet.get("description"),
            author=snippet.get("channelTitle"),
            thumbnail=thumb,
            extra={
                "likes": _to_int(stats.get("likeCount", 0), "YouTube"),
                "comments": _to_int(stats.get("commentCount", 0), "YouTube"),
            },
        )

    # ---------- tiktok ----------

    async def _tiktok(self, url: str) -> VideoStats:
        video_id = tiktok_video_id(url)
        if not video_id:
            raise PlatformFetchError("Invalid TikTok URL - could not extract video ID")

        if self.cfg.tiktok_access_token:
            try:
                return await self._tiktok_direct(url, video_id)
            except (httpx.HTTPError, PlatformFetchError, ValueError) as e:
                log.warning("tiktok_direct_failed", url=url, error=str(e))

        if self.cfg.tiktok_client_token:
            try:
                return await self._tiktok_research(url, video_id)
            except (httpx.HTTPError, PlatformFetchError, ValueError) as e:
                log.warning("tiktok_research_failed", url=url, error=str(e))

        if self.cfg.peekalink_api_key:
            data = await self._peekalink(url)
            video = data.get("tiktokVideo")
            if not data.get("ok") or not isinstance(video, dict):
                raise PlatformFetchError("Invalid response or not a TikTok video")
            user = video.get("user")
            return VideoStats(
                url=url,
                platform="tiktok",
                view_count=_to_int(video.get("playsCount") or 0, "Peekalink"),
                success=True,
                title=video.get("text") or data.get("title"),
                author=(user.get("username") if isinstance(user, dict) else None) or tiktok_username(url),
                thumbnail=_peekalink_image(data),
            )

        raise PlatformFetchError(
            "No TikTok API credentials configured. Please set TIKTOK_ACCESS_TOKEN, TIKTOK_CLIENT_TOKEN, or PEEKALINK_API_KEY"
        )

    async def _tiktok_direct(self, url: str, video_id: str) -> VideoStats:
        r = await self.http.post(
            f"{TIKTOK_API_BASE}/video/query/",
            json={
                "access_token": self.cfg.tiktok_access_token,
                "filters": {"video_ids": [video_id]},
                "fields": TIKTOK_QUERY_FIELDS,
            },
        )
        r.raise_for_status()
        body = _json(r, "TikTok")
        _raise_api_error(body.get("error"), "TikTok API error")
        v = _first(_as_dict(body.get("data") or {}, "TikTok").get("videos"), "TikTok")
        if v is None:
            raise PlatformFetchError("TikTok API returned no video")
        views = v.get("view_count")
        return VideoStats(
            url=url,
            platform="tiktok",
            view_count=_to_int(views, "TikTok") if views is not None else None,
            success=views is not None,
            title=v.get("video_description") or v.get("title"),
            author=tiktok_username(url),
            thumbnail=v.get("cover_image_url"),
            extra={"published_at": _from_epoch(v.get("create_time"))},
        )

    async def _tiktok_research(self, url: str, video_id: str) -> VideoStats:
        r = await self.http.post(
            f"{TIKTOK_RESEARCH_API_BASE}/v2/research/video/query/",
            params={"fields": "id,create_time,username,video_description,like_count,comment_count,share_count,view_count"},
            headers={"Authorization": f"Bearer {self.cfg.tiktok_client_token}"},
            json={
                "query": {"and": [{"operation": "EQ", "field_name": "video_id", "field_values": [video_id]}]},
                "max_count": 1,
            },
        )
        r.raise_for_status()
        body = _json(r, "TikTok Research")
        _raise_api_error(body.get("error"), "TikTok Research API error")
        v = _first(_as_dict(body.get("data") or {}, "TikTok Research").get("videos"), "TikTok Research")
        if v is None or v.get("view_count") is None:
            raise PlatformFetchError("TikTok Research API returned no video")
        return VideoStats(
            url=url,
            platform="tiktok",
            view_count=_to_int(v["view_count"], "TikTok Research"),
            success=True,
            title=v.get("video_description"),
            author=v.get("username") or tiktok_username(url),
            extra={"published_at": _from_epoch(v.get("create_time"))},
        )

    # ---------- instagram ----------

    async def _instagram(self, url: str) -> VideoStats:
        shortcode = instagram_shortcode(url)
        if not shortcode:
            raise PlatformFetchError("Invalid Instagram URL - could not extract media ID")
        token = self.cfg.instagram_access_token
        if not token:
            raise PlatformFetchError(
                "Instagram API access token not configured. Please set INSTAGRAM_ACCESS_TOKEN"
            )

        r = await self.http.get(
            f"{INSTAGRAM_GRAPH_API_BASE}/{shortcode}",
            params={
                "fields": "id,media_type,media_url,permalink,thumbnail_url,timestamp,username,caption,like_count,comments_count",
                "access_token": token,
            },
        )
        if r.status_code != 200:
            raise PlatformFetchError("Could not fetch Instagram data. Make sure the post is public and accessible.")
        media = _json(r, "Instagram")

        views = await self._instagram_insights(media["id"], token) if media.get("id") else None
        if views is None:
            raise PlatformFetchError("Instagram did not report a view metric for this media")
        return VideoStats(
            url=url,
            platform="instagram",
            view_count=views,
            success=True,
            title=media.get("caption"),
            author=media.get("username"),
            thumbnail=media.get("thumbnail_url") or media.get("media_url"),
            extra={"likes": media.get("like_count") or 0, "comments": media.get("comments_count") or 0},
        )

    async def _instagram_insights(self, media_id: str, token: str) -> int | None:
        r = await self.http.get(
            f"{INSTAGRAM_GRAPH_API_BASE}/{media_id}/insights",
            params={"metric": "impressions,reach,plays", "access_token": token},
        )
        if r.status_code != 200:
            return None
        data = _json(r, "Instagram insights").get("data") or []
        if not isinstance(data, list):
            raise PlatformFetchError("Unexpected Instagram insights response shape")
        metrics = {m.get("name"): m for m in data if isinstance(m, dict)}
        # plays for reels/videos, impressions for images
        for name in ("plays", "impressions"):
            first = _first((metrics.get(name) or {}).get("values"), "Instagram insights")
            if first and first.get("value") is not None:
                return _to_int(first["value"], "Instagram")
        return None

    # ---------- generic ----------

    async def _generic(self, url: str) -> VideoStats:
        preview = await self.link_preview(url)
        return VideoStats(
            url=url,
            platform="other",
            success=False,
            error="View counts are not available for this platform",
            title=preview.title,
            description=preview.description,
            thumbnail=preview.image,
        )

    async def _peekalink(self, url: str) -> dict:
        r = await self.http.post(
            PEEKALINK_API_URL,
            headers={"Authorization": f"Bearer {self.cfg.peekalink_api_key}"},
            json={"link": url},
        )
        if r.status_code != 200:
            raise PlatformFetchError(f"Peekalink API returned {r.status_code}")
        return _json(r, "Peekalink")


def _from_epoch(ts: Any) -> str | None:
    if not ts:
        return None
    try:
        return datetime.fromtimestamp(int(ts), tz=dt_tz.utc).isoformat()
    except (TypeError, ValueError, OverflowError, OSError):
        return None
