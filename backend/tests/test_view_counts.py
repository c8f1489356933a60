from __future__ import annotations
import json
import httpx
import pytest
from app.config import Settings
from app.services.view_counts import ViewCounter


def _cfg(**overrides) -> Settings:
    base = dict(
        youtube_api_key="", tiktok_access_token="", tiktok_client_token="",
        instagram_access_token="", peekalink_api_key="",
    )
    base.update(overrides)
    return Settings(**base)


def _counter(handler, **cfg) -> tuple[ViewCounter, httpx.AsyncClient]:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ViewCounter(http, _cfg(**cfg)), http


@pytest.mark.asyncio
async def test_youtube_views_and_metadata():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = request.url
        return httpx.Response(200, json={"items": [{
            "statistics": {"viewCount": "12345", "likeCount": "10"},
            "snippet": {"title": "My video", "channelTitle": "Chan", "thumbnails": {"high": {"url": "https://i.ytimg.com/x.jpg"}}},
        }]})

    counter, http = _counter(handler, youtube_api_key="yt-key")
    async with http:
        stats = await counter.fetch("https://www.youtube.com/watch?v=abc123")

    assert stats.success is True
    assert stats.view_count == 12345
    assert stats.title == "My video"
    assert stats.author == "Chan"
    assert stats.thumbnail == "https://i.ytimg.com/x.jpg"
    assert seen["url"].params["id"] == "abc123"
    assert seen["url"].params["key"] == "yt-key"


@pytest.mark.asyncio
async def test_youtube_without_key_reports_missing_variable():
    def handler(request):
        raise AssertionError("no request expected")

    counter, http = _counter(handler)
    async with http:
        stats = await counter.fetch("https://youtu.be/abc123")
    assert stats.success is False
    assert "YOUTUBE_API_KEY" in stats.error


@pytest.mark.asyncio
async def test_youtube_video_not_found():
    counter, http = _counter(lambda r: httpx.Response(200, json={"items": []}), youtube_api_key="k")
    async with http:
        stats = await counter.fetch("https://www.youtube.com/watch?v=gone")
    assert stats.success is False
    assert "not found" in stats.error


@pytest.mark.asyncio
async def test_tiktok_falls_back_to_peekalink():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "open-api.tiktok.com":
            return httpx.Response(500, json={})
        if request.url.host == "api.peekalink.io":
            assert request.headers["Authorization"] == "Bearer pk"
            assert json.loads(request.content) == {"link": "https://www.tiktok.com/@abc/video/123"}
            return httpx.Response(200, json={"ok": True, "title": "t", "tiktokVideo": {"playsCount": 4321}})
        raise AssertionError(f"unexpected {request.url}")

    counter, http = _counter(handler, tiktok_access_token="tt", peekalink_api_key="pk")
    async with http:
        stats = await counter.fetch("https://www.tiktok.com/@abc/video/123")
    assert stats.success is True
    assert stats.view_count == 4321
    assert stats.author == "abc"


@pytest.mark.asyncio
async def test_tiktok_without_any_credentials():
    counter, http = _counter(lambda r: httpx.Response(500))
    async with http:
        stats = await counter.fetch("https://www.tiktok.com/@abc/video/123")
    assert stats.success is False
    assert "TIKTOK_ACCESS_TOKEN" in stats.error and "PEEKALINK_API_KEY" in stats.error


@pytest.mark.asyncio
async def test_instagram_prefers_plays_metric():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/insights"):
            return httpx.Response(200, json={"data": [
                {"name": "impressions", "values": [{"value": 50}]},
                {"name": "plays", "values": [{"value": 900}]},
            ]})
        return httpx.Response(200, json={"id": "1789", "username": "insta_user", "caption": "hello"})

    counter, http = _counter(handler, instagram_access_token="ig")
    async with http:
        stats = await counter.fetch("https://www.instagram.com/reel/Cabc123/")
    assert stats.success is True
    assert stats.view_count == 900
    assert stats.author == "insta_user"


@pytest.mark.asyncio
async def test_other_platform_has_no_views_but_keeps_preview():
    def handler(request):
        return httpx.Response(200, json={"title": "Some page", "description": "d", "image": {"large": {"url": "https://img/x.png"}}})

    counter, http = _counter(handler, peekalink_api_key="pk")
    async with http:
        stats = await counter.fetch("https://vimeo.com/123")
    assert stats.success is False
    assert stats.view_count is None
    assert stats.title == "Some page"
    assert stats.thumbnail == "https://img/x.png"


@pytest.mark.asyncio
async def test_fetch_many_keeps_input_order_and_isolates_failures():
    def handler(request: httpx.Request) -> httpx.Response:
        vid = request.url.params["id"]
        if vid == "bad":
            return httpx.Response(403, json={})
        return httpx.Response(200, json={"items": [{"statistics": {"viewCount": str(len(vid) * 100)}, "snippet": {}}]})

    counter, http = _counter(handler, youtube_api_key="k")
    urls = [
        "https://www.youtube.com/watch?v=a",
        "https://www.youtube.com/watch?v=bad",
        "https://www.youtube.com/watch?v=ccc",
    ]
    async with http:
        results = await counter.fetch_many(urls)
    assert [r.url for r in results] == urls
    assert [r.success for r in results] == [True, False, True]
    assert results[0].view_count == 100
    assert results[2].view_count == 300


@pytest.mark.asyncio
async def test_link_preview_empty_without_key():
    counter, http = _counter(lambda r: httpx.Response(500))
    async with http:
        preview = await counter.link_preview("https://example.com")
    assert preview.title is None and preview.image is None


@pytest.mark.asyncio
async def test_malformed_tiktok_error_fails_only_that_item():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "open-api.tiktok.com":
            return httpx.Response(200, json={"error": "access_token_invalid"})
        return httpx.Response(200, json={"items": [{"statistics": {"viewCount": "7"}, "snippet": {}}]})

    counter, http = _counter(handler, youtube_api_key="k", tiktok_access_token="tt")
    async with http:
        results = await counter.fetch_many(["https://youtu.be/abc", "https://www.tiktok.com/@u/video/123"])
    assert [r.success for r in results] == [True, False]
    assert results[0].view_count == 7
    assert results[1].error


@pytest.mark.asyncio
async def test_malformed_tiktok_body_still_falls_back_to_peekalink():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "open-api.tiktok.com":
            return httpx.Response(200, json={"data": {"videos": "nope"}, "error": {"code": "ok"}})
        return httpx.Response(200, json={"ok": True, "tiktokVideo": {"playsCount": 88}})

    counter, http = _counter(handler, tiktok_access_token="tt", peekalink_api_key="pk")
    async with http:
        stats = await counter.fetch("https://www.tiktok.com/@u/video/123")
    assert stats.success is True
    assert stats.view_count == 88


@pytest.mark.asyncio
async def test_non_object_payloads_are_reported_per_item():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/insights"):
            return httpx.Response(200, json={"data": "broken"})
        if request.url.host == "graph.facebook.com":
            return httpx.Response(200, json={"id": "1789"})
        return httpx.Response(200, json=["not", "an", "object"])

    counter, http = _counter(handler, youtube_api_key="k", instagram_access_token="ig")
    async with http:
        results = await counter.fetch_many(["https://youtu.be/abc", "https://www.instagram.com/reel/Cabc123/"])
    assert [r.success for r in results] == [False, False]
    assert "response shape" in results[0].error
    assert "response shape" in results[1].error
