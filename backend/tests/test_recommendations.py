from __future__ import annotations
from datetime import datetime
import pytest
from app.models.bounty import Bounty
from app.models.submission import Submission
from app.services.recommendations import NEW_CREATOR_REASON
from conftest import auth, make_user


async def _seed(maker) -> dict:
    """Two open bounties plus one already fully claimed by `veteran`."""
    await make_user(maker, "biz_r", "business")
    await make_user(maker, "veteran", "creator")
    async with maker() as s:
        gaming = Bounty(creator_id="biz_r", name="Gaming headset", description="Show the headset in a stream",
                        total_bounty=500, rate_per_1k_views=5)
        cooking = Bounty(creator_id="biz_r", name="Cooking show", description="Make dinner with our pan",
                         total_bounty=500, rate_per_1k_views=5)
        done = Bounty(creator_id="biz_r", name="Old campaign", description="Finished", total_bounty=100, rate_per_1k_views=10)
        s.add_all([gaming, cooking, done])
        await s.flush()
        s.add(Submission(bounty_id=done.id, user_id="veteran", video_url="https://youtu.be/vet1", platform="youtube",
                         status="approved", view_count=10_000, earned_amount=100, title="Gaming highlights"))
        await s.commit()
        return {"gaming": str(gaming.id), "cooking": str(cooking.id), "done": str(done.id)}


@pytest.mark.asyncio
async def test_new_creator_gets_flat_scores_then_cache(client, sessionmaker_):
    ids = await _seed(sessionmaker_)
    await make_user(sessionmaker_, "rookie", "creator")

    r = await client.get("/bounties/recommendations", headers=auth("rookie"))
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["cached"] is False
    recs = body["recommendations"]
    assert {x["bounty"]["id"] for x in recs} == {ids["gaming"], ids["cooking"]}
    for x in recs:
        assert x["match_score"] == 50
        assert x["match_reasons"]["specific_reasons"] == [NEW_CREATOR_REASON]
        assert x["platform_match"] is False

    again = (await client.get("/bounties/recommendations", headers=auth("rookie"))).json()
    assert again["cached"] is True
    assert len(again["recommendations"]) == 2


@pytest.mark.asyncio
async def test_fallback_ranks_matching_themes_first(client, sessionmaker_):
    ids = await _seed(sessionmaker_)

    r = await client.get("/bounties/recommendations", headers=auth("veteran"))
    assert r.status_code == 200, r.text
    recs = r.json()["recommendations"]
    assert [x["bounty"]["id"] for x in recs] == [ids["gaming"], ids["cooking"]]

    top, second = recs
    assert top["match_score"] == 100
    assert top["content_style_match"] is True
    assert top["match_reasons"]["platform_match"] == "Platform experience matches"
    assert top["match_reasons"]["content_style_match"] == "Content style aligns"
    assert second["match_score"] == 95
    assert second["content_style_match"] is False
    assert second["match_reasons"]["content_style_match"] is None


@pytest.mark.asyncio
async def test_model_scores_are_used_when_available(client, sessionmaker_, genai_models):
    await _seed(sessionmaker_)
    genai_models.default = {
        "match_score": 77, "reasons": ["Strong gaming audience"], "platform_compatibility": True,
        "content_style_alignment": False, "explanation": "Good fit",
    }
    recs = (await client.get("/bounties/recommendations", headers=auth("veteran"))).json()["recommendations"]
    assert [x["match_score"] for x in recs] == [77, 77]
    assert recs[0]["match_reasons"]["specific_reasons"] == ["Strong gaming audience"]
    assert len(genai_models.calls) == 2


@pytest.mark.asyncio
async def test_no_open_bounties(client, sessionmaker_):
    await make_user(sessionmaker_, "lonely", "creator")
    r = await client.get("/bounties/recommendations", headers=auth("lonely"))
    assert r.json()["recommendations"] == []
    assert r.json()["cached"] is False


def _ts(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


@pytest.mark.asyncio
async def test_cache_hit_reports_when_the_rows_were_calculated(client, sessionmaker_):
    await _seed(sessionmaker_)
    await make_user(sessionmaker_, "rookie", "creator")

    fresh = (await client.get("/bounties/recommendations", headers=auth("rookie"))).json()
    again = (await client.get("/bounties/recommendations", headers=auth("rookie"))).json()

    assert again["cached"] is True
    assert _ts(again["calculated_at"]) == _ts(fresh["calculated_at"])
    assert {_ts(x["last_calculated_at"]) for x in fresh["recommendations"]} == {_ts(fresh["calculated_at"])}
