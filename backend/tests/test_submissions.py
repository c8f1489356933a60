from __future__ import annotations
import uuid
import pytest
from app.models.bounty import Bounty
from app.models.submission import Submission
from app.models.user import UserProfile
from app.services.submissions import refresh_views, set_status
from conftest import FakeViewCounter, auth, make_user

YT1 = "https://www.youtube.com/watch?v=vid00001"
YT2 = "https://www.youtube.com/watch?v=vid00002"


async def _bounty(maker, owner="biz", total=1000, rate=10) -> str:
    async with maker() as s:
        b = Bounty(creator_id=owner, name="Hat bounty", description="Wear the hat", instructions="Exact hat on camera",
                   total_bounty=total, rate_per_1k_views=rate)
        s.add(b)
        await s.commit()
        return str(b.id)


async def _setup(maker):
    await make_user(maker, "biz", "business")
    await make_user(maker, "cre", "creator")
    return await _bounty(maker)


async def _profile(maker, user_id) -> UserProfile:
    async with maker() as s:
        return await s.get(UserProfile, user_id)


@pytest.mark.asyncio
async def test_submit_records_pending_with_metadata(client, sessionmaker_, counter):
    bounty_id = await _setup(sessionmaker_)
    counter.views[YT1] = 40_000

    r = await client.post("/submit-bounty-item", headers=auth("cre"), json={"url": YT1, "bounty_id": bounty_id})
    assert r.status_code == 201, r.text
    sub = r.json()
    assert sub["status"] == "pending"
    assert sub["earned_amount"] == 0
    assert sub["view_count"] == 40_000
    assert sub["platform"] == "youtube"
    assert sub["title"] == "Fetched title"
    assert sub["cover_image_url"] == "https://img.example.com/x.jpg"

    # pending views never count toward progress
    b = (await client.get(f"/bounties/{bounty_id}")).json()
    assert b["total_submission_views"] == 0


@pytest.mark.asyncio
async def test_submit_tolerates_failed_lookup(client, sessionmaker_, counter):
    bounty_id = await _setup(sessionmaker_)
    r = await client.post("/submit-bounty-item", headers=auth("cre"), json={"url": YT1, "bounty_id": bounty_id})
    assert r.status_code == 201
    assert r.json()["view_count"] == 0
    assert r.json()["title"] == "Preview title"


@pytest.mark.asyncio
async def test_submit_rejects_bad_url_duplicates_and_missing_bounty(client, sessionmaker_, counter):
    bounty_id = await _setup(sessionmaker_)
    h = auth("cre")

    r = await client.post("/submit-bounty-item", headers=h, json={"url": "not-a-url", "bounty_id": bounty_id})
    assert r.status_code == 400

    r = await client.post("/submit-bounty-item", headers=h, json={"url": YT1, "bounty_id": str(uuid.uuid4())})
    assert r.status_code == 404

    assert (await client.post("/submit-bounty-item", headers=h, json={"url": YT1, "bounty_id": bounty_id})).status_code == 201
    r = await client.post("/submit-bounty-item", headers=h, json={"url": YT1, "bounty_id": bounty_id})
    assert r.status_code == 409


@pytest.mark.asyncio
async def test_completed_bounty_refuses_submissions(client, sessionmaker_, counter):
    bounty_id = await _setup(sessionmaker_)
    async with sessionmaker_() as s:
        s.add(Submission(bounty_id=uuid.UUID(bounty_id), user_id="cre", video_url=YT2, view_count=100_000,
                         status="approved", earned_amount=1000))
        await s.commit()

    r = await client.post("/submit-bounty-item", headers=auth("cre"), json={"url": YT1, "bounty_id": bounty_id})
    assert r.status_code == 409


@pytest.mark.asyncio
async def test_review_moves_earnings_both_ways(client, sessionmaker_, counter):
    bounty_id = await _setup(sessionmaker_)
    counter.views[YT1] = 25_000
    sub = (await client.post("/submit-bounty-item", headers=auth("cre"), json={"url": YT1, "bounty_id": bounty_id})).json()

    r = await client.patch(f"/submissions/{sub['id']}/review", headers=auth("cre"), json={"status": "approved"})
    assert r.status_code == 403

    r = await client.patch(f"/submissions/{sub['id']}/review", headers=auth("biz"), json={"status": "approved", "explanation": "Looks great"})
    assert r.status_code == 200, r.text
    assert r.json()["earned_amount"] == pytest.approx(250)
    assert r.json()["validation_explanation"] == "Looks great"
    assert (await _profile(sessionmaker_, "cre")).total_earnings == pytest.approx(250)

    b = (await client.get(f"/bounties/{bounty_id}")).json()
    assert b["calculated_claimed_bounty"] == pytest.approx(250)

    r = await client.patch(f"/submissions/{sub['id']}/review", headers=auth("biz"), json={"status": "rejected"})
    assert r.json()["earned_amount"] == 0
    assert (await _profile(sessionmaker_, "cre")).total_earnings == pytest.approx(0)


@pytest.mark.asyncio
async def test_ai_validation_approves_and_assigns_earnings(client, sessionmaker_, counter, genai_models):
    bounty_id = await _setup(sessionmaker_)
    counter.views[YT1] = 10_000
    sub = (await client.post("/submit-bounty-item", headers=auth("cre"), json={"url": YT1, "bounty_id": bounty_id})).json()

    genai_models.default = {"valid": True, "explanation": "Exact hat shown."}
    r = await client.post(f"/submissions/{sub['id']}/validate", headers=auth("cre"))
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["status"] == "approved"
    assert body["earned_amount"] == pytest.approx(100)
    assert body["validation_explanation"] == "Exact hat shown."
    # bounty instructions are the requirements
    assert "Exact hat on camera" in genai_models.calls[0]["contents"][1].text


@pytest.mark.asyncio
async def test_ai_validation_permissions_and_config(client, sessionmaker_, counter):
    bounty_id = await _setup(sessionmaker_)
    await make_user(sessionmaker_, "stranger", "creator")
    sub = (await client.post("/submit-bounty-item", headers=auth("cre"), json={"url": YT1, "bounty_id": bounty_id})).json()

    r = await client.post(f"/submissions/{sub['id']}/validate", headers=auth("stranger"))
    assert r.status_code == 403
    # no Gemini key configured
    r = await client.post(f"/submissions/{sub['id']}/validate", headers=auth("biz"))
    assert r.status_code == 500


@pytest.mark.asyncio
async def test_validate_pending_settles_each_submission(client, sessionmaker_, counter, genai_models):
    bounty_id = await _setup(sessionmaker_)
    counter.views.update({YT1: 1000, YT2: 2000})
    for url in (YT1, YT2, "https://www.tiktok.com/@cre/video/99"):
        assert (await client.post("/submit-bounty-item", headers=auth("cre"), json={"url": url, "bounty_id": bounty_id})).status_code == 201

    genai_models.default = {"valid": True, "explanation": "ok"}
    r = await client.post(f"/bounties/{bounty_id}/validate-pending", headers=auth("cre"))
    assert r.status_code == 403

    r = await client.post(f"/bounties/{bounty_id}/validate-pending", headers=auth("biz"))
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["validated"] == 3
    # the TikTok link cannot be judged and is rejected
    assert body["approved"] == 2 and body["rejected"] == 1
    assert (await _profile(sessionmaker_, "cre")).total_earnings == pytest.approx(30)

    r = await client.post(f"/bounties/{bounty_id}/validate-pending", headers=auth("biz"))
    assert r.json()["validated"] == 0


@pytest.mark.asyncio
async def test_refresh_views_updates_approved_earnings(client, sessionmaker_, counter):
    bounty_id = await _setup(sessionmaker_)
    counter.views.update({YT1: 1000, YT2: 500})
    s1 = (await client.post("/submit-bounty-item", headers=auth("cre"), json={"url": YT1, "bounty_id": bounty_id})).json()
    s2 = (await client.post("/submit-bounty-item", headers=auth("cre"), json={"url": YT2, "bounty_id": bounty_id})).json()
    await client.patch(f"/submissions/{s1['id']}/review", headers=auth("biz"), json={"status": "approved"})

    counter.views[YT1] = 5000
    counter.views[YT2] = None  # lookup now fails
    r = await client.post("/submissions/refresh-views", headers=auth("cre"), json={"bounty_id": bounty_id})
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["updated"] == 1 and body["failed"] == 1
    by_id = {x["submission_id"]: x for x in body["results"]}
    assert by_id[s1["id"]]["view_count"] == 5000
    assert by_id[s2["id"]]["success"] is False

    r1 = (await client.get(f"/submissions/{s1['id']}")).json()
    r2 = (await client.get(f"/submissions/{s2['id']}")).json()
    assert r1["earned_amount"] == pytest.approx(50)
    assert r2["view_count"] == 500 and r2["earned_amount"] == 0
    assert (await _profile(sessionmaker_, "cre")).total_earnings == pytest.approx(50)


@pytest.mark.asyncio
async def test_refresh_views_needs_a_filter_unless_backgrounded(client, sessionmaker_, counter, queue):
    await _setup(sessionmaker_)
    r = await client.post("/submissions/refresh-views", headers=auth("cre"), json={})
    assert r.status_code == 400

    r = await client.post("/submissions/refresh-views", headers=auth("cre"), json={"background": True})
    assert r.status_code == 200
    assert r.json()["job_id"] == "job-1"
    assert queue.enqueued[0][0] == "app.jobs.refresh_views.run"


@pytest.mark.asyncio
async def test_list_submissions_filters(client, sessionmaker_, counter):
    bounty_id = await _setup(sessionmaker_)
    for url in (YT1, YT2):
        await client.post("/submit-bounty-item", headers=auth("cre"), json={"url": url, "bounty_id": bounty_id})

    r = await client.get("/submissions", params={"bounty_id": bounty_id, "status": "pending"})
    assert {s["video_url"] for s in r.json()} == {YT1, YT2}
    r = await client.get("/submissions", params={"status": "approved"})
    assert r.json() == []
    r = await client.get("/submissions", params={"user_id": "nobody"})
    assert r.json() == []
    assert (await client.get(f"/submissions/{uuid.uuid4()}")).status_code == 404


async def _pending_submission(maker, bounty_id, views=1000) -> uuid.UUID:
    async with maker() as s:
        sub = Submission(bounty_id=uuid.UUID(bounty_id), user_id="cre", video_url=YT1, status="pending",
                         view_count=views, earned_amount=0)
        s.add(sub)
        await s.commit()
        return sub.id


@pytest.mark.asyncio
async def test_overlapping_approvals_credit_earnings_once(sessionmaker_):
    bounty_id = await _setup(sessionmaker_)
    sub_id = await _pending_submission(sessionmaker_, bounty_id)

    async with sessionmaker_() as first, sessionmaker_() as second:
        sub_a = await first.get(Submission, sub_id)
        bounty_a = await first.get(Bounty, uuid.UUID(bounty_id))
        sub_b = await second.get(Submission, sub_id)
        bounty_b = await second.get(Bounty, uuid.UUID(bounty_id))
        assert sub_a.earned_amount == sub_b.earned_amount == 0

        await set_status(first, sub_a, bounty_a, "approved")
        await first.commit()
        # second still holds the row it read before the first approval landed
        await set_status(second, sub_b, bounty_b, "approved")
        await second.commit()

    async with sessionmaker_() as s:
        assert (await s.get(Submission, sub_id)).earned_amount == 10
    assert (await _profile(sessionmaker_, "cre")).total_earnings == 10


@pytest.mark.asyncio
async def test_refresh_after_stale_read_moves_earnings_by_the_difference(sessionmaker_):
    bounty_id = await _setup(sessionmaker_)
    sub_id = await _pending_submission(sessionmaker_, bounty_id)
    views = FakeViewCounter({YT1: 3000})

    async with sessionmaker_() as refresher:
        stale = await refresher.get(Submission, sub_id)

        async with sessionmaker_() as reviewer:
            await set_status(reviewer, await reviewer.get(Submission, sub_id),
                             await reviewer.get(Bounty, uuid.UUID(bounty_id)), "approved")
            await reviewer.commit()

        report = await refresh_views(refresher, views, [stale], {uuid.UUID(bounty_id): 10})
        await refresher.commit()

    assert report.updated == 1
    async with sessionmaker_() as s:
        sub = await s.get(Submission, sub_id)
        assert sub.status == "approved"
        assert sub.earned_amount == 30
    assert (await _profile(sessionmaker_, "cre")).total_earnings == 30
