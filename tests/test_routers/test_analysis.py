import asyncio

import respx
from httpx import AsyncClient, Response

DETAILS_URL = "https://places.googleapis.com/v1/places"

MENU_HTML = """
<html><body><h2>Mains</h2>
<p>Chickpea Curry - Coconut, spinach - $14.00</p>
<p>Grilled Salmon - Lemon butter - $22.00</p>
<p>Mushroom Risotto - $16.50</p>
<p>Margherita Pizza - $13.00</p>
<p>Beef Lasagna - $17.00</p>
<p>Falafel Wrap - $11.00</p>
</body></html>
"""


def _restaurants(count: int) -> list[dict]:
    return [{"id": f"place-{i}", "name": f"Restaurant {i}"} for i in range(count)]


def _mock_details_without_website():
    """Every place resolves to details with no website listed."""

    def respond(request):
        place_id = request.url.path.rsplit("/", 1)[-1]
        return Response(200, json={"id": place_id, "displayName": {"text": "Cash Only"}})

    respx.get(url__startswith=DETAILS_URL).mock(side_effect=respond)


async def submit_and_wait(client: AsyncClient, json=None, timeout: float = 5.0):
    """POST a selection, then poll the job until it finishes."""
    resp = await client.post("/analysis/selection", json=json)
    assert resp.status_code == 202
    data = resp.json()
    assert data["status"] == "pending"
    job_id = data["job_id"]

    elapsed = 0.0
    while elapsed < timeout:
        await asyncio.sleep(0.05)
        elapsed += 0.05
        status_resp = await client.get(f"/jobs/{job_id}")
        assert status_resp.status_code == 200
        job = status_resp.json()
        if job["status"] in ("completed", "failed"):
            return job
    raise AssertionError(f"Job {job_id} did not finish within {timeout}s")


async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


@respx.mock
async def test_analyze_restaurant_website(client):
    respx.get("https://bistro.example/menu").mock(
        return_value=Response(200, html=MENU_HTML, headers={"content-type": "text/html"})
    )

    resp = await client.post(
        "/analysis/restaurant", json={"website_url": "https://bistro.example", "name": "Bistro"},
    )

    assert resp.status_code == 200
    data = resp.json()
    assert data["method"] == "keyword"
    assert data["menu_url"] == "https://bistro.example/menu"
    assert data["vegetarian_count"] == 4
    assert data["total_items"] == 6
    assert data["friendliness"] == "good"
    assert "Falafel Wrap" in [i["name"] for i in data["items"]]


@respx.mock
async def test_analyze_place_without_website(client):
    _mock_details_without_website()

    resp = await client.post("/analysis/restaurant", json={"place_id": "place-42"})

    assert resp.status_code == 200
    data = resp.json()
    assert data["method"] == "no-website"
    assert data["restaurant_id"] == "place-42"
    assert data["friendliness"] == "unknown"


async def test_analyze_restaurant_requires_target(client):
    resp = await client.post("/analysis/restaurant", json={"name": "Nameless"})
    assert resp.status_code == 422


@respx.mock
async def test_analyze_place_google_error(client):
    respx.get(f"{DETAILS_URL}/bad-id").mock(return_value=Response(400, text="invalid place id"))

    resp = await client.post("/analysis/restaurant", json={"place_id": "bad-id"})

    assert resp.status_code == 502
    assert "Google Places error" in resp.json()["detail"]


async def test_selection_too_large(client):
    resp = await client.post("/analysis/selection", json={"restaurants": _restaurants(6)})

    assert resp.status_code == 422
    assert resp.json() == {"success": False, "detail": "Maximum 5 restaurants can be analyzed at once"}


async def test_selection_empty(client):
    resp = await client.post("/analysis/selection", json={"restaurants": []})

    assert resp.status_code == 422
    assert resp.json()["detail"] == "No restaurants selected for analysis"


@respx.mock
async def test_selection_job_flow(client):
    _mock_details_without_website()

    job = await submit_and_wait(client, json={"restaurants": _restaurants(2), "min_criteria": "fair"})

    assert job["status"] == "completed"
    result = job["result"]
    assert result["success"] is True
    assert result["min_criteria"] == "fair"
    assert [r["analysis"]["method"] for r in result["results"]] == ["no-website", "no-website"]
    assert result["qualifying"] == []
    assert job["progress"]["stage"] == "complete"
    assert job["finished_at"] is not None


async def test_duplicate_selection_is_not_resubmitted(client):
    from vegscout.main import app

    running = app.state.job_store.create_job(restaurant_ids=["place-1", "place-0"])
    app.state.job_store.mark_running(running.job_id)

    resp = await client.post("/analysis/selection", json={"restaurants": _restaurants(2)})

    assert resp.status_code == 200
    assert resp.json()["status"] == "already_running"
    assert resp.json()["job_id"] == running.job_id


async def test_unknown_job(client):
    resp = await client.get("/jobs/does-not-exist")

    assert resp.status_code == 404
    assert resp.json()["detail"] == "Job not found"


@respx.mock
async def test_selection_sync(client):
    _mock_details_without_website()

    resp = await client.post("/analysis/selection/sync", json={"restaurants": _restaurants(1)})

    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["min_criteria"] == "good"
    assert data["results"][0]["meets_criteria"] is False
