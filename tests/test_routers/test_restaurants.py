import json

import respx
from httpx import Response

NEARBY_URL = "https://places.googleapis.com/v1/places:searchNearby"
SEARCH_URL = "https://places.googleapis.com/v1/places:searchText"
DETAILS_URL = "https://places.googleapis.com/v1/places"


def _place(place_id: str, name: str, rating: float, lat: float, lng: float) -> dict:
    return {
        "id": place_id,
        "displayName": {"text": name},
        "formattedAddress": f"{name} Street, New York",
        "location": {"latitude": lat, "longitude": lng},
        "rating": rating,
        "websiteUri": f"https://{place_id}.example",
    }


@respx.mock
async def test_nearby_ranks_by_rating_and_distance(client):
    route = respx.post(NEARBY_URL).mock(return_value=Response(200, json={"places": [
        _place("near-ok", "Near OK", 4.0, 40.7130, -74.0060),
        _place("far-great", "Far Great", 4.8, 40.7500, -74.0060),
        _place("low", "Low Rated", 2.5, 40.7129, -74.0061),
    ]}))

    resp = await client.get(
        "/restaurants/nearby", params={"lat": 40.7128, "lng": -74.0060, "radius": 2, "min_rating": 3.5},
    )

    assert resp.status_code == 200
    data = resp.json()
    assert [r["id"] for r in data] == ["far-great", "near-ok"]
    assert data[1]["distance_miles"] is not None

    body = json.loads(route.calls.last.request.content)
    assert round(body["locationRestriction"]["circle"]["radius"]) == 3219


@respx.mock
async def test_nearby_max_distance(client):
    respx.post(NEARBY_URL).mock(return_value=Response(200, json={"places": [
        _place("near", "Near", 4.0, 40.7130, -74.0060),
        _place("far", "Far", 4.8, 40.7500, -74.0060),
    ]}))

    resp = await client.get(
        "/restaurants/nearby", params={"lat": 40.7128, "lng": -74.0060, "max_distance": 1},
    )

    assert [r["id"] for r in resp.json()] == ["near"]


async def test_nearby_rejects_bad_coordinates(client):
    resp = await client.get("/restaurants/nearby", params={"lat": 123, "lng": 0})
    assert resp.status_code == 422


@respx.mock
async def test_nearby_google_error(client):
    respx.post(NEARBY_URL).mock(return_value=Response(403, text="API key not valid"))

    resp = await client.get("/restaurants/nearby", params={"lat": 40.7, "lng": -74.0})

    assert resp.status_code == 502
    assert "API key not valid" in resp.json()["detail"]


@respx.mock
async def test_nearby_rate_limited(client):
    respx.post(NEARBY_URL).mock(return_value=Response(429, text="quota"))

    resp = await client.get("/restaurants/nearby", params={"lat": 40.7, "lng": -74.0})

    assert resp.status_code == 429
    assert resp.json()["detail"] == "Rate limit exceeded for Google Places"


@respx.mock
async def test_search(client):
    respx.post(SEARCH_URL).mock(return_value=Response(200, json={"places": [
        _place("tacos", "Veggie Tacos", 4.4, 40.71, -74.0),
    ]}))

    resp = await client.get("/restaurants/search", params={"query": "vegan tacos"})

    assert resp.status_code == 200
    data = resp.json()
    assert data[0]["name"] == "Veggie Tacos"
    assert data[0]["distance_miles"] is None


@respx.mock
async def test_restaurant_details(client):
    respx.get(f"{DETAILS_URL}/place-1").mock(return_value=Response(200, json={
        "id": "place-1",
        "displayName": {"text": "Green Fork"},
        "websiteUri": "https://greenfork.example",
        "nationalPhoneNumber": "(212) 555-0100",
    }))

    resp = await client.get("/restaurants/place-1")

    assert resp.status_code == 200
    data = resp.json()
    assert data["place_id"] == "place-1"
    assert data["website"] == "https://greenfork.example"
    assert data["phone"] == "(212) 555-0100"
