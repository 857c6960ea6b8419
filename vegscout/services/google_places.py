import logging

import httpx

from vegscout.exceptions.custom import GooglePlacesError, RateLimitError
from vegscout.mappers.geo import haversine_miles
from vegscout.schemas.google_places import GooglePlace, LatLng, PlacesResponse
from vegscout.schemas.restaurant import Restaurant, RestaurantDetails

logger = logging.getLogger(__name__)

NEARBY_URL = "https://places.googleapis.com/v1/places:searchNearby"
SEARCH_URL = "https://places.googleapis.com/v1/places:searchText"
DETAILS_URL = "https://places.googleapis.com/v1/places"

MAX_RESULTS = 20
MAX_RADIUS_METERS = 50000.0

FIELD_MASK = (
    "places.id,"
    "places.displayName,"
    "places.formattedAddress,"
    "places.shortFormattedAddress,"
    "places.location,"
    "places.rating,"
    "places.priceLevel,"
    "places.websiteUri"
)

DETAILS_FIELD_MASK = (
    "id,"
    "displayName,"
    "formattedAddress,"
    "nationalPhoneNumber,"
    "internationalPhoneNumber,"
    "websiteUri,"
    "regularOpeningHours"
)


def to_restaurant(place: GooglePlace, origin: LatLng | None = None) -> Restaurant | None:
    if not place.id:
        return None
    distance = None
    if origin is not None and place.location is not None:
        distance = round(haversine_miles(
            origin.latitude, origin.longitude, place.location.latitude, place.location.longitude,
        ), 2)
    return Restaurant(
        id=place.id,
        name=(place.displayName.text if place.displayName else None) or "Unnamed restaurant",
        address=place.shortFormattedAddress or place.formattedAddress,
        latitude=place.location.latitude if place.location else None,
        longitude=place.location.longitude if place.location else None,
        website=place.websiteUri,
        rating=place.rating,
        price_level=place.priceLevel,
        distance_miles=distance,
    )


def _circle(location: LatLng, radius: float) -> dict:
    return {
        "circle": {
            "center": {"latitude": location.latitude, "longitude": location.longitude},
            "radius": min(max(radius, 1.0), MAX_RADIUS_METERS),
        }
    }


class GooglePlacesService:
    def __init__(self, client: httpx.AsyncClient, api_key: str):
        self._client = client
        self._api_key = api_key

    def _headers(self, field_mask: str) -> dict:
        return {
            "Content-Type": "application/json",
            "X-Goog-Api-Key": self._api_key,
            "X-Goog-FieldMask": field_mask,
        }

    @staticmethod
    def _check(resp: httpx.Response) -> None:
        if resp.status_code == 429:
            raise RateLimitError("Google Places")
        if resp.status_code >= 400:
            raise GooglePlacesError(resp.text, status_code=resp.status_code)

    async def nearby_search(self, location: LatLng, radius: float) -> list[Restaurant]:
        payload = {
            "includedTypes": ["restaurant"],
            "maxResultCount": MAX_RESULTS,
            "rankPreference": "DISTANCE",
            "locationRestriction": _circle(location, radius),
        }
        resp = await self._client.post(NEARBY_URL, json=payload, headers=self._headers(FIELD_MASK))
        self._check(resp)

        data = PlacesResponse(**resp.json())
        restaurants = [r for p in data.places if (r := to_restaurant(p, location)) is not None]
        logger.info("Nearby search returned %d restaurants", len(restaurants))
        return restaurants

    async def text_search(self, query: str, location: LatLng | None = None) -> list[Restaurant]:
        payload: dict = {"textQuery": query, "includedType": "restaurant", "pageSize": MAX_RESULTS}
        if location is not None:
            payload["locationBias"] = _circle(location, 5000.0)

        resp = await self._client.post(SEARCH_URL, json=payload, headers=self._headers(FIELD_MASK))
        self._check(resp)

        data = PlacesResponse(**resp.json())
        if not data.places:
            logger.info("No results for query: %s", query)
        return [r for p in data.places if (r := to_restaurant(p, location)) is not None]

    async def get_place_details(self, place_id: str) -> RestaurantDetails:
        resp = await self._client.get(
            f"{DETAILS_URL}/{place_id}",
            headers={"X-Goog-Api-Key": self._api_key, "X-Goog-FieldMask": DETAILS_FIELD_MASK},
        )
        self._check(resp)

        place = GooglePlace(**resp.json())
        return RestaurantDetails(
            place_id=place.id or place_id,
            name=place.displayName.text if place.displayName else None,
            website=place.websiteUri,
            phone=place.nationalPhoneNumber or place.internationalPhoneNumber,
            address=place.formattedAddress,
            opening_hours=place.regularOpeningHours.weekdayDescriptions if place.regularOpeningHours else [],
        )
