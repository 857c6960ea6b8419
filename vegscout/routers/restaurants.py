from fastapi import APIRouter, Query

from vegscout.dependencies import GooglePlacesDep
from vegscout.mappers.geo import rank_for_selection
from vegscout.schemas.google_places import LatLng
from vegscout.schemas.restaurant import Restaurant, RestaurantDetails

router = APIRouter(prefix="/restaurants")

METERS_PER_MILE = 1609.34


@router.get("/nearby", response_model=list[Restaurant])
async def nearby_restaurants(
    places: GooglePlacesDep,
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    radius: float = Query(5.0, gt=0, description="Search radius in miles"),
    min_rating: float = Query(0.0, ge=0, le=5),
    max_distance: float | None = Query(None, gt=0),
) -> list[Restaurant]:
    found = await places.nearby_search(LatLng(latitude=lat, longitude=lng), radius * METERS_PER_MILE)
    return rank_for_selection(found, min_rating=min_rating, max_distance=max_distance)


@router.get("/search", response_model=list[Restaurant])
async def search_restaurants(
    places: GooglePlacesDep,
    query: str = Query(..., min_length=1),
    lat: float | None = Query(None, ge=-90, le=90),
    lng: float | None = Query(None, ge=-180, le=180),
) -> list[Restaurant]:
    location = LatLng(latitude=lat, longitude=lng) if lat is not None and lng is not None else None
    return await places.text_search(query, location)


@router.get("/{place_id}", response_model=RestaurantDetails)
async def restaurant_details(place_id: str, places: GooglePlacesDep) -> RestaurantDetails:
    return await places.get_place_details(place_id)
