from pydantic import BaseModel, ConfigDict


class Restaurant(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    address: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    website: str | None = None
    rating: float | None = None
    price_level: str | None = None
    distance_miles: float | None = None


class RestaurantDetails(BaseModel):
    place_id: str
    name: str | None = None
    website: str | None = None
    phone: str | None = None
    address: str | None = None
    opening_hours: list[str] = []
