from pydantic import BaseModel


class LatLng(BaseModel):
    latitude: float = 0.0
    longitude: float = 0.0


class DisplayName(BaseModel):
    text: str | None = None


class OpeningHours(BaseModel):
    openNow: bool | None = None
    weekdayDescriptions: list[str] = []


class GooglePlace(BaseModel):
    id: str | None = None
    displayName: DisplayName | None = None
    formattedAddress: str | None = None
    shortFormattedAddress: str | None = None
    nationalPhoneNumber: str | None = None
    internationalPhoneNumber: str | None = None
    websiteUri: str | None = None
    location: LatLng | None = None
    rating: float | None = None
    userRatingCount: int | None = None
    priceLevel: str | None = None
    businessStatus: str | None = None
    regularOpeningHours: OpeningHours | None = None
    types: list[str] = []


class PlacesResponse(BaseModel):
    places: list[GooglePlace] = []
