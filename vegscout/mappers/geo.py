import math

from vegscout.schemas.restaurant import Restaurant

EARTH_RADIUS_MILES = 3958.8


def haversine_miles(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_MILES * math.asin(math.sqrt(a))


def rank_for_selection(
    restaurants: list[Restaurant],
    min_rating: float = 0.0,
    max_distance: float | None = None,
) -> list[Restaurant]:
    """Filter by rating/distance, best first (rating*2 - distance*0.1)."""
    kept = [
        r for r in restaurants
        if (r.rating or 0.0) >= min_rating
        and (max_distance is None or r.distance_miles is None or r.distance_miles <= max_distance)
    ]
    return sorted(
        kept,
        key=lambda r: (r.rating or 0.0) * 2 - (r.distance_miles or 0.0) * 0.1,
        reverse=True,
    )
