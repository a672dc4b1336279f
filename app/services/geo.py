"""
Coordenadas y distancias para filtrar partidos por ciudad.

Funciones puras: no tocan la base de datos.
"""
import math
import re
from dataclasses import dataclass

EARTH_RADIUS_KM = 6371.0

# https://maps.google.com/?q=40.7128,-74.0060  /  https://www.google.com/maps/@40.7128,-74.0060
_MAP_URL_RE = re.compile(r"[?@]([+-]?\d+\.\d+),([+-]?\d+\.\d+)")
# "40.7128,-74.0060" dentro de texto libre
_PLAIN_RE = re.compile(r"([+-]?\d+\.\d+),\s*([+-]?\d+\.\d+)")


@dataclass(frozen=True)
class City:
    name: str
    lat: float
    lng: float
    country: str | None = None


SUPPORTED_CITIES = (
    City("New York", 40.7128, -74.0060, "USA"),
    City("Los Angeles", 34.0522, -118.2437, "USA"),
    City("Chicago", 41.8781, -87.6298, "USA"),
    City("Houston", 29.7604, -95.3698, "USA"),
    City("Phoenix", 33.4484, -112.0742, "USA"),
    City("Philadelphia", 39.9526, -75.1652, "USA"),
    City("San Antonio", 29.4241, -98.4936, "USA"),
    City("San Diego", 32.7157, -117.1611, "USA"),
    City("Dallas", 32.7767, -96.7970, "USA"),
    City("San Jose", 37.3382, -121.8863, "USA"),
    City("Austin", 30.2672, -97.7431, "USA"),
    City("Denver", 39.7392, -104.9903, "USA"),
    City("Seattle", 47.6062, -122.3321, "USA"),
    City("Boston", 42.3601, -71.0589, "USA"),
    City("Miami", 25.7617, -80.1918, "USA"),
    City("Portland", 45.5152, -122.6784, "USA"),
    City("Atlanta", 33.7490, -84.3880, "USA"),
    City("London", 51.5074, -0.1278, "UK"),
    City("Toronto", 43.6532, -79.3832, "Canada"),
    City("Mexico City", 19.4326, -99.1332, "Mexico"),
    City("Barcelona", 41.3874, 2.1686, "Spain"),
    City("Madrid", 40.4168, -3.7038, "Spain"),
    City("Paris", 48.8566, 2.3522, "France"),
    City("Berlin", 52.5200, 13.4050, "Germany"),
    City("Amsterdam", 52.3676, 4.9041, "Netherlands"),
    City("Milan", 45.4642, 9.1900, "Italy"),
    City("Rome", 41.9028, 12.4964, "Italy"),
    City("Sydney", -33.8688, 151.2093, "Australia"),
    City("Melbourne", -37.8136, 144.9631, "Australia"),
    City("Singapore", 1.3521, 103.8198, "Singapore"),
    City("Tokyo", 35.6762, 139.6503, "Japan"),
    City("Mumbai", 19.0760, 72.8777, "India"),
    City("Bangkok", 13.7563, 100.5018, "Thailand"),
    City("Dubai", 25.2048, 55.2708, "UAE"),
    City("São Paulo", -23.5505, -46.6333, "Brazil"),
    City("Buenos Aires", -34.6037, -58.3816, "Argentina"),
)


def get_city_by_name(name: str | None) -> City | None:
    if not name:
        return None
    wanted = name.strip().lower()
    for city in SUPPORTED_CITIES:
        if city.name.lower() == wanted:
            return city
    return None


def search_cities(query: str | None) -> list[City]:
    q = (query or "").strip().lower()
    return [c for c in SUPPORTED_CITIES if q in c.name.lower()]


def extract_coordinates(location: str | None) -> tuple[float, float] | None:
    if not location:
        return None

    m = _MAP_URL_RE.search(location)
    if m:
        return float(m.group(1)), float(m.group(2))

    m = _PLAIN_RE.search(location)
    if m:
        lat, lng = float(m.group(1)), float(m.group(2))
        if -90 <= lat <= 90 and -180 <= lng <= 180:
            return lat, lng

    return None


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def within_distance(location: str | None, city: City, max_km: float) -> bool:
    coords = extract_coordinates(location)
    if coords is None:
        return False
    return haversine_km(city.lat, city.lng, coords[0], coords[1]) <= max_km
