"""Open-Meteo weather and geocoding lookups."""
import logging

import httpx

try:
    from .models import Weather
    from .rounding import round_half_up
except ImportError:
    from models import Weather
    from rounding import round_half_up

logger = logging.getLogger(__name__)

FORECAST_URL = "https://api.open-meteo.com/v1/forecast"
GEOCODING_URL = "https://geocoding-api.open-meteo.com/v1/search"

# WMO weather interpretation codes
WEATHER_CODES = {
    0: "Clear",
    1: "Mostly Clear", 2: "Partly Cloudy", 3: "Overcast",
    45: "Foggy", 48: "Foggy",
    51: "Light Drizzle", 53: "Drizzle", 55: "Heavy Drizzle",
    61: "Light Rain", 63: "Rain", 65: "Heavy Rain",
    71: "Light Snow", 73: "Snow", 75: "Heavy Snow",
    80: "Showers", 81: "Showers", 82: "Heavy Showers",
    95: "Thunderstorms", 96: "Thunderstorms", 99: "Heavy Thunderstorms",
}


async def _get_json(url: str, params: dict, timeout: float, client: httpx.AsyncClient | None) -> dict:
    if client is not None:
        response = await client.get(url, params=params, timeout=timeout)
    else:
        async with httpx.AsyncClient(timeout=timeout) as owned:
            response = await owned.get(url, params=params)
    response.raise_for_status()
    return response.json()


async def get_current_weather(
    lat: float | None,
    lon: float | None,
    timeout: float = 30.0,
    client: httpx.AsyncClient | None = None
) -> Weather | None:
    """Current conditions in Fahrenheit, or None when unavailable."""
    if lat is None or lon is None:
        return None

    params = {
        "latitude": lat,
        "longitude": lon,
        "current_weather": "true",
        "temperature_unit": "fahrenheit",
        "timezone": "auto",
    }
    try:
        data = await _get_json(FORECAST_URL, params, timeout, client)
        current = data.get("current_weather")
        if not current:
            return None
        code = current.get("weathercode")
        return Weather(
            temperature=round_half_up(current["temperature"]),
            description=WEATHER_CODES.get(code, "Partly Cloudy"),
            code=code,
        )
    except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
        logger.warning("Weather fetch failed for %s,%s: %s", lat, lon, e)
        return None


async def geocode_location(
    city: str | None,
    state: str | None = None,
    postal_code: str | None = None,
    timeout: float = 30.0,
    client: httpx.AsyncClient | None = None
) -> dict | None:
    """Resolve a place to {lat, lon, city, state, country}, or None."""
    location = ", ".join(part for part in (city, state, postal_code) if part)
    if not location:
        return None

    params = {"name": location, "count": 1, "language": "en", "format": "json"}
    try:
        data = await _get_json(GEOCODING_URL, params, timeout, client)
        results = data.get("results") or []
        if not results:
            return None
        result = results[0]
        return {
            "lat": result["latitude"],
            "lon": result["longitude"],
            "city": result.get("name"),
            "state": result.get("admin1") or state,
            "country": result.get("country"),
        }
    except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
        logger.warning("Geocoding failed for %r: %s", location, e)
        return None
