"""
Weather lookup for Weather Notify.

Wraps the WeatherAPI.com current-conditions endpoint. Transport errors
are checked before the response is inspected, and every request is
bounded by a timeout.
"""

import logging
from typing import Optional

import requests
from pydantic import BaseModel

from .errors import CityNotFoundError, WeatherAPIError
from .models import WeatherData

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.weatherapi.com/v1"
DEFAULT_TIMEOUT = 10  # seconds
USER_AGENT = "WeatherNotify/1.0"

# WeatherAPI.com error code for "No matching location found."
LOCATION_NOT_FOUND_CODE = 1006


class _Condition(BaseModel):
    text: str


class _Current(BaseModel):
    temp_c: float
    humidity: int
    condition: _Condition


class CurrentWeatherResponse(BaseModel):
    """Subset of the current.json payload we rely on."""
    current: _Current


class WeatherClient:
    """Client for the current-weather endpoint of WeatherAPI.com."""

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: int = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or self._create_session()

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.headers.update({
            "User-Agent": USER_AGENT,
            "Accept": "application/json"
        })
        return session

    def get_current_weather(self, city: str) -> WeatherData:
        """
        Fetch current conditions for a city.

        Raises:
            CityNotFoundError: the provider does not know the city
            WeatherAPIError: transport failure or unexpected response
        """
        url = f"{self.base_url}/current.json"

        try:
            response = self._session.get(
                url,
                params={"key": self.api_key, "q": city},
                timeout=self.timeout
            )
        except requests.Timeout:
            raise WeatherAPIError(f"Weather API request timed out after {self.timeout}s")
        except requests.ConnectionError as e:
            raise WeatherAPIError(f"Weather API unavailable: {e}")
        except requests.RequestException as e:
            raise WeatherAPIError(f"Weather API request failed: {e}")

        if response.status_code == 404 or self._is_unknown_location(response):
            raise CityNotFoundError()

        if response.status_code != 200:
            raise WeatherAPIError(
                f"Weather API returned non-OK status: {response.status_code}"
            )

        try:
            payload = CurrentWeatherResponse.model_validate(response.json())
        except ValueError as e:
            # Covers both JSONDecodeError and pydantic's ValidationError
            raise WeatherAPIError(f"Failed to decode weather API response: {e}")

        weather = WeatherData(
            temperature=payload.current.temp_c,
            humidity=payload.current.humidity,
            description=payload.current.condition.text
        )
        logger.debug(f"Weather for {city}: {weather}")
        return weather

    def _is_unknown_location(self, response: requests.Response) -> bool:
        if response.status_code != 400:
            return False
        try:
            error = response.json().get("error") or {}
        except (ValueError, AttributeError):
            return False
        return error.get("code") == LOCATION_NOT_FOUND_CODE

    def close(self) -> None:
        self._session.close()
