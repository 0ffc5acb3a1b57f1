import os

# Settings are read when weather_notify.api is imported
os.environ.setdefault("WEATHER_API_KEY", "test-key")
os.environ.setdefault("SMTP_HOST", "localhost")
os.environ.setdefault("WEBSITE_URL", "http://testserver")
os.environ.setdefault("SCHEDULER_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient

from weather_notify.api import create_app
from weather_notify.config import Settings
from weather_notify.database import SubscriptionStore
from weather_notify.errors import CityNotFoundError, NotificationError, WeatherAPIError
from weather_notify.models import WeatherData
from weather_notify.subscriptions import SubscriptionManager


class FakeNotifier:
    """Records emails instead of sending them."""

    def __init__(self):
        self.confirmations = []
        self.updates = []
        self.fail_for = set()

    def send_confirmation(self, email, city, token):
        if email in self.fail_for:
            raise NotificationError(f"Failed to send email to {email}: refused")
        self.confirmations.append((email, city, token))

    def send_update(self, email, city, token, weather):
        if email in self.fail_for:
            raise NotificationError(f"Failed to send email to {email}: refused")
        self.updates.append((email, city, token, weather))


class FakeWeather:
    """Serves canned weather; unknown cities raise CityNotFoundError."""

    def __init__(self):
        self.cities = {
            "Kyiv": WeatherData(temperature=12.5, humidity=70, description="Partly cloudy"),
            "Lviv": WeatherData(temperature=9.0, humidity=81, description="Light rain"),
            "Odesa": WeatherData(temperature=17.2, humidity=64, description="Sunny"),
        }
        self.broken = set()
        self.calls = []

    def get_current_weather(self, city):
        self.calls.append(city)
        if city in self.broken:
            raise WeatherAPIError("Weather API returned non-OK status: 502")
        if city not in self.cities:
            raise CityNotFoundError()
        return self.cities[city]


@pytest.fixture
def store(tmp_path):
    store = SubscriptionStore(str(tmp_path / "test.db"))
    yield store
    store.close()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def weather():
    return FakeWeather()


@pytest.fixture
def manager(store, notifier):
    return SubscriptionManager(store, notifier)


@pytest.fixture
def client(store, weather, notifier):
    app = create_app(
        settings=Settings(website_url="http://testserver"),
        store=store,
        weather=weather,
        notifier=notifier,
        enable_scheduler=False
    )
    with TestClient(app) as test_client:
        yield test_client
