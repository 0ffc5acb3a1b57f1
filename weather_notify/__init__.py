"""
Weather Notify Backend

A subscription-based weather email service with:
- Email + city + frequency subscriptions confirmed by emailed token
- SQLite persistence of subscriptions
- Scheduled hourly and daily weather update emails
- REST API for weather lookup and subscription management
"""

from .database import SubscriptionStore
from .errors import (
    WeatherNotifyError,
    ValidationError,
    AlreadyConfirmedError,
    DuplicateError,
    NotFoundError,
    SubscriptionNotFoundError,
    CityNotFoundError,
    DependencyError,
    StoreError,
    WeatherAPIError,
    NotificationError,
)
from .models import Frequency, Subscription, WeatherData
from .notifier import EmailNotifier
from .scheduler import UpdateScheduler, DeliveryResult
from .subscriptions import SubscriptionManager
from .weather import WeatherClient

__version__ = "1.0.0"

__all__ = [
    "SubscriptionStore",
    "WeatherNotifyError",
    "ValidationError",
    "AlreadyConfirmedError",
    "DuplicateError",
    "NotFoundError",
    "SubscriptionNotFoundError",
    "CityNotFoundError",
    "DependencyError",
    "StoreError",
    "WeatherAPIError",
    "NotificationError",
    "Frequency",
    "Subscription",
    "WeatherData",
    "EmailNotifier",
    "UpdateScheduler",
    "DeliveryResult",
    "SubscriptionManager",
    "WeatherClient",
]
