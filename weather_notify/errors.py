"""
Error taxonomy for the Weather Notify service.

Every error carries the HTTP status it maps to, so the API layer can
translate failures without inspecting messages.
"""


class WeatherNotifyError(Exception):
    """Base class for all service errors."""
    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
        self.message = message


class ValidationError(WeatherNotifyError):
    """Malformed input (email, city, frequency or token)."""
    status_code = 400


class AlreadyConfirmedError(WeatherNotifyError):
    """Subscription was confirmed before."""
    status_code = 400

    def __init__(self, message: str = "Subscription is already confirmed"):
        super().__init__(message)


class DuplicateError(WeatherNotifyError):
    """Email already has a subscription."""
    status_code = 409

    def __init__(self, message: str = "Email already subscribed"):
        super().__init__(message)


class NotFoundError(WeatherNotifyError):
    """Unknown token or unknown city."""
    status_code = 404


class SubscriptionNotFoundError(NotFoundError):
    """No subscription has the given token."""

    def __init__(self, message: str = "Token not found"):
        super().__init__(message)


class CityNotFoundError(NotFoundError):
    """The weather provider does not know the city."""

    def __init__(self, message: str = "City not found"):
        super().__init__(message)


class DependencyError(WeatherNotifyError):
    """A collaborator (store, weather provider, SMTP) failed."""
    status_code = 500


class StoreError(DependencyError):
    """The subscription database failed or is closed."""


class WeatherAPIError(DependencyError):
    """Transport failure or unexpected response from the weather provider."""


class NotificationError(DependencyError):
    """An email could not be sent."""
