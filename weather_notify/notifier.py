"""
Email notifier for Weather Notify.

Sends two plain-text emails: the subscription confirmation and the
periodic weather update.
"""

import smtplib
import logging
from email.mime.text import MIMEText

from .errors import NotificationError
from .models import WeatherData

logger = logging.getLogger(__name__)


class EmailNotifier:
    """SMTP sender for confirmation and update emails."""

    def __init__(
        self,
        host: str,
        port: int = 587,
        username: str = "",
        password: str = "",
        from_email: str = "",
        website_url: str = "http://localhost:8000",
        use_tls: bool = True,
        timeout: int = 10
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_email = from_email or username
        self.website_url = website_url.rstrip("/")
        self.use_tls = use_tls
        self.timeout = timeout

    def confirm_url(self, token: str) -> str:
        return f"{self.website_url}/api/confirm/{token}"

    def unsubscribe_url(self, token: str) -> str:
        return f"{self.website_url}/api/unsubscribe/{token}"

    def send_confirmation(self, email: str, city: str, token: str) -> None:
        subject = "Confirm Your Weather Update Subscription"
        body = f"""Hello,

Thank you for subscribing to weather updates for {city}.

Please confirm your subscription by clicking the link below:
{self.confirm_url(token)}

If you did not request this subscription, please ignore this email.

Best regards"""
        self._send(email, subject, body)

    def send_update(self, email: str, city: str, token: str, weather: WeatherData) -> None:
        subject = f"Weather Update for {city}"
        body = f"""Hello,

Here is your weather update for {city}:

Temperature: {weather.temperature:.1f}°C
Humidity: {weather.humidity}%
Conditions: {weather.description}

To unsubscribe from these updates, click the link below:
{self.unsubscribe_url(token)}

Best regards"""
        self._send(email, subject, body)

    def _send(self, to: str, subject: str, body: str) -> None:
        if not self.host:
            raise NotificationError("SMTP host is not configured")

        message = MIMEText(body, "plain", "utf-8")
        message["From"] = self.from_email
        message["To"] = to
        message["Subject"] = subject

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                if self.use_tls:
                    server.starttls()
                if self.username:
                    server.login(self.username, self.password)
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationError(f"Failed to send email to {to}: {e}") from e

        logger.info(f"Email '{subject}' sent to {to}")
