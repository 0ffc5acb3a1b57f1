"""
Subscription lifecycle for Weather Notify.

A subscription is created pending, becomes confirmed through its token,
and is removed (from either state) through the same token:

    pending --confirm--> confirmed
    pending | confirmed --unsubscribe--> deleted

Deleted is terminal: the row is gone and the token no longer resolves.
"""

import logging
import re
import secrets

import pydantic

from .errors import AlreadyConfirmedError, ValidationError
from .models import NewSubscription, Subscription

logger = logging.getLogger(__name__)

TOKEN_BYTES = 16
TOKEN_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,128}$")


def generate_token() -> str:
    """128-bit random token, hex-encoded so it is safe in a URL path."""
    return secrets.token_hex(TOKEN_BYTES)


def _describe(error: pydantic.ValidationError) -> str:
    first = error.errors()[0]
    field = ".".join(str(part) for part in first["loc"])
    return f"{field}: {first['msg']}" if field else first["msg"]


class SubscriptionManager:
    """
    Enforces the subscription state machine on top of the store.

    The store and notifier are shared with the scheduler and are expected
    to be safe for concurrent use.
    """

    def __init__(self, store, notifier):
        self.store = store
        self.notifier = notifier

    def subscribe(self, email: str, city: str, frequency: str) -> Subscription:
        """
        Create a pending subscription and email its confirmation link.

        The record is kept even if the confirmation email fails; the
        NotificationError is re-raised so the caller knows.

        Raises:
            ValidationError: malformed email, city or frequency
            DuplicateError: the email already has a subscription
            NotificationError: saved, but the email could not be sent
        """
        try:
            request = NewSubscription(email=email, city=city, frequency=frequency)
        except pydantic.ValidationError as e:
            raise ValidationError(_describe(e)) from e

        subscription = Subscription(
            email=request.email,
            city=request.city,
            frequency=request.frequency,
            token=generate_token(),
            confirmed=False
        )
        subscription = self.store.create(subscription)
        logger.info(f"Subscription {subscription.id} created for {subscription.city} "
                    f"({subscription.frequency.value}), awaiting confirmation")

        self.notifier.send_confirmation(subscription.email, subscription.city, subscription.token)
        return subscription

    def confirm(self, token: str) -> Subscription:
        self._check_token(token)
        subscription = self.store.find_by_token(token)
        if subscription.confirmed:
            raise AlreadyConfirmedError()

        # Raises AlreadyConfirmedError if a concurrent confirm won
        self.store.update_confirmation(token, True)
        subscription.confirmed = True
        logger.info(f"Subscription {subscription.id} confirmed")
        return subscription

    def unsubscribe(self, token: str) -> None:
        self._check_token(token)
        subscription = self.store.find_by_token(token)
        self.store.delete(token)
        logger.info(f"Subscription {subscription.id} deleted")

    @staticmethod
    def _check_token(token: str) -> None:
        if not token or not token.strip():
            raise ValidationError("Token is required")
        if not TOKEN_PATTERN.match(token):
            raise ValidationError("Invalid token")
