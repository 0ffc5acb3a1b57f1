import threading

import pytest

from weather_notify.errors import (
    AlreadyConfirmedError,
    DuplicateError,
    NotificationError,
    SubscriptionNotFoundError,
    ValidationError,
)
from weather_notify.models import Frequency
from weather_notify.subscriptions import generate_token


def test_generate_token_is_128_bit_hex():
    token = generate_token()
    assert len(token) == 32
    int(token, 16)
    assert generate_token() != token


def test_subscribe_creates_pending_subscription(manager, store, notifier):
    subscription = manager.subscribe("a@x.com", "Kyiv", "daily")

    assert subscription.id is not None
    assert subscription.confirmed is False
    assert subscription.state == "pending"
    assert subscription.frequency == Frequency.DAILY
    assert len(subscription.token) == 32

    saved = store.find_by_token(subscription.token)
    assert saved.email == "a@x.com"
    assert saved.city == "Kyiv"
    assert saved.confirmed is False
    assert notifier.confirmations == [("a@x.com", "Kyiv", subscription.token)]


def test_subscribe_tokens_are_unique(manager):
    tokens = {
        manager.subscribe(f"user{i}@x.com", "Kyiv", "hourly").token
        for i in range(20)
    }
    assert len(tokens) == 20


def test_subscribe_normalizes_input(manager):
    subscription = manager.subscribe("b@x.com", "  Lviv ", "HOURLY")
    assert subscription.city == "Lviv"
    assert subscription.frequency == Frequency.HOURLY


@pytest.mark.parametrize("email, city, frequency", [
    ("not-an-email", "Kyiv", "daily"),
    ("", "Kyiv", "daily"),
    ("a@x.com", "", "daily"),
    ("a@x.com", "   ", "daily"),
    ("a@x.com", "Kyiv", "weekly"),
])
def test_subscribe_rejects_invalid_input(manager, store, notifier, email, city, frequency):
    with pytest.raises(ValidationError):
        manager.subscribe(email, city, frequency)
    assert store.count() == 0
    assert notifier.confirmations == []


def test_subscribe_same_email_twice_is_duplicate(manager, store, notifier):
    manager.subscribe("a@x.com", "Kyiv", "daily")

    with pytest.raises(DuplicateError):
        manager.subscribe("a@x.com", "Lviv", "hourly")
    with pytest.raises(DuplicateError):
        manager.subscribe("A@x.com", "Lviv", "hourly")

    assert store.count() == 1
    assert len(notifier.confirmations) == 1


def test_subscribe_keeps_record_when_email_fails(manager, store, notifier):
    notifier.fail_for.add("a@x.com")

    with pytest.raises(NotificationError):
        manager.subscribe("a@x.com", "Kyiv", "daily")

    assert store.count() == 1
    with pytest.raises(DuplicateError):
        manager.subscribe("a@x.com", "Kyiv", "daily")


def test_confirm_flips_flag_once(manager, store, notifier):
    token = manager.subscribe("a@x.com", "Kyiv", "daily").token

    confirmed = manager.confirm(token)
    assert confirmed.confirmed is True
    assert store.find_by_token(token).confirmed is True

    with pytest.raises(AlreadyConfirmedError):
        manager.confirm(token)
    # Confirmation itself sends nothing
    assert len(notifier.confirmations) == 1


def test_confirm_unknown_token(manager):
    with pytest.raises(SubscriptionNotFoundError):
        manager.confirm("0" * 32)


@pytest.mark.parametrize("token", ["", "   ", "abc/def", "x" * 129, "tok en"])
def test_malformed_tokens_are_validation_errors(manager, token):
    with pytest.raises(ValidationError):
        manager.confirm(token)
    with pytest.raises(ValidationError):
        manager.unsubscribe(token)


def test_unsubscribe_removes_subscription(manager, store):
    token = manager.subscribe("a@x.com", "Kyiv", "daily").token
    manager.confirm(token)

    manager.unsubscribe(token)

    with pytest.raises(SubscriptionNotFoundError):
        store.find_by_token(token)
    with pytest.raises(SubscriptionNotFoundError):
        manager.unsubscribe(token)
    with pytest.raises(SubscriptionNotFoundError):
        manager.confirm(token)


def test_unsubscribe_pending_subscription(manager, store):
    token = manager.subscribe("a@x.com", "Kyiv", "daily").token
    manager.unsubscribe(token)
    assert store.count() == 0


def test_email_can_resubscribe_after_unsubscribe(manager):
    first = manager.subscribe("a@x.com", "Kyiv", "daily")
    manager.unsubscribe(first.token)

    second = manager.subscribe("a@x.com", "Kyiv", "daily")
    assert second.token != first.token
    assert second.confirmed is False


def test_concurrent_confirms_succeed_once(manager, store, monkeypatch):
    token = manager.subscribe("a@x.com", "Kyiv", "daily").token

    # Both callers read the pending record before either writes
    barrier = threading.Barrier(2, timeout=5)
    find_by_token = store.find_by_token

    def find_then_wait(token):
        subscription = find_by_token(token)
        barrier.wait()
        return subscription

    monkeypatch.setattr(store, "find_by_token", find_then_wait)

    outcomes = []

    def confirm():
        try:
            manager.confirm(token)
            outcomes.append("ok")
        except AlreadyConfirmedError:
            outcomes.append("already")

    threads = [threading.Thread(target=confirm) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)

    assert sorted(outcomes) == ["already", "ok"]
    assert find_by_token(token).confirmed is True
