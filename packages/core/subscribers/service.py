from __future__ import annotations

import re
from dataclasses import replace
from typing import Optional

from ..clock import utc_now_iso
from ..errors import ConflictError, NotFoundError, ValidationError
from ..storage.base import SubscriberState, SubscriberStore


EMAIL_PATTERN = re.compile(r"^[\w.+-]+@[\w-]+(\.[\w-]+)*\.[a-zA-Z]{2,}$")


def normalize_email(email: Optional[str]) -> str:
    cleaned = (email or "").strip().lower()
    if not cleaned:
        raise ValidationError("Email is required", error="email")
    if not EMAIL_PATTERN.match(cleaned):
        raise ValidationError("Please enter a valid email", error=cleaned)
    return cleaned


def subscribe(store: SubscriberStore, email: Optional[str]) -> SubscriberState:
    """Create a subscriber, or reactivate one that previously unsubscribed."""
    normalized = normalize_email(email)
    existing = store.get_subscriber_by_email(normalized)
    if existing is not None:
        if existing.active:
            raise ConflictError("Email already subscribed", error=normalized)
        reactivated = replace(existing, active=True, updated_at=utc_now_iso())
        store.update_subscriber(reactivated)
        return reactivated
    return store.create_subscriber(normalized, active=True)


def get_subscriber(store: SubscriberStore, subscriber_id: str) -> SubscriberState:
    subscriber = store.get_subscriber(subscriber_id)
    if subscriber is None:
        raise NotFoundError("Subscriber not found", error=subscriber_id)
    return subscriber


def update_subscriber(
    store: SubscriberStore,
    subscriber_id: str,
    email: Optional[str] = None,
    active: Optional[bool] = None,
) -> SubscriberState:
    subscriber = get_subscriber(store, subscriber_id)
    new_email = normalize_email(email) if email is not None else subscriber.email
    if new_email != subscriber.email:
        clash = store.get_subscriber_by_email(new_email)
        if clash is not None and clash.id != subscriber.id:
            raise ConflictError("Email already subscribed", error=new_email)
    updated = replace(
        subscriber,
        email=new_email,
        active=active if active is not None else subscriber.active,
        updated_at=utc_now_iso(),
    )
    store.update_subscriber(updated)
    return updated


def deactivate_subscriber(store: SubscriberStore, email: Optional[str]) -> SubscriberState:
    normalized = normalize_email(email)
    subscriber = store.get_subscriber_by_email(normalized)
    if subscriber is None:
        raise NotFoundError("Subscriber not found", error=normalized)
    if not subscriber.active:
        return subscriber
    updated = replace(subscriber, active=False, updated_at=utc_now_iso())
    store.update_subscriber(updated)
    return updated


def delete_subscriber(store: SubscriberStore, subscriber_id: str) -> None:
    if not store.delete_subscriber(subscriber_id):
        raise NotFoundError("Subscriber not found", error=subscriber_id)
