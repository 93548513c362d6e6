from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from apps.api.schemas.subscribers import (
    SubscriberCreateRequest,
    SubscriberResponse,
    SubscriberUpdateRequest,
    UnsubscribeRequest,
)
from apps.api.services import Services, get_services
from packages.core.storage.base import SubscriberState
from packages.core.subscribers.service import (
    deactivate_subscriber,
    delete_subscriber,
    get_subscriber,
    subscribe,
    update_subscriber,
)


router = APIRouter(prefix="/subscribers", tags=["subscribers"])


def _to_response(subscriber: SubscriberState) -> SubscriberResponse:
    return SubscriberResponse(
        id=subscriber.id,
        email=subscriber.email,
        active=subscriber.active,
        created_at=subscriber.created_at,
        updated_at=subscriber.updated_at,
    )


@router.get("", response_model=List[SubscriberResponse])
def list_all(
    active_only: bool = False, services: Services = Depends(get_services)
) -> List[SubscriberResponse]:
    subscribers = services.store.list_subscribers(active_only=active_only)
    return [_to_response(subscriber) for subscriber in subscribers]


@router.post("", response_model=SubscriberResponse, status_code=201)
def create(
    payload: SubscriberCreateRequest, services: Services = Depends(get_services)
) -> SubscriberResponse:
    return _to_response(subscribe(services.store, payload.email))


@router.post("/unsubscribe")
def unsubscribe(
    payload: UnsubscribeRequest, services: Services = Depends(get_services)
) -> Dict[str, Any]:
    subscriber = deactivate_subscriber(services.store, payload.email)
    return {"message": "Successfully unsubscribed", "email": subscriber.email}


@router.get("/{subscriber_id}", response_model=SubscriberResponse)
def get(subscriber_id: str, services: Services = Depends(get_services)) -> SubscriberResponse:
    return _to_response(get_subscriber(services.store, subscriber_id))


@router.put("/{subscriber_id}", response_model=SubscriberResponse)
def update(
    subscriber_id: str,
    payload: SubscriberUpdateRequest,
    services: Services = Depends(get_services),
) -> SubscriberResponse:
    subscriber = update_subscriber(
        services.store, subscriber_id, email=payload.email, active=payload.active
    )
    return _to_response(subscriber)


@router.delete("/{subscriber_id}")
def delete(subscriber_id: str, services: Services = Depends(get_services)) -> Dict[str, Any]:
    delete_subscriber(services.store, subscriber_id)
    return {"message": "Subscriber deleted", "id": subscriber_id}
