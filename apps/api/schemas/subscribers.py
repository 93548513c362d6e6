from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class SubscriberCreateRequest(BaseModel):
    email: Optional[str] = None


class SubscriberUpdateRequest(BaseModel):
    email: Optional[str] = None
    active: Optional[bool] = None


class UnsubscribeRequest(BaseModel):
    email: Optional[str] = None


class SubscriberResponse(BaseModel):
    id: str
    email: str
    active: bool
    created_at: str
    updated_at: str
