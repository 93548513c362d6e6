from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class PreviewRequest(BaseModel):
    limit: int = Field(default=5, ge=1, le=50)


class PreviewResponse(BaseModel):
    message: str
    article_count: int
    sources: List[str]
    content: str


class DeliveryFailure(BaseModel):
    email: str
    reason: str


class NewsletterRunResponse(BaseModel):
    status: str
    article_count: int
    succeeded: List[str] = []
    failed: List[DeliveryFailure] = []


class EmailCheckRequest(BaseModel):
    email: Optional[str] = None
