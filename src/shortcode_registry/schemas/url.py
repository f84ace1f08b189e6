"""Request and response schemas for the Shortcode Registry API."""

from datetime import datetime
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..models import ClickEvent, Submission, UrlRecord
from ..utils.shortener import create_short_url


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ShortenRequest(CamelModel):
    """Request model for shortening a batch of URLs."""

    urls: list[Submission] = Field(..., description="URLs to shorten, in order")


class URLRecordResponse(CamelModel):
    """Response model for one shortened URL."""

    id: str
    original_url: str
    shortcode: str
    short_url: str
    created_at: datetime
    expiry_at: datetime
    click_count: int
    is_active: bool
    click_history: list[ClickEvent] = []

    @classmethod
    def from_record(
        cls, record: UrlRecord, base_url: str, now: Optional[datetime] = None
    ) -> "URLRecordResponse":
        return cls(
            id=record.id,
            original_url=record.original_url,
            shortcode=record.shortcode,
            short_url=create_short_url(base_url, record.shortcode),
            created_at=record.created_at,
            expiry_at=record.expiry_at,
            click_count=record.click_count,
            is_active=record.is_active(now),
            click_history=list(record.click_history),
        )


class ShortenResponse(CamelModel):
    """Response model for a created batch."""

    created: list[URLRecordResponse]


class URLListResponse(CamelModel):
    """Response model for all records, split by status."""

    active: list[URLRecordResponse]
    expired: list[URLRecordResponse]


class ErrorResponse(BaseModel):
    """Model for error responses."""

    detail: Union[str, list[str]]


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: Literal["healthy", "degraded"]
    records: int
    storage: str
