"""Pydantic models for shortened URL records and their click history."""

from datetime import datetime, timedelta, timezone
from typing import Annotated, Optional
from uuid import uuid4

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

DIRECT_SOURCE = "Direct"
UNKNOWN_LOCATION = "Unknown"


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDatetime = Annotated[datetime, AfterValidator(_as_utc)]


class RegistryModel(BaseModel):
    """Immutable model serialized with camelCase field names."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class ClickEvent(RegistryModel):
    """Model for one redirect visit."""

    timestamp: UtcDatetime = Field(default_factory=utc_now)
    source: str = Field(DIRECT_SOURCE, description="Referrer, or 'Direct'")
    location: str = Field(UNKNOWN_LOCATION, description="Coarse location label")


class UrlRecord(RegistryModel):
    """Model for one shortcode -> URL mapping."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    original_url: str
    shortcode: str
    created_at: UtcDatetime
    expiry_at: UtcDatetime
    click_history: tuple[ClickEvent, ...] = ()

    @computed_field(alias="clickCount")
    @property
    def click_count(self) -> int:
        return len(self.click_history)

    @classmethod
    def create(
        cls,
        original_url: str,
        shortcode: str,
        validity_minutes: int,
        created_at: Optional[datetime] = None,
    ) -> "UrlRecord":
        """Build a fresh record with an empty click history.

        Args:
            original_url: The original long URL.
            shortcode: The shortcode issued for it.
            validity_minutes: Positive number of minutes the link stays active.
            created_at: Creation time. Defaults to now.

        Returns:
            New UrlRecord.
        """
        if validity_minutes <= 0:
            raise ValueError("validity_minutes must be positive")
        created_at = _as_utc(created_at or utc_now())
        return cls(
            original_url=original_url,
            shortcode=shortcode,
            created_at=created_at,
            expiry_at=created_at + timedelta(minutes=validity_minutes),
        )

    def is_active(self, now: Optional[datetime] = None) -> bool:
        """Check whether the record still resolves at ``now``."""
        return is_active(self, now)

    def with_click(self, event: ClickEvent) -> "UrlRecord":
        """Return a copy of this record with ``event`` appended to its history."""
        return self.model_copy(update={"click_history": self.click_history + (event,)})


def is_active(record: UrlRecord, now: Optional[datetime] = None) -> bool:
    """A record is active iff ``now < expiry_at``."""
    now = _as_utc(now) if now is not None else utc_now()
    return now < record.expiry_at
