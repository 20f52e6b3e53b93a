"""Pydantic models for share creation."""

from enum import Enum

from pydantic import BaseModel, ConfigDict


class Lifetime(str, Enum):
    NONE = ""
    FIVE_MINUTES = "5m"
    THIRTY_MINUTES = "30m"
    ONE_HOUR = "1h"
    FOUR_HOURS = "4h"
    TWELVE_HOURS = "12h"
    ONE_DAY = "1d"
    THREE_DAYS = "3d"
    SEVEN_DAYS = "7d"


LIFETIME_LABELS: dict[Lifetime, str] = {
    Lifetime.NONE: "No Limit",
    Lifetime.FIVE_MINUTES: "5 Minute",
    Lifetime.THIRTY_MINUTES: "30 Minute",
    Lifetime.ONE_HOUR: "1 Hour",
    Lifetime.FOUR_HOURS: "4 Hour",
    Lifetime.TWELVE_HOURS: "12 Hour",
    Lifetime.ONE_DAY: "1 Day",
    Lifetime.THREE_DAYS: "3 Day",
    Lifetime.SEVEN_DAYS: "7 Day",
}

# None stands for "unlimited"
VIEW_PRESETS: list[int | None] = [None, 5, 10, 25, 100]


class ExpirationResult(BaseModel):
    expires_at: str | None = None  # naive, e.g. "2025-09-27T15:40:59"
    timezone: str


class ShareRequest(BaseModel):
    files: list[str] = []
    message: str | None = None
    password: str | None = None
    max_views: int | None = None
    expires_at: str | None = None
    allowed_ip: str | None = None
    timezone: str | None = None

    def to_payload(self) -> dict:
        """JSON body for generate-url; keys without a value are left out."""
        return self.model_dump(exclude_none=True)


class ShareResult(BaseModel):
    """Response of generate-url. Unknown keys are passed through."""

    model_config = ConfigDict(extra="allow")

    id: str | int

    @property
    def share_url(self) -> str | None:
        extra = self.model_extra or {}
        for key in ("url", "secret_url", "share_url"):
            value = extra.get(key)
            if value:
                return str(value)
        return None
