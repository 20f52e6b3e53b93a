"""Expiration timestamp and timezone detection for new share links."""

import logging
from datetime import datetime, timedelta

import pytz
from tzlocal import get_localzone_name

from ghosttransfer.config import settings
from ghosttransfer.models.share import ExpirationResult, Lifetime

logger = logging.getLogger(__name__)

# Naive datetime, e.g. 2025-09-27T15:40:59
NAIVE_FORMAT = "%Y-%m-%dT%H:%M:%S"

LIFETIME_DURATIONS: dict[Lifetime, timedelta] = {
    Lifetime.FIVE_MINUTES: timedelta(minutes=5),
    Lifetime.THIRTY_MINUTES: timedelta(minutes=30),
    Lifetime.ONE_HOUR: timedelta(hours=1),
    Lifetime.FOUR_HOURS: timedelta(hours=4),
    Lifetime.TWELVE_HOURS: timedelta(hours=12),
    Lifetime.ONE_DAY: timedelta(days=1),
    Lifetime.THREE_DAYS: timedelta(days=3),
    Lifetime.SEVEN_DAYS: timedelta(days=7),
}


def detect_timezone() -> str:
    """Return the local IANA timezone name, or the configured fallback."""
    try:
        name = get_localzone_name()
        if not name:
            raise ValueError("empty timezone name")
        pytz.timezone(name)
        return name
    except Exception as exc:
        logger.warning(
            "Could not detect timezone, using fallback %s: %s",
            settings.fallback_timezone, exc,
        )
        return settings.fallback_timezone


def _parse_lifetime(lifetime: Lifetime | str | None) -> Lifetime:
    if isinstance(lifetime, Lifetime):
        return lifetime
    try:
        return Lifetime(lifetime or "")
    except ValueError:
        return Lifetime.NONE


def calculate_expiration(
    lifetime: Lifetime | str | None,
    now: datetime | None = None,
) -> ExpirationResult:
    """Map a lifetime selector to a naive local expiry timestamp.

    Unknown selectors behave like ``Lifetime.NONE``.
    """
    timezone = detect_timezone()
    duration = LIFETIME_DURATIONS.get(_parse_lifetime(lifetime))
    if duration is None:
        return ExpirationResult(expires_at=None, timezone=timezone)

    if now is None:
        now = datetime.now()
    expires = now.replace(tzinfo=None) + duration
    return ExpirationResult(expires_at=expires.strftime(NAIVE_FORMAT), timezone=timezone)
