"""Request-side date helpers for analytics endpoints.

Analytics requests are parameterized either by ?period=<preset> or by an
explicit ?from=<ISO>&to=<ISO> pair. This module turns those query values into
a DateRange and converts resolution failures into HTTP 400 errors.
"""

from datetime import datetime, timezone
from typing import Optional
from fastapi import HTTPException
import logging

from analytics_api.config import settings
from analytics_api.services.date_range import (
    Clock,
    DateRange,
    InvalidPreset,
    resolve_preset,
)

logger = logging.getLogger(__name__)


def parse_iso_instant(value: str) -> datetime:
    """
    Parse an ISO-8601 instant such as "2024-01-01T00:00:00.000Z".

    Parsing Semantics:
    - A trailing "Z" means UTC
    - Values without an offset are read as UTC
    - Plain dates ("2024-01-01") are midnight UTC

    Raises:
        HTTPException: If the value is not ISO-8601 (400 Bad Request)

    Examples:
        >>> parse_iso_instant("2024-01-31T00:00:00.000Z")
        datetime.datetime(2024, 1, 31, 0, 0, tzinfo=datetime.timezone.utc)
    """
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as e:
        logger.warning(f"Failed to parse instant '{value}': {e}")
        raise HTTPException(
            status_code=400,
            detail=f"Invalid date format. Expected ISO-8601, got: {value}"
        )
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_date_range(
    period: Optional[str] = None,
    from_: Optional[str] = None,
    to: Optional[str] = None,
    clock: Optional[Clock] = None,
) -> DateRange:
    """
    Convert analytics query parameters to a concrete date range.

    Resolution order:
    - If both from and to are given they win, whatever the period says
    - Otherwise period is resolved as a preset (default: settings.default_period)

    Args:
        period: Preset name (today, yesterday, last_7_days, ..., last_12_months)
        from_: Explicit start instant (ISO-8601)
        to: Explicit end instant (ISO-8601)
        clock: Time source for preset resolution

    Returns:
        DateRange for the request

    Raises:
        HTTPException: If the period is unknown, an instant is malformed,
                       or the explicit range ends before it starts (400 Bad Request)
    """
    if from_ and to:
        explicit = DateRange(start=parse_iso_instant(from_), end=parse_iso_instant(to))
        try:
            return explicit.validated()
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    try:
        return resolve_preset(period or settings.default_period, clock=clock)
    except InvalidPreset as e:
        logger.warning(f"Rejected period parameter: {e}")
        raise HTTPException(status_code=400, detail=str(e))
