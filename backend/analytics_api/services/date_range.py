"""
Date range presets, comparison periods and query fragments for analytics views.

Every analytics page header works with a named preset ("last_30_days") or an
explicit custom range. Presets are relative to "now" and are resolved again on
every call, so the same preset yields a different range once the day rolls
over. The clock is always injectable so resolution stays deterministic in
tests.

Range Semantics:
- Ranges are inclusive on both ends
- start is 00:00:00.000000 and end is 23:59:59.999999 in the reporting timezone
- "last_N_days" includes today, so last_7_days spans 7 calendar days
- "last_12_months" is approximated as 365 calendar days, not month arithmetic
"""
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple, Union
from zoneinfo import ZoneInfo
import logging

from analytics_api.config import settings

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def system_clock() -> datetime:
    """Current instant in UTC."""
    return datetime.now(timezone.utc)


class Preset(str, Enum):
    """Named, clock-relative date ranges offered by the date picker."""
    TODAY = "today"
    YESTERDAY = "yesterday"
    LAST_7_DAYS = "last_7_days"
    LAST_28_DAYS = "last_28_days"
    LAST_30_DAYS = "last_30_days"
    LAST_90_DAYS = "last_90_days"
    LAST_12_MONTHS = "last_12_months"
    CUSTOM = "custom"

    @property
    def label(self) -> str:
        return PRESET_LABELS[self]


class ComparisonKind(str, Enum):
    """How the comparison period is derived from the primary range."""
    PREVIOUS_PERIOD = "previous_period"
    PREVIOUS_YEAR = "previous_year"
    CUSTOM = "custom"

    @property
    def label(self) -> str:
        return COMPARISON_LABELS[self]


PRESET_LABELS: Dict[Preset, str] = {
    Preset.TODAY: "Today",
    Preset.YESTERDAY: "Yesterday",
    Preset.LAST_7_DAYS: "Last 7 days",
    Preset.LAST_28_DAYS: "Last 28 days",
    Preset.LAST_30_DAYS: "Last 30 days",
    Preset.LAST_90_DAYS: "Last 90 days",
    Preset.LAST_12_MONTHS: "Last 12 months",
    Preset.CUSTOM: "Custom",
}

COMPARISON_LABELS: Dict[ComparisonKind, str] = {
    ComparisonKind.PREVIOUS_PERIOD: "Previous period",
    ComparisonKind.PREVIOUS_YEAR: "Same period last year",
    ComparisonKind.CUSTOM: "Custom comparison",
}

# (days back for the start, days back for the end) relative to today
_PRESET_OFFSETS: Dict[Preset, Tuple[int, int]] = {
    Preset.TODAY: (0, 0),
    Preset.YESTERDAY: (1, 1),
    Preset.LAST_7_DAYS: (6, 0),
    Preset.LAST_28_DAYS: (27, 0),
    Preset.LAST_30_DAYS: (29, 0),
    Preset.LAST_90_DAYS: (89, 0),
    Preset.LAST_12_MONTHS: (364, 0),
}


class InvalidPreset(ValueError):
    """Raised when a period name cannot be resolved to a concrete range."""

    def __init__(self, name: str, reason: Optional[str] = None):
        self.name = name
        if reason is None:
            valid = ", ".join(p.value for p in _PRESET_OFFSETS)
            reason = f"Must be one of: {valid}"
        super().__init__(f"Invalid period '{name}'. {reason}")


@dataclass(frozen=True)
class DateRange:
    """Absolute, inclusive [start, end] range of instants."""
    start: datetime
    end: datetime

    @property
    def days(self) -> int:
        """Whole days between start and end (an inclusive 7 day range gives 6)."""
        return (self.end - self.start).days

    def validated(self) -> "DateRange":
        if self.start > self.end:
            raise ValueError("Start of range must be <= end of range")
        return self

    def to_dict(self) -> Dict[str, str]:
        return {"from": to_iso_string(self.start), "to": to_iso_string(self.end)}


@dataclass(frozen=True)
class ComparisonRange(DateRange):
    """Second range used for period-over-period deltas."""
    label: str = COMPARISON_LABELS[ComparisonKind.CUSTOM]


def get_timezone(name: Optional[str] = None) -> tzinfo:
    """Return the reporting timezone, defaulting to the configured one."""
    name = name or settings.timezone
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def _as_utc(value: datetime) -> datetime:
    # Naive datetimes are read as UTC instants
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def start_of_day(day: date, tz: tzinfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def end_of_day(day: date, tz: tzinfo) -> datetime:
    return datetime.combine(day, time.max, tzinfo=tz)


def local_date(value: datetime, tz: tzinfo) -> date:
    """Calendar date of an instant in the given timezone."""
    return _as_utc(value).astimezone(tz).date()


def to_iso_string(value: datetime) -> str:
    """
    Encode an instant as UTC ISO-8601 with millisecond precision.

    Examples:
        >>> to_iso_string(datetime(2024, 1, 31, tzinfo=timezone.utc))
        '2024-01-31T00:00:00.000Z'
    """
    value = _as_utc(value)
    return f"{value:%Y-%m-%dT%H:%M:%S}.{value.microsecond // 1000:03d}Z"


def parse_preset(name: Union[str, Preset]) -> Preset:
    """Convert a period name to a Preset, raising InvalidPreset if unknown."""
    if isinstance(name, Preset):
        return name
    try:
        return Preset(name)
    except ValueError:
        raise InvalidPreset(str(name)) from None


def _period_name(period: Union[str, Preset]) -> str:
    return period.value if isinstance(period, Preset) else str(period)


def resolve_preset(
    name: Union[str, Preset],
    clock: Optional[Clock] = None,
    tz: Optional[tzinfo] = None,
) -> DateRange:
    """
    Resolve a named preset to a concrete range anchored on the clock's "now".

    Args:
        name: Preset member or its string value
        clock: Time source, defaults to the system clock
        tz: Timezone that defines day boundaries, defaults to settings.timezone

    Returns:
        DateRange with start at start of day and end at end of day

    Raises:
        InvalidPreset: For "custom" (needs an explicit range) or unknown names

    Examples:
        >>> clock = lambda: datetime(2024, 3, 10, 12, tzinfo=timezone.utc)
        >>> r = resolve_preset("last_7_days", clock=clock, tz=timezone.utc)
        >>> r.start.date(), r.end.date()
        (datetime.date(2024, 3, 4), datetime.date(2024, 3, 10))
    """
    preset = parse_preset(name)
    if preset is Preset.CUSTOM:
        raise InvalidPreset(preset.value, "Custom periods require an explicit from/to range")

    tz = tz or get_timezone()
    today = local_date((clock or system_clock)(), tz)
    start_back, end_back = _PRESET_OFFSETS[preset]

    resolved = DateRange(
        start=start_of_day(today - timedelta(days=start_back), tz),
        end=end_of_day(today - timedelta(days=end_back), tz),
    )
    logger.debug(f"Resolved preset {preset.value} to {resolved.start} - {resolved.end}")
    return resolved


def resolve_period(
    period: Union[str, Preset],
    explicit_range: Optional[DateRange] = None,
    clock: Optional[Clock] = None,
    tz: Optional[tzinfo] = None,
) -> DateRange:
    """Range for a view: the explicit range for "custom", the preset otherwise."""
    if _period_name(period) == Preset.CUSTOM.value and explicit_range is not None:
        return explicit_range
    return resolve_preset(period, clock=clock, tz=tz)


def custom_range(start: date, end: date, tz: Optional[tzinfo] = None) -> DateRange:
    """Range covering two calendar days inclusively, as applied from the calendar."""
    if start > end:
        raise ValueError("Start date must be <= end date")
    tz = tz or get_timezone()
    return DateRange(start=start_of_day(start, tz), end=end_of_day(end, tz))


def _years_back(day: date, years: int) -> date:
    try:
        return day.replace(year=day.year - years)
    except ValueError:
        # Feb 29 in a non-leap target year
        return day.replace(year=day.year - years, day=28)


def comparison_for(
    date_range: DateRange,
    kind: Union[str, ComparisonKind] = ComparisonKind.PREVIOUS_PERIOD,
    tz: Optional[tzinfo] = None,
) -> ComparisonRange:
    """
    Derive the comparison period for a primary range.

    - previous_period: same number of days immediately before the range
    - previous_year: the same calendar days twelve months earlier

    Raises:
        ValueError: For "custom" (dates must be picked explicitly) or unknown kinds
    """
    kind = ComparisonKind(kind)
    tz = tz or get_timezone()
    first = local_date(date_range.start, tz)

    if kind is ComparisonKind.PREVIOUS_PERIOD:
        return ComparisonRange(
            start=start_of_day(first - timedelta(days=date_range.days + 1), tz),
            end=end_of_day(first - timedelta(days=1), tz),
            label=kind.label,
        )
    if kind is ComparisonKind.PREVIOUS_YEAR:
        last = local_date(date_range.end, tz)
        return ComparisonRange(
            start=start_of_day(_years_back(first, 1), tz),
            end=end_of_day(_years_back(last, 1), tz),
            label=kind.label,
        )
    raise ValueError("Custom comparison periods require explicit dates")


def custom_comparison(start: date, end: date, tz: Optional[tzinfo] = None) -> ComparisonRange:
    picked = custom_range(start, end, tz)
    return ComparisonRange(start=picked.start, end=picked.end, label=ComparisonKind.CUSTOM.label)


def build_query_fragment(period: Union[str, Preset], explicit_range: Optional[DateRange] = None) -> str:
    """
    Query string fragment parameterizing an analytics fetch.

    The range is not checked for start <= end; callers supplying custom
    ranges are responsible for that.

    Examples:
        >>> build_query_fragment("last_30_days")
        'period=last_30_days'
    """
    name = _period_name(period)
    if name == Preset.CUSTOM.value and explicit_range is not None:
        return _range_fragment(explicit_range)
    return f"period={name}"


def build_comparison_fragment(
    enabled: bool,
    comparison_range: Optional[DateRange] = None,
) -> Optional[str]:
    """Fragment for the comparison fetch, or None when comparison is off."""
    if not enabled or comparison_range is None:
        return None
    return _range_fragment(comparison_range)


def _range_fragment(date_range: DateRange) -> str:
    return f"from={to_iso_string(date_range.start)}&to={to_iso_string(date_range.end)}"


def describe_range(date_range: DateRange, tz: Optional[tzinfo] = None) -> str:
    """
    Label shown on the picker button for a custom range.

    Examples:
        >>> describe_range(DateRange(datetime(2024, 3, 4, tzinfo=timezone.utc),
        ...                          datetime(2024, 3, 10, tzinfo=timezone.utc)), timezone.utc)
        'Mar 4, 2024 - Mar 10, 2024'
    """
    tz = tz or get_timezone()
    first = local_date(date_range.start, tz)
    last = local_date(date_range.end, tz)
    return f"{first:%b} {first.day}, {first.year} - {last:%b} {last.day}, {last.year}"


def preset_options(clock: Optional[Clock] = None, tz: Optional[tzinfo] = None) -> List[Tuple[Preset, DateRange]]:
    """Every named preset with its range resolved against a single clock reading."""
    now = (clock or system_clock)()
    return [
        (preset, resolve_preset(preset, clock=lambda: now, tz=tz))
        for preset in _PRESET_OFFSETS
    ]
