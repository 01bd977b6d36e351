"""
Per-view date range selection state.

Holds what an analytics page header shows (selected period, explicit range,
comparison toggle and comparison range) and derives the query fragments for
the primary and comparison fetches. Instances are transient and owned by a
single view.
"""
from datetime import date, tzinfo
from typing import Any, Dict, Optional, Union
import logging

from analytics_api.config import settings
from analytics_api.services.date_range import (
    Clock,
    ComparisonKind,
    ComparisonRange,
    DateRange,
    Preset,
    build_comparison_fragment,
    build_query_fragment,
    comparison_for,
    custom_comparison,
    custom_range,
    describe_range,
    get_timezone,
    parse_preset,
    resolve_period,
    system_clock,
)

logger = logging.getLogger(__name__)


class DateRangeState:
    """Selected period, custom range and comparison settings for one view."""

    def __init__(
        self,
        default_period: Optional[str] = None,
        clock: Optional[Clock] = None,
        tz: Optional[tzinfo] = None,
    ):
        self.period: str = default_period or settings.default_period
        self.date_range: Optional[DateRange] = None
        self.compare_enabled: bool = False
        self.comparison_range: Optional[ComparisonRange] = None
        self.compare_kind = ComparisonKind(settings.default_comparison)
        self._clock = clock or system_clock
        self._tz = tz or get_timezone()

    # Plain setters, bundled into header_props() for a header control

    def set_period(self, period: Union[str, Preset]) -> None:
        self.period = period.value if isinstance(period, Preset) else period

    def set_date_range(self, date_range: Optional[DateRange]) -> None:
        self.date_range = date_range

    def set_compare_enabled(self, enabled: bool) -> None:
        self.compare_enabled = enabled

    def set_comparison_range(self, comparison_range: Optional[ComparisonRange]) -> None:
        self.comparison_range = comparison_range

    @property
    def is_custom(self) -> bool:
        return self.period == Preset.CUSTOM.value

    @property
    def query_params(self) -> str:
        return build_query_fragment(self.period, self.date_range)

    @property
    def comparison_query_params(self) -> Optional[str]:
        return build_comparison_fragment(self.compare_enabled, self.comparison_range)

    def current_range(self) -> DateRange:
        """Range currently in effect; an unknown period falls back to the default preset."""
        if self.is_custom and self.date_range is not None:
            return self.date_range
        try:
            return resolve_period(self.period, clock=self._clock, tz=self._tz)
        except ValueError:
            return resolve_period(settings.default_period, clock=self._clock, tz=self._tz)

    @property
    def active_label(self) -> str:
        if self.is_custom and self.date_range is not None:
            return describe_range(self.date_range, self._tz)
        try:
            return parse_preset(self.period).label
        except ValueError:
            return "Select period"

    def header_props(self) -> Dict[str, Any]:
        return {
            "period": self.period,
            "on_period_change": self.set_period,
            "date_range": self.date_range,
            "on_date_range_change": self.set_date_range,
            "compare_enabled": self.compare_enabled,
            "on_compare_toggle": self.set_compare_enabled,
            "comparison_range": self.comparison_range,
            "on_comparison_change": self.set_comparison_range,
        }

    # Picker interactions

    def select_preset(self, preset: Union[str, Preset]) -> DateRange:
        """Pick a named preset; refreshes the comparison when it is on."""
        preset = parse_preset(preset)
        selected = resolve_period(preset, clock=self._clock, tz=self._tz)
        self.set_period(preset)
        self.set_date_range(selected)
        if self.compare_enabled and self.compare_kind is not ComparisonKind.CUSTOM:
            self.set_comparison_range(comparison_for(selected, self.compare_kind, self._tz))
        logger.debug(f"Selected preset {preset.value}")
        return selected

    def apply_custom(
        self,
        start: date,
        end: date,
        compare_start: Optional[date] = None,
        compare_end: Optional[date] = None,
    ) -> DateRange:
        """Apply a calendar selection as a custom period."""
        selected = custom_range(start, end, self._tz)
        self.set_period(Preset.CUSTOM)
        self.set_date_range(selected)
        if self.compare_enabled:
            if self.compare_kind is ComparisonKind.CUSTOM:
                if compare_start is not None and compare_end is not None:
                    self.set_comparison_range(custom_comparison(compare_start, compare_end, self._tz))
            else:
                self.set_comparison_range(comparison_for(selected, self.compare_kind, self._tz))
        return selected

    def toggle_compare(self) -> bool:
        enabled = not self.compare_enabled
        self.set_compare_enabled(enabled)
        if enabled and self.compare_kind is not ComparisonKind.CUSTOM:
            self.set_comparison_range(comparison_for(self.current_range(), self.compare_kind, self._tz))
        elif not enabled:
            self.set_comparison_range(None)
        return enabled

    def set_compare_kind(self, kind: Union[str, ComparisonKind]) -> None:
        self.compare_kind = ComparisonKind(kind)
        if self.compare_kind is not ComparisonKind.CUSTOM and self.compare_enabled:
            self.set_comparison_range(comparison_for(self.current_range(), self.compare_kind, self._tz))
