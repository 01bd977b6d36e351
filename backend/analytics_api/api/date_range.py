"""Date range API endpoints."""
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
import logging

from analytics_api.config import settings
from analytics_api.schemas.date_range import (
    ComparisonResponse,
    PresetListResponse,
    PresetOption,
    RangeBounds,
    ResolvedRangeResponse,
)
from analytics_api.services.date_range import (
    Clock,
    DateRange,
    Preset,
    build_comparison_fragment,
    build_query_fragment,
    comparison_for,
    describe_range,
    preset_options,
    system_clock,
)
from analytics_api.utils.time_utils import parse_date_range

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/date-range", tags=["date-range"])


def get_clock() -> Clock:
    """Time source for preset resolution (overridden in tests)."""
    return system_clock


def _resolve_request(
    period: Optional[str],
    from_: Optional[str],
    to: Optional[str],
    clock: Clock,
) -> tuple[str, DateRange]:
    date_range = parse_date_range(period, from_, to, clock=clock)
    if from_ and to:
        return Preset.CUSTOM.value, date_range
    return period or settings.default_period, date_range


@router.get("/presets", response_model=PresetListResponse, response_model_by_alias=True)
async def list_presets(clock: Clock = Depends(get_clock)):
    """List the date picker presets with their ranges as of now."""
    return PresetListResponse(presets=[
        PresetOption(value=preset.value, label=preset.label, range=RangeBounds.from_range(resolved))
        for preset, resolved in preset_options(clock=clock)
    ])


@router.get("/resolve", response_model=ResolvedRangeResponse, response_model_by_alias=True)
async def resolve_range(
    period: Optional[str] = Query(None, description="Preset name (today, yesterday, last_7_days, ...)"),
    from_: Optional[str] = Query(None, alias="from", description="Explicit start (ISO-8601)"),
    to: Optional[str] = Query(None, description="Explicit end (ISO-8601)"),
    clock: Clock = Depends(get_clock),
):
    """
    Resolve a period or explicit range to concrete instants.

    Returns the range together with the picker label and the query fragment
    an analytics fetch for the same selection would use.
    """
    name, date_range = _resolve_request(period, from_, to, clock)
    if name == Preset.CUSTOM.value:
        label = describe_range(date_range)
    else:
        label = Preset(name).label

    return ResolvedRangeResponse(
        period=name,
        range=RangeBounds.from_range(date_range),
        label=label,
        query=build_query_fragment(name, date_range),
    )


@router.get("/comparison", response_model=ComparisonResponse, response_model_by_alias=True)
async def get_comparison(
    period: Optional[str] = Query(None, description="Preset name of the primary range"),
    from_: Optional[str] = Query(None, alias="from", description="Explicit start (ISO-8601)"),
    to: Optional[str] = Query(None, description="Explicit end (ISO-8601)"),
    kind: Optional[str] = Query(None, description="previous_period or previous_year"),
    clock: Clock = Depends(get_clock),
):
    """Derive the comparison period for the selected range."""
    _, date_range = _resolve_request(period, from_, to, clock)
    kind = kind or settings.default_comparison

    try:
        comparison = comparison_for(date_range, kind)
    except ValueError as e:
        logger.warning(f"Rejected comparison kind '{kind}': {e}")
        raise HTTPException(
            status_code=400,
            detail=f"Invalid comparison kind. Must be one of: previous_period, previous_year. Got: {kind}"
        )

    return ComparisonResponse.build(
        kind=kind,
        current=date_range,
        comparison=comparison,
        query=build_comparison_fragment(True, comparison),
    )
