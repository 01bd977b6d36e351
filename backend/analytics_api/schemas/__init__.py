"""
Pydantic schemas for API request/response validation.
"""
from analytics_api.schemas.date_range import (
    RangeBounds,
    PresetOption,
    PresetListResponse,
    ResolvedRangeResponse,
    ComparisonResponse,
)

__all__ = [
    "RangeBounds",
    "PresetOption",
    "PresetListResponse",
    "ResolvedRangeResponse",
    "ComparisonResponse",
]
