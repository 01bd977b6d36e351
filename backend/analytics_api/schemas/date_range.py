"""Date range schemas."""
from pydantic import BaseModel, Field
from typing import Optional, List

from analytics_api.services.date_range import ComparisonRange, DateRange, to_iso_string


class RangeBounds(BaseModel):
    """Inclusive range encoded as ISO-8601 UTC instants."""
    from_: str = Field(..., alias="from", description="Start of range (ISO-8601, UTC)")
    to: str = Field(..., description="End of range (ISO-8601, UTC)")

    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {
            "examples": [
                {
                    "from": "2024-03-04T00:00:00.000Z",
                    "to": "2024-03-10T23:59:59.999Z"
                }
            ]
        }
    }

    @classmethod
    def from_range(cls, date_range: DateRange) -> "RangeBounds":
        return cls(from_=to_iso_string(date_range.start), to=to_iso_string(date_range.end))


class PresetOption(BaseModel):
    """A preset offered by the date picker."""
    value: str = Field(..., description="Preset name used in ?period=")
    label: str = Field(..., description="Display label")
    range: RangeBounds


class ResolvedRangeResponse(BaseModel):
    """Concrete range for a period or explicit from/to pair."""
    period: str
    range: RangeBounds
    label: str = Field(..., description="Label shown on the picker button")
    query: str = Field(..., description="Query fragment for analytics fetches")


class ComparisonResponse(BaseModel):
    """Comparison period derived from a primary range."""
    kind: str
    label: str
    range: RangeBounds
    current: RangeBounds
    query: Optional[str] = Field(None, description="Query fragment for the comparison fetch")

    @classmethod
    def build(cls, kind: str, current: DateRange, comparison: ComparisonRange, query: Optional[str]):
        return cls(
            kind=kind,
            label=comparison.label,
            range=RangeBounds.from_range(comparison),
            current=RangeBounds.from_range(current),
            query=query,
        )


class PresetListResponse(BaseModel):
    presets: List[PresetOption]
