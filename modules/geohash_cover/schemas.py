from typing import Any, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field


HashMode = Literal["intersect", "envelope", "insideOnly", "border"]


class CoverageOptions(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    precision: Optional[int] = Field(
        None,
        ge=1,
        le=12,
        description="Geohash length; omit to pick one from the shape extent",
    )
    hash_mode: HashMode = Field(
        "intersect",
        alias="hashMode",
        description="Which cells to keep relative to the shape",
    )
    min_intersect: float = Field(
        0.0,
        ge=0.0,
        le=1.0,
        alias="minIntersect",
        description="Minimum covered fraction (0~1) for boundary cells",
    )
    allow_duplicates: bool = Field(
        True,
        alias="allowDuplicates",
        description="Keep geohashes repeated across shape pieces",
    )


class CoverageRequest(CoverageOptions):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", arbitrary_types_allowed=True)

    custom_writer: Optional[Any] = Field(
        None,
        alias="customWriter",
        exclude=True,
        description="Row sink (write(row) or callable); results are returned as a list when omitted",
    )


class GeohashCoverRequest(CoverageOptions):
    shape: Any = Field(
        ...,
        description="GeoJSON geometry / Feature / FeatureCollection, or bare [lng, lat] coordinates",
    )


class GeohashCoverResponse(BaseModel):
    geohashes: List[str] = Field(default_factory=list)
    count: int = Field(0, ge=0)
    precision: int = Field(..., ge=1, le=12)
    hash_mode: HashMode
