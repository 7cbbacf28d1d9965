"""Output contract for review harvests and place summaries."""
import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from reviewdelta.crawler.google_maps.errors import StructuralValidationError

logger = logging.getLogger(__name__)

STAR_KEYS = {"1", "2", "3", "4", "5"}


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReviewSchema(_WireModel):
    review_id: str = Field(..., min_length=1)
    user_name: Optional[str] = None
    user_avatar_url: Optional[str] = None
    # 0 is the value used when the star label could not be parsed
    rating: int = Field(..., ge=0, le=5)
    date: Optional[str] = None
    comment: Optional[str] = None
    images: List[str] = Field(default_factory=list)


class HarvestSchema(_WireModel):
    reviews: List[ReviewSchema]
    last_cursor: Optional[str] = None


class PlaceSummarySchema(_WireModel):
    place_name: str = Field(..., min_length=1)
    rating: Dict[str, int]
    average_rating: float = Field(..., ge=0, le=5)
    total_reviews: int = Field(..., ge=0)

    @field_validator("rating")
    @classmethod
    def check_histogram(cls, value: Dict[str, int]) -> Dict[str, int]:
        unknown = set(value) - STAR_KEYS
        if unknown:
            raise ValueError(f"unexpected star keys: {sorted(unknown)}")
        if any(count < 0 for count in value.values()):
            raise ValueError("review counts must be non-negative")
        return value


# ==============================
# Validation entry points
# ==============================


def _validate(model, data: Any, what: str):
    try:
        return model.model_validate(data)
    except ValidationError as err:
        issues = err.errors()
        logger.error("❌ %s failed validation: %s", what, issues)
        raise StructuralValidationError(
            f"Error while trying to parse {what}, maybe the scraper is broken "
            f"(markup changed?), err: {err}",
            issues=issues,
        ) from err


def validate_harvest(data: Dict[str, Any]) -> HarvestSchema:
    return _validate(HarvestSchema, data, "reviews")


def validate_place_summary(data: Dict[str, Any]) -> PlaceSummarySchema:
    return _validate(PlaceSummarySchema, data, "place info")


def dump_harvest(model: HarvestSchema) -> Dict[str, Any]:
    """camelCase dict ready for JSON output (reviewId, lastCursor, ...)."""
    return model.model_dump(by_alias=True)


def dump_place_summary(model: PlaceSummarySchema) -> Dict[str, Any]:
    return model.model_dump(by_alias=True)
