from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class Category(str, Enum):
    park = "Park"
    restaurant = "Restaurant"
    museum = "Museum"
    activity = "Activity"
    landmark = "Landmark"
    shopping = "Shopping"
    other = "Other"


class LocationQuery(BaseModel):
    query: str = Field(..., min_length=1, description="What the user is looking for")
    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)


class PlaceRecommendation(BaseModel):
    name: str = ""
    description: str = ""
    category: Category = Category.other
    distance_km: float | None = Field(
        default=None, description="Approximate distance from the user, when the model gave one"
    )
    google_maps_url: str


class RecommendationResponse(BaseModel):
    success: bool = True
    data: list[PlaceRecommendation]


class AnonymousAuthResponse(BaseModel):
    success: bool = True
    token: str


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
