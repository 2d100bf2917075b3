from typing import Optional, List, Union, Any
from datetime import datetime, timezone
from pydantic import BaseModel, Field, AliasChoices, ConfigDict, field_validator, model_validator
from pydantic.alias_generators import to_camel

# Raw bound as typed by the user; parsed defensively by the engine
RentBound = Union[int, float, str]

_WIRE = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

# Numeric fields that fall back to their defaults when the API sends null
_NUMERIC_DEFAULTS = ("rent", "views", "averageRating", "average_rating", "reviewCount", "review_count")


class Listing(BaseModel):
    model_config = _WIRE

    id: str = Field(
        ...,
        validation_alias=AliasChoices("_id", "id"),
        serialization_alias="_id",
        description="Opaque listing id",
    )
    title: str = ""
    address: str = ""
    city: Optional[str] = None
    type: Optional[str] = Field(None, description="mess or hostel")
    rent: int = Field(0, description="Monthly rent")
    deposit: Optional[int] = None
    gender_allowed: Optional[str] = Field(None, description="male, female or both")
    verified: bool = False
    average_rating: float = Field(0.0, ge=0, le=5)
    views: int = Field(0, ge=0)
    is_featured: bool = False
    created_at: Optional[datetime] = None
    number_of_rooms: Optional[int] = None
    capacity: Optional[int] = None
    furnishing: Optional[str] = None
    review_count: int = Field(0, ge=0)

    @model_validator(mode="before")
    @classmethod
    def _normalize_payload(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = {k: v for k, v in data.items() if not (k in _NUMERIC_DEFAULTS and v is None)}
        reviews = data.pop("reviews", None)
        if isinstance(reviews, list) and "reviewCount" not in data and "review_count" not in data:
            data["reviewCount"] = len(reviews)
        # create/edit form payloads use the short names
        if "rooms" in data and "numberOfRooms" not in data and "number_of_rooms" not in data:
            data["numberOfRooms"] = data.pop("rooms")
        if "furnished" in data and "furnishing" not in data:
            data["furnishing"] = data.pop("furnished")
        if "id" in data and not isinstance(data["id"], str) and data["id"] is not None:
            data["id"] = str(data["id"])
        if "_id" in data and not isinstance(data["_id"], str) and data["_id"] is not None:
            data["_id"] = str(data["_id"])
        return data

    @field_validator("created_at")
    @classmethod
    def _assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class FilterSpec(BaseModel):
    model_config = _WIRE

    min_rent: Optional[RentBound] = None
    max_rent: Optional[RentBound] = None
    city: Optional[str] = None
    gender: Optional[str] = None
    type: Optional[str] = None
    verified: bool = False
    query: Optional[str] = None
    sort: str = "newest"


class SessionUser(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: Optional[str] = Field(None, validation_alias=AliasChoices("_id", "id"))
    name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = Field(None, description="student, owner or admin")


class SessionState(BaseModel):
    """Snapshot of the auth provider; role fields are untrusted while loading."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    is_authenticated: bool = False
    user: Optional[SessionUser] = None
    loading: bool = False


class ListingsResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total: int = Field(..., description="Listings matching the filters")
    page: int
    page_size: int
    total_pages: int
    listings: List[Listing]


class ComparisonRow(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    feature: str
    label: str
    values: List[str]
    is_different: bool = Field(..., description="Values differ across the compared listings")


class ComparisonResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    ids: List[str]
    listings: List[Listing]
    rows: List[ComparisonRow]
    share_url: str


class SearchFilters(BaseModel):
    """Filters as the saved-searches API stores them (rent bounds already parsed)."""
    model_config = _WIRE

    city: Optional[str] = None
    min_rent: Optional[float] = None
    max_rent: Optional[float] = None
    gender_allowed: Optional[str] = None
    type: Optional[str] = None
    verified: bool = False
    sort: str = "newest"


class SavedSearch(BaseModel):
    model_config = _WIRE

    id: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("_id", "id"),
        serialization_alias="_id",
    )
    name: str
    filters: SearchFilters = Field(default_factory=SearchFilters)
    alerts_enabled: bool = False
    created_at: Optional[datetime] = None

    @field_validator("name")
    @classmethod
    def _name_required(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Please enter a name")
        return v.strip()

    def to_filter_spec(self) -> FilterSpec:
        f = self.filters
        return FilterSpec(
            city=f.city,
            min_rent=f.min_rent,
            max_rent=f.max_rent,
            gender=f.gender_allowed,
            type=f.type,
            verified=f.verified,
            sort=f.sort,
        )
