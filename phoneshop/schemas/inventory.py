from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from phoneshop.models.inventory import LocationType


class ProductCreate(BaseModel):
    brand: str = Field(min_length=1, max_length=80)
    model: str = Field(min_length=1, max_length=160)
    stock_quantity: int = Field(ge=0)
    location_type: LocationType
    location_number: str = Field(min_length=1, max_length=64)
    image_url: str | None = Field(default=None, max_length=512)

    @field_validator("brand", "model", "location_number")
    @classmethod
    def strip_required(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("must not be blank")
        return stripped


class ProductUpdate(BaseModel):
    brand: str | None = Field(default=None, min_length=1, max_length=80)
    model: str | None = Field(default=None, min_length=1, max_length=160)
    location_type: LocationType | None = None
    location_number: str | None = Field(default=None, min_length=1, max_length=64)
    image_url: str | None = Field(default=None, max_length=512)

    # Defaults are not validated, so None here is an explicit null from the client.
    @field_validator("location_type")
    @classmethod
    def reject_null_location_type(cls, value: LocationType | None) -> LocationType:
        if value is None:
            raise ValueError("must not be null")
        return value

    @field_validator("brand", "model", "location_number")
    @classmethod
    def strip_optional(cls, value: str | None) -> str:
        if value is None:
            raise ValueError("must not be null")
        stripped = value.strip()
        if not stripped:
            raise ValueError("must not be blank")
        return stripped


class ProductOut(BaseModel):
    id: int
    brand: str
    model: str
    stock_quantity: int
    location_type: LocationType
    location_number: str
    image_url: str | None
    created_by_user_id: int | None
    created_at: datetime

    model_config = {"from_attributes": True}


class RestockRequest(BaseModel):
    quantity: int = Field(gt=0)
    location_type: LocationType | None = None
    location_number: str | None = Field(default=None, max_length=64)
    reason: str | None = Field(default=None, max_length=255)


class QuantitySetRequest(BaseModel):
    quantity: int = Field(ge=0)
    reason: str | None = Field(default=None, max_length=255)


class StockAdjustRequest(BaseModel):
    quantity_delta: int = Field(description="Signed delta to apply, may be negative")
    expected_quantity: int | None = Field(
        default=None,
        ge=0,
        description="Quantity the caller last saw; the adjustment is rejected if it has changed",
    )
    reason: str | None = Field(default=None, max_length=255)


class StockAdjustmentOut(BaseModel):
    id: int
    product_id: int
    adjusted_by_user_id: int | None
    quantity_before: int
    quantity_after: int
    quantity_delta: int
    reason: str | None
    adjusted_at: datetime

    model_config = {"from_attributes": True}


class LowStockItemOut(BaseModel):
    product_id: int
    brand: str
    model: str
    location_type: LocationType
    location_number: str
    stock_quantity: int
    threshold: int


class DashboardSummaryOut(BaseModel):
    total_products: int
    total_units: int
    low_stock_items: int
    low_stock_threshold: int
    brands: int
    locations: int


class LocationGroupOut(BaseModel):
    label: str
    total_quantity: int
    products: list[ProductOut]


class DuplicateGroupOut(BaseModel):
    brand: str
    model: str
    total_quantity: int
    location_count: int
    locations: list[str]
    products: list[ProductOut]


class BundleViewOut(BaseModel):
    prefix: str | None
    bundle: str | None
    prefixes: list[str]
    bundle_numbers: list[str]
    groups: list[LocationGroupOut]
    multi_location: list[DuplicateGroupOut]


class BundleRenameRequest(BaseModel):
    brand: str = Field(min_length=1, max_length=80)
    model: str = Field(min_length=1, max_length=160)

    @field_validator("brand", "model")
    @classmethod
    def strip_required(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("Brand and Model cannot be empty")
        return stripped


class SearchResultsOut(BaseModel):
    query: str
    results: list[ProductOut]
