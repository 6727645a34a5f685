"""Product domain models and API schemas."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

_LOCATION_PREFIXES = frozenset({"body", "query", "path"})


class CamelModel(BaseModel):
    """Base model exposing camelCase aliases on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProductCreate(CamelModel):
    """Payload accepted when a product is registered in the catalog."""

    name: str = Field(..., min_length=1, max_length=200)
    description: str = Field("", max_length=1000)
    category: str = Field(
        "",
        max_length=100,
        description="Grouping key, e.g. Clothing, Footwear, Accessories",
    )
    brand: str = Field("", max_length=100)
    price: Decimal = Field(..., ge=0, description="Unit price as an exact decimal")
    stock_quantity: int = Field(..., ge=0)
    size: str = Field("", max_length=50, description="e.g. S, M, L, 42, 43")
    color: str = Field("", max_length=50)

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Name must not be blank")
        return value


class ProductUpdate(CamelModel):
    """Partial update payload. Omitted, null or blank fields are left unchanged."""

    name: str | None = Field(None, max_length=200)
    description: str | None = Field(None, max_length=1000)
    category: str | None = Field(None, max_length=100)
    brand: str | None = Field(None, max_length=100)
    price: Decimal | None = Field(None, ge=0)
    stock_quantity: int | None = Field(None, ge=0)
    size: str | None = Field(None, max_length=50)
    color: str | None = Field(None, max_length=50)


class Product(ProductCreate):
    """Internal representation held by the product store."""

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(..., description="Identifier assigned by the store")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="Timestamp when the product was created",
    )
    updated_at: datetime | None = Field(
        None,
        description="Timestamp of the last successful update",
    )


class ProductStats(CamelModel):
    """Point-in-time aggregate over the whole catalog."""

    total_products: int = 0
    total_by_category: dict[str, int] = Field(default_factory=dict)
    total_by_brand: dict[str, int] = Field(default_factory=dict)
    average_price: Decimal = Decimal("0")
    total_stock: int = 0
    low_stock_products: int = 0


class FieldError(BaseModel):
    """A single field/message pair reported for invalid input."""

    field: str
    message: str


def to_field_errors(
    errors: Iterable[Mapping[str, Any]],
    *,
    model: type[BaseModel] | None = None,
) -> list[FieldError]:
    """Convert pydantic error dicts into field/message pairs.

    Request location prefixes (``body``, ``query``, ``path``) are dropped and,
    when ``model`` is given, python attribute names are mapped to their wire
    aliases so both validation paths report the same field names.
    """
    field_errors: list[FieldError] = []
    for error in errors:
        location = [
            str(part) for part in error.get("loc", ()) if part not in _LOCATION_PREFIXES
        ]
        if model is not None and location and location[0] in model.model_fields:
            location[0] = model.model_fields[location[0]].alias or location[0]
        field_errors.append(
            FieldError(
                field=".".join(location) or "body",
                message=error.get("msg", "Invalid value"),
            )
        )
    return field_errors
