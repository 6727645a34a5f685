"""In-memory product store shared by all request handlers."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal, localcontext
from enum import Enum
from functools import wraps
from threading import RLock
from typing import Annotated, Any, Generic, TypeVar
from uuid import UUID, uuid4

from fastapi import Depends
from pydantic import BaseModel, ValidationError

from src.models.product import (
    FieldError,
    Product,
    ProductCreate,
    ProductStats,
    ProductUpdate,
    to_field_errors,
)

logger = logging.getLogger(__name__)

LOW_STOCK_THRESHOLD = 10

_STRING_FIELDS = ("name", "description", "category", "brand", "size", "color")
_NUMERIC_FIELDS = ("price", "stock_quantity")

T = TypeVar("T")
ModelT = TypeVar("ModelT", bound=BaseModel)


class OutcomeStatus(str, Enum):
    """Distinct results a store operation can end with."""

    OK = "ok"
    VALIDATION_ERROR = "validation_error"
    NOT_FOUND = "not_found"
    INTERNAL_FAULT = "internal_fault"


@dataclass(frozen=True)
class StoreOutcome(Generic[T]):
    """Result of a store operation.

    ``value`` is set only for ``OK``; ``errors`` only for ``VALIDATION_ERROR``;
    ``product_id`` echoes the addressed id for ``NOT_FOUND``. ``previous`` holds
    the record replaced by a successful update. ``error`` keeps the exception
    behind an ``INTERNAL_FAULT`` for logging and must not be shown to clients.
    """

    status: OutcomeStatus
    value: T | None = None
    errors: tuple[FieldError, ...] = ()
    product_id: UUID | None = None
    previous: Product | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.OK

    @classmethod
    def success(cls, value: T, *, previous: Product | None = None) -> StoreOutcome[T]:
        return cls(OutcomeStatus.OK, value=value, previous=previous)

    @classmethod
    def invalid(cls, errors: list[FieldError]) -> StoreOutcome[T]:
        return cls(OutcomeStatus.VALIDATION_ERROR, errors=tuple(errors))

    @classmethod
    def not_found(cls, product_id: UUID) -> StoreOutcome[T]:
        return cls(OutcomeStatus.NOT_FOUND, product_id=product_id)

    @classmethod
    def fault(cls, error: Exception) -> StoreOutcome[T]:
        return cls(OutcomeStatus.INTERNAL_FAULT, error=error)


def _fault_barrier(operation: str) -> Callable[[Callable[..., StoreOutcome]], Callable[..., StoreOutcome]]:
    """Turn unexpected exceptions into logged ``INTERNAL_FAULT`` outcomes."""

    def decorator(method: Callable[..., StoreOutcome]) -> Callable[..., StoreOutcome]:
        @wraps(method)
        def wrapper(self: ProductStore, *args: Any, **kwargs: Any) -> StoreOutcome:
            try:
                return method(self, *args, **kwargs)
            except Exception as exc:
                logger.exception(
                    "Unexpected product store failure during %s",
                    operation,
                    extra={
                        "operation": operation,
                        "arguments": repr(args),
                        "keyword_arguments": repr(kwargs),
                        "error_type": type(exc).__name__,
                    },
                )
                return StoreOutcome.fault(exc)

        return wrapper

    return decorator


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _validate(
    model: type[ModelT], request: BaseModel | Mapping[str, Any]
) -> tuple[ModelT | None, list[FieldError]]:
    """Re-validate a request, even one built with ``model_construct``."""

    if isinstance(request, BaseModel):
        raw = {
            name: value
            for name, value in vars(request).items()
            if name in type(request).model_fields
        }
    else:
        raw = dict(request)

    try:
        return model.model_validate(raw), []
    except ValidationError as exc:
        return None, to_field_errors(exc.errors(), model=model)


def _merge_changes(request: ProductUpdate) -> dict[str, Any]:
    changes: dict[str, Any] = {}
    # Blank strings mean "leave unchanged"; an explicit zero still overwrites numbers.
    for name in _STRING_FIELDS:
        value = getattr(request, name)
        if value is not None and value.strip():
            changes[name] = value
    for name in _NUMERIC_FIELDS:
        value = getattr(request, name)
        if value is not None:
            changes[name] = value
    return changes


def _average_price(prices: list[Decimal]) -> Decimal:
    """Mean price, exact whenever the quotient terminates.

    Precision is sized from the operands so the sum never rounds, whatever
    the number of digits in the stored prices.
    """
    if not prices:
        return Decimal("0")

    integer_digits = max(max(price.adjusted() + 1, 1) for price in prices)
    fraction_digits = max(max(-price.as_tuple().exponent, 0) for price in prices)
    count_digits = len(str(len(prices)))

    with localcontext() as context:
        context.prec = integer_digits + fraction_digits + 4 * count_digits + 28
        return sum(prices, Decimal("0")) / len(prices)


def _filter_key(value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    return value.casefold()


class ProductStore:
    """Product catalog kept in process memory.

    A single lock serializes every operation. Stored records are frozen models
    that updates replace wholesale, so snapshots handed to callers never
    observe a half-applied write.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._storage: dict[UUID, Product] = {}

    @_fault_barrier("create_product")
    def create_product(
        self, request: ProductCreate | Mapping[str, Any]
    ) -> StoreOutcome[Product]:
        """Validate and store a new product, assigning its id and creation time."""

        validated, errors = _validate(ProductCreate, request)
        if validated is None:
            return StoreOutcome.invalid(errors)

        with self._lock:
            product_id = uuid4()
            while product_id in self._storage:
                product_id = uuid4()
            product = Product(
                id=product_id,
                created_at=_utcnow(),
                **validated.model_dump(),
            )
            self._storage[product_id] = product

        logger.debug("Stored product %s", product.id)
        return StoreOutcome.success(product)

    @_fault_barrier("get_product")
    def get_product(self, product_id: UUID) -> StoreOutcome[Product]:
        with self._lock:
            product = self._storage.get(product_id)
        if product is None:
            return StoreOutcome.not_found(product_id)
        return StoreOutcome.success(product)

    @_fault_barrier("list_products")
    def list_products(
        self,
        category: str | None = None,
        brand: str | None = None,
    ) -> StoreOutcome[list[Product]]:
        """Return products matching both filters, in insertion order.

        Filters compare case-insensitively and must match the whole value;
        blank filters are ignored.
        """

        category_key = _filter_key(category)
        brand_key = _filter_key(brand)

        with self._lock:
            snapshot = list(self._storage.values())

        products = [
            product
            for product in snapshot
            if (category_key is None or product.category.casefold() == category_key)
            and (brand_key is None or product.brand.casefold() == brand_key)
        ]
        return StoreOutcome.success(products)

    @_fault_barrier("update_product")
    def update_product(
        self,
        product_id: UUID,
        request: ProductUpdate | Mapping[str, Any],
    ) -> StoreOutcome[Product]:
        """Merge the supplied fields into an existing product."""

        validated, errors = _validate(ProductUpdate, request)
        if validated is None:
            return StoreOutcome.invalid(errors)
        changes = _merge_changes(validated)

        with self._lock:
            current = self._storage.get(product_id)
            if current is None:
                return StoreOutcome.not_found(product_id)

            updated = Product.model_validate(
                {
                    **current.model_dump(),
                    **changes,
                    "updated_at": max(_utcnow(), current.created_at),
                }
            )
            self._storage[product_id] = updated

        return StoreOutcome.success(updated, previous=current)

    @_fault_barrier("delete_product")
    def delete_product(self, product_id: UUID) -> StoreOutcome[Product]:
        """Remove a product; deleting an unknown id is reported as not found."""

        with self._lock:
            product = self._storage.pop(product_id, None)
        if product is None:
            return StoreOutcome.not_found(product_id)
        return StoreOutcome.success(product)

    @_fault_barrier("get_stats")
    def get_stats(self) -> StoreOutcome[ProductStats]:
        """Aggregate counts, average price and stock over a single snapshot."""

        with self._lock:
            snapshot = list(self._storage.values())

        total = len(snapshot)

        stats = ProductStats(
            total_products=total,
            total_by_category=dict(Counter(product.category for product in snapshot)),
            total_by_brand=dict(Counter(product.brand for product in snapshot)),
            average_price=_average_price([product.price for product in snapshot]),
            total_stock=sum(product.stock_quantity for product in snapshot),
            low_stock_products=sum(
                1 for product in snapshot if product.stock_quantity < LOW_STOCK_THRESHOLD
            ),
        )
        return StoreOutcome.success(stats)

    def count(self) -> int:
        with self._lock:
            return len(self._storage)


_store = ProductStore()


def get_product_store() -> ProductStore:
    """FastAPI dependency factory."""

    return _store


ProductStoreDependency = Annotated[ProductStore, Depends(get_product_store)]
