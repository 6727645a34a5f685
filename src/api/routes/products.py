"""Routes exposing CRUD and statistics over the product catalog."""

from __future__ import annotations

import logging
from typing import Any, TypeVar
from uuid import UUID

from fastapi import APIRouter, HTTPException, Request, Response, status

from src.api.errors import InvalidRequestError
from src.models.product import Product, ProductCreate, ProductStats, ProductUpdate
from src.services.product_store import (
    OutcomeStatus,
    ProductStoreDependency,
    StoreOutcome,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["products"])

PRODUCT_NOT_FOUND = "Product not found."

T = TypeVar("T")


def _resolve(
    outcome: StoreOutcome[T],
    *,
    operation: str,
    action: str,
    **context: Any,
) -> T:
    """Return the outcome value or translate the failure into an HTTP error."""

    if outcome.status is OutcomeStatus.OK:
        return outcome.value  # type: ignore[return-value]

    extra = {"operation": operation, **context}

    if outcome.status is OutcomeStatus.NOT_FOUND:
        logger.warning("Product not found while %s", action, extra=extra)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=PRODUCT_NOT_FOUND)

    if outcome.status is OutcomeStatus.VALIDATION_ERROR:
        logger.warning(
            "Invalid product data while %s",
            action,
            extra={**extra, "errors": [error.model_dump() for error in outcome.errors]},
        )
        raise InvalidRequestError(outcome.errors)

    logger.error(
        "Internal error while %s",
        action,
        extra={
            **extra,
            "error_type": type(outcome.error).__name__ if outcome.error else None,
        },
    )
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Internal error while {action}.",
    )


@router.post(
    "",
    response_model=Product,
    status_code=status.HTTP_201_CREATED,
    summary="Create a product",
)
async def create_product(
    payload: ProductCreate,
    request: Request,
    response: Response,
    store: ProductStoreDependency,
) -> Product:
    logger.info(
        "Creating product",
        extra={
            "operation": "create_product",
            "product_name": payload.name,
            "category": payload.category,
            "brand": payload.brand,
        },
    )

    product = _resolve(
        store.create_product(payload),
        operation="create_product",
        action="creating product",
        product_name=payload.name,
        category=payload.category,
    )

    response.headers["Location"] = str(
        request.url_for("get_product", product_id=str(product.id))
    )
    logger.info(
        "Product created",
        extra={
            "operation": "create_product",
            "product_id": str(product.id),
            "product_name": product.name,
            "price": product.price,
            "stock_quantity": product.stock_quantity,
            "category": product.category,
        },
    )
    return product


@router.get(
    "",
    response_model=list[Product],
    summary="List products, optionally filtered by category and brand",
)
async def list_products(
    store: ProductStoreDependency,
    category: str | None = None,
    brand: str | None = None,
) -> list[Product]:
    has_filters = bool((category or "").strip() or (brand or "").strip())
    logger.info(
        "Listing products",
        extra={
            "operation": "list_products",
            "category": category,
            "brand": brand,
        },
    )

    products = _resolve(
        store.list_products(category=category, brand=brand),
        operation="list_products",
        action="listing products",
    )

    logger.info(
        "Listed %d products",
        len(products),
        extra={
            "operation": "list_products",
            "total_found": len(products),
            "filters_applied": has_filters,
        },
    )
    return products


@router.get(
    "/stats",
    response_model=ProductStats,
    summary="Aggregate statistics over the catalog",
)
async def get_product_stats(store: ProductStoreDependency) -> ProductStats:
    logger.info("Computing product statistics", extra={"operation": "get_stats"})

    stats = _resolve(
        store.get_stats(),
        operation="get_stats",
        action="computing statistics",
    )

    logger.info(
        "Product statistics computed",
        extra={
            "operation": "get_stats",
            "total_products": stats.total_products,
            "average_price": stats.average_price,
            "total_stock": stats.total_stock,
            "low_stock_products": stats.low_stock_products,
        },
    )
    return stats


@router.get(
    "/{product_id}",
    response_model=Product,
    summary="Fetch a single product",
)
async def get_product(product_id: UUID, store: ProductStoreDependency) -> Product:
    logger.info(
        "Fetching product",
        extra={"operation": "get_product", "product_id": str(product_id)},
    )

    product = _resolve(
        store.get_product(product_id),
        operation="get_product",
        action="fetching product",
        product_id=str(product_id),
    )

    logger.info(
        "Product found",
        extra={
            "operation": "get_product",
            "product_id": str(product.id),
            "product_name": product.name,
            "category": product.category,
        },
    )
    return product


@router.put(
    "/{product_id}",
    response_model=Product,
    summary="Update a product; omitted or blank fields keep their value",
)
async def update_product(
    product_id: UUID,
    payload: ProductUpdate,
    store: ProductStoreDependency,
) -> Product:
    logger.info(
        "Updating product",
        extra={
            "operation": "update_product",
            "product_id": str(product_id),
            "fields": sorted(payload.model_fields_set),
        },
    )

    outcome = store.update_product(product_id, payload)
    product = _resolve(
        outcome,
        operation="update_product",
        action="updating product",
        product_id=str(product_id),
    )

    previous = outcome.previous
    logger.info(
        "Product updated",
        extra={
            "operation": "update_product",
            "product_id": str(product.id),
            "product_name": product.name,
            "old_price": previous.price if previous else None,
            "new_price": product.price,
            "old_stock": previous.stock_quantity if previous else None,
            "new_stock": product.stock_quantity,
        },
    )
    return product


@router.delete(
    "/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a product",
)
async def delete_product(product_id: UUID, store: ProductStoreDependency) -> Response:
    logger.info(
        "Deleting product",
        extra={"operation": "delete_product", "product_id": str(product_id)},
    )

    product = _resolve(
        store.delete_product(product_id),
        operation="delete_product",
        action="deleting product",
        product_id=str(product_id),
    )

    logger.info(
        "Product deleted",
        extra={
            "operation": "delete_product",
            "product_id": str(product.id),
            "product_name": product.name,
            "category": product.category,
        },
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
