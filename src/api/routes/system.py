"""System-level routes such as health checks."""

from __future__ import annotations

from fastapi import APIRouter

from src.config import settings
from src.services.product_store import ProductStoreDependency

router = APIRouter(tags=["system"])


@router.get("/")
async def read_root() -> dict[str, str]:
    """Service banner used by smoke tests."""

    return {"message": f"{settings.APP_NAME} is running"}


@router.get("/health")
async def health_check(store: ProductStoreDependency) -> dict[str, str | int]:
    """Health check reporting the environment and catalog size."""

    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "products": store.count(),
    }
