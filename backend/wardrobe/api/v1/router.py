from __future__ import annotations

from fastapi import APIRouter

from wardrobe.api.v1.endpoints import clothes, rentals


api_router = APIRouter()

api_router.include_router(clothes.router, prefix="/clothes", tags=["clothes"])
api_router.include_router(rentals.router, prefix="/rentals", tags=["rentals"])
