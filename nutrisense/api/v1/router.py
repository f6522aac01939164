"""
Main API v1 router.
"""

from fastapi import APIRouter

from nutrisense.api.v1 import alerts, analytics, nutrition

api_router = APIRouter()

api_router.include_router(nutrition.router)
api_router.include_router(analytics.router)
api_router.include_router(alerts.router)
