"""
FastAPI dependencies for the store handle and engine services.
"""

from typing import Generator

from fastapi import Request
from sqlalchemy.orm import Session

from nutrisense.db.database import Database
from nutrisense.services.recompute import RecomputeService


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_db(request: Request) -> Generator[Session, None, None]:
    """Request-scoped session; commits on success, rolls back on error."""
    yield from get_database(request).get_session()


def get_recompute_service(request: Request) -> RecomputeService:
    return request.app.state.recompute_service
