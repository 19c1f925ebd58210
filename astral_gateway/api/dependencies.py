"""Dependency injection for FastAPI endpoints"""

from datetime import datetime
from zoneinfo import ZoneInfo
from fastapi import Request
from astral_gateway.config import settings
from astral_gateway.infrastructure.clients.advisory import AdvisoryClient


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_now() -> datetime:
    """Current time in the service calendar; the only clock read in the app"""
    return datetime.now(ZoneInfo(settings.timezone))


def get_advisory_client() -> AdvisoryClient:
    """Provide advisory service client instance"""
    return AdvisoryClient()
