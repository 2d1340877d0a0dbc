"""
FastAPI dependency injection functions.
"""

from fastapi import Depends

from edugrade.config import Settings, get_settings
from edugrade.features.grading.service import GradingService


def get_grading_service(settings: Settings = Depends(get_settings)) -> GradingService:
    """Dependency: grading service bound to the current settings."""
    return GradingService(settings)
