"""Shared FastAPI dependencies."""
from fastapi import Request

from creative_studio.services.multimedia_generation_service import MultimediaGenerationService


def get_generation_service(request: Request) -> MultimediaGenerationService:
    """The service instance built during application startup."""
    return request.app.state.generation_service
