"""Aggregate API v1 router: mounts all sub-routers."""
from fastapi import APIRouter
from creative_studio.api.v1 import generation, prompts, providers

router = APIRouter(prefix="/api/v1")

router.include_router(prompts.router, prefix="/prompts", tags=["Prompts"])
router.include_router(generation.router, prefix="/generations", tags=["Generation"])
router.include_router(providers.router, prefix="/providers", tags=["Providers"])
