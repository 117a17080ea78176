from fastapi import APIRouter

from .endpoints import admin_redemptions, health, observability, rewards

router = APIRouter()
router.include_router(health.router, tags=["Health"])
router.include_router(rewards.router)
router.include_router(admin_redemptions.router)
router.include_router(observability.router)
