# mentorhub/routes/v1/health.py
"""
Health check endpoint for load balancer probes.
"""

from fastapi import APIRouter

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check() -> dict:
    return {"status": "ok"}
