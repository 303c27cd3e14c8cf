"""
Health check endpoint.

Never rate limited and never authenticated.
"""

from typing import Dict

from fastapi import APIRouter

router = APIRouter()


@router.get(
    "/health",
    status_code=200,
    summary="Liveness probe",
)
async def health() -> Dict[str, bool]:
    return {"ok": True}
