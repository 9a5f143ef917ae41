# routers/system.py
from datetime import datetime, timezone

from fastapi import APIRouter

from models import format_timestamp

router = APIRouter(tags=["System"])


@router.get("/test")
async def backend_test():
    """Lets the frontend check that the backend is reachable."""
    return {
        "message": "Backend is working!",
        "timestamp": format_timestamp(datetime.now(timezone.utc)),
        "status": "OK",
    }


@router.get("/health")
async def health_check():
    return {"status": "healthy"}
