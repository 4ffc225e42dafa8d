from datetime import datetime, timezone

from fastapi import APIRouter


router = APIRouter()


@router.get("/health")
async def get_health() -> dict:
    return {"status": "OK", "timestamp": datetime.now(timezone.utc).isoformat()}
