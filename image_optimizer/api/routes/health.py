from fastapi import APIRouter

from image_optimizer.api.models import HealthRead

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthRead)
async def health() -> HealthRead:
    return HealthRead(status="ok", message="Server is running")
