import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, HTTPException, Response, UploadFile, status
from fastapi.concurrency import run_in_threadpool

from image_optimizer.api.deps import get_image_optimizer
from image_optimizer.api.models import OptimizeForm
from image_optimizer.config import settings
from image_optimizer.domain.schemas import ImageStats
from image_optimizer.services.exceptions import CodecError, ValidationError
from image_optimizer.services.optimizer import ImageOptimizer

logger = logging.getLogger(__name__)

router = APIRouter(tags=["images"])

STATS_HEADER = "X-Image-Stats"


async def _read_upload(image: UploadFile | None) -> bytes:
    """Read the uploaded file, enforcing presence, content type and size limits."""
    if image is None or not image.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No image uploaded")
    if image.content_type not in settings.allowed_content_types:
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail=f"Unsupported file type: {image.content_type}",
        )
    data = await image.read(settings.max_upload_size + 1)
    if len(data) > settings.max_upload_size:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds the {settings.max_upload_size} byte upload limit",
        )
    return data


@router.post("/optimize", response_class=Response)
@router.post("/api/optimize", response_class=Response)
async def optimize_image(
    svc: Annotated[ImageOptimizer, Depends(get_image_optimizer)],
    image: Annotated[UploadFile | None, File()] = None,
    quality: Annotated[str | None, Form()] = None,
    max_width: Annotated[str | None, Form(alias="maxWidth")] = None,
    output_format: Annotated[str | None, Form(alias="format")] = None,
) -> Response:
    """Optimize an uploaded image and return the re-encoded bytes.

    Size statistics are returned as JSON in the X-Image-Stats header.
    """
    data = await _read_upload(image)
    form = OptimizeForm(quality=quality, max_width=max_width, format=output_format)
    try:
        result = await run_in_threadpool(svc.optimize, form.to_request(data))
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except CodecError as exc:
        logger.error(f"Error optimizing {image.filename}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to optimize image",
        ) from exc

    stats = ImageStats.from_result(result)
    return Response(
        content=result.output_bytes,
        media_type=result.media_type,
        headers={STATS_HEADER: stats.to_header()},
    )
