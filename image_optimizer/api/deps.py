from typing import Annotated

from fastapi import Depends

from image_optimizer.clients.codec import PillowCodec
from image_optimizer.clients.codec import codec as pillow_codec
from image_optimizer.services.optimizer import ImageOptimizer


async def get_codec() -> PillowCodec:
    """Dependency to get the shared codec client."""
    return pillow_codec


async def get_image_optimizer(
    codec: Annotated[PillowCodec, Depends(get_codec)],
) -> ImageOptimizer:
    """Dependency to get an ImageOptimizer instance."""
    return ImageOptimizer(codec)
