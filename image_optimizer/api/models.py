from pydantic import BaseModel

from image_optimizer.domain.models import OptimizationRequest


class OptimizeForm(BaseModel):
    """Form fields sent along with the uploaded image, all optional strings."""

    quality: str | None = None
    max_width: str | None = None
    format: str | None = None

    def to_request(self, image_bytes: bytes) -> OptimizationRequest:
        return OptimizationRequest(
            image_bytes=image_bytes,
            quality=self.quality,
            max_width=self.max_width,
            format=self.format,
        )


class HealthRead(BaseModel):
    status: str
    message: str
