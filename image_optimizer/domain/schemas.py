from pydantic import BaseModel, Field

from image_optimizer.domain.models import OptimizationResult, format_size


class ImageStats(BaseModel):
    """Human readable statistics sent back in the X-Image-Stats header."""

    original_size: str = Field(serialization_alias="originalSize")
    optimized_size: str = Field(serialization_alias="optimizedSize")
    reduction: str

    @classmethod
    def from_result(cls, result: OptimizationResult) -> "ImageStats":
        return cls(
            original_size=format_size(result.original_size_bytes),
            optimized_size=format_size(result.optimized_size_bytes),
            reduction=f"{result.reduction_percent:.2f}",
        )

    def to_header(self) -> str:
        return self.model_dump_json(by_alias=True)
