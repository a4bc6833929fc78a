"""Request and response models for the nutrition estimation service."""

from pydantic import BaseModel, ConfigDict, Field

INVALID_IMAGE_TITLE = "Invalid Image"


class TextEstimateRequest(BaseModel):
    """Text-based estimation input."""

    title: str | None = None
    description: str | None = None

    def to_payload(self) -> dict[str, object]:
        """Return the JSON body sent to the service."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ImageEstimateRequest(BaseModel):
    """Image-based estimation input."""

    model_config = ConfigDict(populate_by_name=True)

    image_url: str = Field(alias="imageUrl")
    title: str | None = None
    description: str | None = None

    def to_payload(self) -> dict[str, object]:
        """Return the JSON body sent to the service."""
        return self.model_dump(by_alias=True, exclude_none=True)


class FoodEstimate(BaseModel):
    """Nutrition estimate returned by the service."""

    model_config = ConfigDict(populate_by_name=True)

    generated_title: str = Field(alias="generatedTitle")
    estimation_confidence: int = Field(alias="estimationConfidence", ge=0, le=100)
    calories: float = Field(ge=0)
    protein: float = Field(ge=0)
    carbs: float = Field(ge=0)
    fat: float = Field(ge=0)

    @property
    def is_unusable(self) -> bool:
        """Return whether the service could not interpret the input."""
        return self.generated_title == INVALID_IMAGE_TITLE
