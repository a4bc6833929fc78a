"""OpenAI Responses API client for nutrition estimation."""

import json
from dataclasses import dataclass

from openai import AsyncOpenAI, OpenAIError
from pydantic import ValidationError

from food_logger.domain.estimation import (
    INVALID_IMAGE_TITLE,
    FoodEstimate,
    ImageEstimateRequest,
    TextEstimateRequest,
)
from food_logger.services.estimation import EstimationClient, EstimationError

ESTIMATE_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "generatedTitle": {"type": "string"},
        "estimationConfidence": {"type": "integer", "minimum": 0, "maximum": 100},
        "calories": {"type": "integer", "minimum": 0},
        "protein": {"type": "integer", "minimum": 0},
        "carbs": {"type": "integer", "minimum": 0},
        "fat": {"type": "integer", "minimum": 0},
    },
    "required": [
        "generatedTitle",
        "estimationConfidence",
        "calories",
        "protein",
        "carbs",
        "fat",
    ],
    "additionalProperties": False,
}

TEXT_INSTRUCTIONS = (
    "You are a nutrition expert. Estimate calories and macronutrients in grams "
    "for the whole meal the user describes, using typical single-serving "
    "portions when amounts are missing. All numbers are non-negative integers. "
    "generatedTitle is one fitting emoji followed by one to three words. "
    "estimationConfidence is 1-100 and reflects how specific the description "
    "is."
)

IMAGE_INSTRUCTIONS = (
    "You are a nutrition expert analysing a food photo. Estimate calories and "
    "macronutrients in grams for everything edible in the image, using plate "
    "size and utensils as portion cues. Use any title or description only to "
    "clarify what is visible. estimationConfidence is 1-100 and reflects image "
    "clarity and how estimable the portions are. If the image shows no food, "
    f'return generatedTitle "{INVALID_IMAGE_TITLE}" with every number set to 0.'
)


@dataclass
class OpenAIEstimationClient(EstimationClient):
    """Estimation client backed by OpenAI structured outputs."""

    client: AsyncOpenAI
    model: str

    @classmethod
    def create(cls, api_key: str, model: str) -> "OpenAIEstimationClient":
        """Create an OpenAI estimation client."""
        return cls(client=AsyncOpenAI(api_key=api_key), model=model)

    async def estimate_text(self, request: TextEstimateRequest) -> FoodEstimate:
        """Estimate nutrition from a title and description."""
        prompt = _describe(request.title, request.description)
        return await self._create(
            TEXT_INSTRUCTIONS, [{"type": "input_text", "text": prompt}]
        )

    async def estimate_image(self, request: ImageEstimateRequest) -> FoodEstimate:
        """Estimate nutrition from an image URL."""
        content: list[dict[str, object]] = [
            {"type": "input_image", "image_url": request.image_url}
        ]
        if request.title or request.description:
            content.insert(
                0,
                {
                    "type": "input_text",
                    "text": _describe(request.title, request.description),
                },
            )
        return await self._create(IMAGE_INSTRUCTIONS, content)

    async def close(self) -> None:
        """Close the underlying OpenAI client."""
        await self.client.close()

    async def _create(
        self, instructions: str, content: list[dict[str, object]]
    ) -> FoodEstimate:
        try:
            response = await self.client.responses.create(
                model=self.model,
                instructions=instructions,
                input=[{"role": "user", "content": content}],
                text={
                    "format": {
                        "type": "json_schema",
                        "name": "nutrition_estimate",
                        "strict": True,
                        "schema": ESTIMATE_SCHEMA,
                    }
                },
            )
        except OpenAIError as exc:
            raise EstimationError() from exc

        output_text = response.output_text
        if not output_text:
            raise EstimationError("OpenAI returned an empty response")
        try:
            return FoodEstimate.model_validate(json.loads(output_text))
        except (ValueError, ValidationError) as exc:
            raise EstimationError() from exc


def _describe(title: str | None, description: str | None) -> str:
    parts = []
    if title:
        parts.append(f"Title: {title}")
    if description:
        parts.append(f"Description: {description}")
    return "\n".join(parts) or "Unknown meal"
