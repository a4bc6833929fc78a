"""HTTPX client for the Supabase nutrition estimation edge functions."""

import logging
from dataclasses import dataclass

import httpx
from pydantic import ValidationError

from food_logger.domain.estimation import (
    FoodEstimate,
    ImageEstimateRequest,
    TextEstimateRequest,
)
from food_logger.services.estimation import EstimationClient, EstimationError

_logger = logging.getLogger(__name__)


@dataclass
class HttpxEstimationClient(EstimationClient):
    """Estimation client calling the text and image edge functions."""

    base_url: str
    api_key: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = 30.0

    @classmethod
    def create(
        cls, base_url: str, api_key: str, timeout_seconds: float = 30.0
    ) -> "HttpxEstimationClient":
        """Create an estimation client with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            api_key=api_key,
            http_client=httpx.AsyncClient(),
            timeout_seconds=timeout_seconds,
        )

    async def estimate_text(self, request: TextEstimateRequest) -> FoodEstimate:
        """Estimate nutrition from a title and description."""
        return await self._post("text-estimation", request.to_payload())

    async def estimate_image(self, request: ImageEstimateRequest) -> FoodEstimate:
        """Estimate nutrition from an image URL."""
        return await self._post("image-estimation", request.to_payload())

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    async def _post(self, function: str, payload: dict[str, object]) -> FoodEstimate:
        url = f"{self.base_url}/functions/v1/{function}"
        try:
            response = await self.http_client.post(
                url,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "apikey": self.api_key,
                },
                json=payload,
                timeout=self.timeout_seconds,
            )
        except httpx.HTTPError as exc:
            _logger.warning("Estimation %s transport error: %s", function, exc)
            raise EstimationError() from exc

        if response.is_error:
            _logger.warning(
                "Estimation %s HTTP error: %s %s",
                function,
                response.status_code,
                response.text,
            )
            raise EstimationError()

        try:
            data = response.json()
        except ValueError as exc:
            raise EstimationError() from exc
        if not isinstance(data, dict):
            raise EstimationError()
        if data.get("error"):
            _logger.warning("Estimation %s error: %s", function, data["error"])
            raise EstimationError()

        try:
            return FoodEstimate.model_validate(data)
        except ValidationError as exc:
            raise EstimationError() from exc
