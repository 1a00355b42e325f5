import base64
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List

import httpx

from models.classification import ImageData, Prediction, UNKNOWN_PREDICTION

logger = logging.getLogger(__name__)

MAX_PREDICTIONS = 3

def default_predictions() -> List[Prediction]:
    return [UNKNOWN_PREDICTION.model_copy()]

def to_data_url(image: ImageData) -> str:
    payload = base64.b64encode(image.content).decode("ascii")
    return f"data:{image.content_type};base64,{payload}"

def _confidence(raw: Dict[str, Any]) -> float:
    return float(raw.get("confidence") or 0)

def round_confidence(value: float) -> float:
    # Halves round away from zero on the exact binary value
    return float(Decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))

def normalize_predictions(raw_predictions: List[Dict[str, Any]]) -> List[Prediction]:
    """Rank raw classifier predictions and map them onto `Prediction`.

    Sorted by confidence descending and truncated to the top three. The breed
    comes from `class`, then `predicted_class`, then "unknown".
    """
    ranked = sorted(raw_predictions, key=_confidence, reverse=True)[:MAX_PREDICTIONS]

    return [
        Prediction(
            breed=pred.get("class") or pred.get("predicted_class") or "unknown",
            confidence=round_confidence(_confidence(pred))
        )
        for pred in ranked
    ]

class BreedClassifier:
    def __init__(self, client: httpx.AsyncClient, url: str, api_key: str, use_cache: bool = True):
        self.client = client
        self.url = url
        self.api_key = api_key
        self.use_cache = use_cache

    async def _request_predictions(self, image: ImageData) -> List[Dict[str, Any]]:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}"
        }
        body = {
            "image": to_data_url(image),
            "use_cache": self.use_cache
        }
        response = await self.client.post(self.url, headers=headers, json=body)

        if not response.is_success:
            raise RuntimeError(f"Classifier API error: {response.status_code} {response.reason_phrase}")

        result = response.json()
        logger.debug(f"Classifier API response: {result}")
        return result.get("predictions") or []

    async def classify(self, image: ImageData) -> List[Prediction]:
        """Classify an image; falls back to a single "unknown" prediction on any failure."""
        logger.info("Calling classifier API for breed classification")
        try:
            raw_predictions = await self._request_predictions(image)
            if not raw_predictions:
                logger.warning("No predictions returned from classifier API")
                return default_predictions()
            return normalize_predictions(raw_predictions)
        except Exception as e:
            logger.error(f"Classifier API error: {str(e)}")
            return default_predictions()
