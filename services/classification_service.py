import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from models.classification import ClassificationRequest
from services.image_service import resolve_image
from services.inference_service import BreedClassifier
from services.persistence_service import persist_classification
from services.storage_service import StorageClient
from views.classification_view import ensure_http_url, format_success

logger = logging.getLogger(__name__)

@dataclass
class ClassificationServices:
    """Clients shared by every request, built once at startup."""
    http_client: httpx.AsyncClient
    storage: Optional[StorageClient]
    classifier: BreedClassifier
    datastore: Any
    model_version: str

async def classify_breed(request: ClassificationRequest, services: ClassificationServices) -> Dict[str, Any]:
    logger.info(f"Processing breed classification for animal {request.animal_id} of type {request.animal_type}")
    logger.info(f"Image URL: {request.image_url}")

    start_time = time.monotonic()

    ensure_http_url(request.image_url)

    image = await resolve_image(request.image_url, services.storage, services.http_client)
    predictions = await services.classifier.classify(image)

    processing_time_ms = int((time.monotonic() - start_time) * 1000)

    animal_record = await persist_classification(
        services.datastore,
        request,
        predictions,
        processing_time_ms,
        services.model_version
    )

    logger.info(f"Classification completed in {processing_time_ms}ms for animal {request.animal_id}")

    return format_success(animal_record.id, predictions, processing_time_ms)
