import json
from typing import Any, Dict, List, Optional

from fastapi.responses import JSONResponse, Response

from exceptions import InvalidImageUrl, InvalidRequest, REQUIRED_FIELDS
from models.classification import ClassificationRequest, Prediction

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}

def parse_classification_request(body: bytes) -> ClassificationRequest:
    try:
        payload = json.loads(body or b"null")
    except ValueError:
        raise InvalidRequest()

    if not isinstance(payload, dict):
        raise InvalidRequest()

    values = {}
    for field in REQUIRED_FIELDS:
        value = payload.get(field)
        if not value or isinstance(value, (dict, list)):
            raise InvalidRequest()
        # Numeric ids are accepted as their string form
        values[field] = value if isinstance(value, str) else str(value)

    return ClassificationRequest(**values)

def ensure_http_url(image_url: str) -> None:
    if not image_url or not image_url.startswith("http"):
        raise InvalidImageUrl()

def format_success(
    animal_record_id: str,
    predictions: List[Prediction],
    processing_time_ms: int
) -> Dict[str, Any]:
    top = predictions[0]
    return {
        "success": True,
        "animal_record_id": animal_record_id,
        "predictions": [p.model_dump() for p in predictions],
        "top_prediction": {
            "breed": top.breed,
            "confidence": top.confidence
        },
        "processing_time_ms": processing_time_ms
    }

def json_response(content: Dict[str, Any], status_code: int = 200) -> JSONResponse:
    return JSONResponse(content=content, status_code=status_code, headers=CORS_HEADERS)

def error_response(error: str, status_code: int, details: Optional[str] = None) -> JSONResponse:
    content = {"error": error}
    if details is not None:
        content["details"] = details
    return json_response(content, status_code=status_code)

def preflight_response() -> Response:
    return Response(status_code=200, headers=CORS_HEADERS)
