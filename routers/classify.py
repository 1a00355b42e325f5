import logging

from fastapi import APIRouter, Depends, Request

from config import Settings
from exceptions import InvalidImageUrl, InvalidRequest, PersistenceFailed
from models.classification import ClassificationResponse, ErrorResponse
from services.classification_service import ClassificationServices, classify_breed
from views import classification_view

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["Breed Classification"]
)

def get_services(request: Request) -> ClassificationServices:
    return request.app.state.services

def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings

@router.options("/classify-breed", include_in_schema=False)
async def classify_breed_preflight():
    return classification_view.preflight_response()

@router.post(
    "/classify-breed",
    response_model=ClassificationResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}
)
async def classify_breed_endpoint(
    request: Request,
    services: ClassificationServices = Depends(get_services),
    settings: Settings = Depends(get_app_settings)
):
    try:
        classification_request = classification_view.parse_classification_request(await request.body())
    except InvalidRequest as e:
        return classification_view.error_response(str(e), status_code=400)

    try:
        result = await classify_breed(classification_request, services)
        return classification_view.json_response(result)

    except InvalidImageUrl as e:
        if settings.INVALID_URL_AS_CLIENT_ERROR:
            return classification_view.error_response(str(e), status_code=400)
        logger.error(f"Error in classify-breed: {str(e)}")
        return classification_view.error_response("Internal server error", status_code=500, details=str(e))

    except PersistenceFailed as e:
        return classification_view.error_response(
            "Failed to create animal record",
            status_code=500,
            details=e.details
        )

    except Exception as e:
        logger.exception(f"Error in classify-breed: {str(e)}")
        return classification_view.error_response("Internal server error", status_code=500, details=str(e))
