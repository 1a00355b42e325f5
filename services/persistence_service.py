import logging
from typing import List

from exceptions import DatastoreError, PersistenceFailed
from models.animal_record import AnimalRecord, AnimalRecordCreate, PredictionLogEntry
from models.classification import ClassificationRequest, Prediction

logger = logging.getLogger(__name__)

async def persist_classification(
    datastore,
    request: ClassificationRequest,
    predictions: List[Prediction],
    processing_time_ms: int,
    model_version: str
) -> AnimalRecord:
    """Upsert the animal record, then append a prediction log entry.

    Only the upsert is fatal; a failed log insert is logged and ignored.
    """
    top = predictions[0]
    record = AnimalRecordCreate(
        animal_id=request.animal_id,
        user_id=request.user_id,
        animal_type=request.animal_type,
        predicted_breed=top.breed,
        confidence_score=top.confidence,
        image_url=request.image_url,
        verification_status="pending"
    )

    try:
        row = await datastore.upsert_animal_record(record.model_dump())
        if not isinstance(row, dict) or row.get("id") is None:
            raise DatastoreError("Upsert did not return the record id")
    except DatastoreError as e:
        logger.error(f"Error creating animal record: {str(e)}")
        raise PersistenceFailed(str(e)) from e

    animal_record = AnimalRecord(**{**row, "id": str(row["id"])})

    log_entry = PredictionLogEntry(
        animal_record_id=animal_record.id,
        image_url=request.image_url,
        predicted_breeds=predictions,
        model_version=model_version,
        processing_time_ms=processing_time_ms
    )

    try:
        await datastore.insert_prediction_log(log_entry.model_dump())
    except DatastoreError as e:
        logger.error(f"Error logging prediction: {str(e)}")

    return animal_record
