from pydantic import BaseModel
from typing import List

from models.classification import Prediction

class AnimalRecordCreate(BaseModel):
    animal_id: str
    user_id: str
    animal_type: str
    predicted_breed: str
    confidence_score: float
    image_url: str
    verification_status: str = "pending"

class AnimalRecord(AnimalRecordCreate):
    id: str

class PredictionLogEntry(BaseModel):
    animal_record_id: str
    image_url: str
    predicted_breeds: List[Prediction]
    model_version: str
    processing_time_ms: int
