from pydantic import BaseModel
from typing import List, Optional

class ClassificationRequest(BaseModel):
    image_url: str
    animal_id: str
    user_id: str
    animal_type: str

    class Config:
        json_schema_extra = {
            "example": {
                "image_url": "https://example.supabase.co/storage/v1/object/public/animal-images/abc.jpg",
                "animal_id": "A1",
                "user_id": "U1",
                "animal_type": "dog"
            }
        }

class Prediction(BaseModel):
    breed: str
    confidence: float

UNKNOWN_PREDICTION = Prediction(breed="unknown", confidence=0)

class ImageData(BaseModel):
    content: bytes
    content_type: str = ""

    @property
    def size(self) -> int:
        return len(self.content)

class ClassificationResponse(BaseModel):
    success: bool = True
    animal_record_id: str
    predictions: List[Prediction]
    top_prediction: Prediction
    processing_time_ms: int

class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "error": "Internal server error",
                "details": "Failed to fetch image: 404 Not Found"
            }
        }
