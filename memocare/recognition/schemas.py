from datetime import datetime
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from memocare.utils.timezone import to_utc_aware


class DetectedObject(BaseModel):
    """One label from the object-detection model for a single image"""
    model_config = ConfigDict(populate_by_name=True)

    label: str = Field(..., alias="class", min_length=1)
    score: float = Field(..., ge=0.0, le=1.0)
    bbox: Tuple[float, float, float, float]  # [x, y, width, height]


class ObjectSignature(BaseModel):
    """Compact summary of one image's confident detections.

    Serialized with the camelCase keys the browser client uses.
    """
    model_config = ConfigDict(populate_by_name=True)

    objects: List[DetectedObject] = Field(default_factory=list)
    dominant_objects: List[str] = Field(..., alias="dominantObjects")
    object_count: int = Field(..., alias="objectCount", ge=0)

    def to_blob(self) -> str:
        return self.model_dump_json(by_alias=True)


class StoredSignature(BaseModel):
    """A previously tagged signature offered as a match candidate"""
    model_config = ConfigDict(populate_by_name=True)

    id: int
    signature: ObjectSignature
    user_tag: str = Field(..., alias="userTag")


class MatchResult(BaseModel):
    id: int
    user_tag: str
    score: float


# --- API payloads ---

class ObjectTagCreate(BaseModel):
    user_id: int = Field(..., ge=1)
    user_tag: str = Field(..., min_length=1)
    detections: List[DetectedObject]
    photo_path: Optional[str] = None
    notes: Optional[str] = None
    linked_contact_id: Optional[int] = None


class ObjectRecognitionRead(BaseModel):
    id: int
    user_id: int
    user_tag: str
    photo_path: Optional[str]
    notes: Optional[str]
    linked_contact_id: Optional[int]
    signature: Optional[ObjectSignature]
    created_at: datetime

    @field_serializer("created_at")
    def serialize_utc(self, v: datetime) -> str:
        return to_utc_aware(v).isoformat()


class IdentifyRequest(BaseModel):
    user_id: int = Field(..., ge=1)
    detections: List[DetectedObject]
    photo_path: Optional[str] = None


class IdentifyResponse(BaseModel):
    signature: ObjectSignature
    matches: List[MatchResult]


class ObjectMatchRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    original_object_id: int
    new_photo_path: Optional[str]
    confidence_score: float
    matched_at: datetime

    @field_serializer("matched_at")
    def serialize_utc(self, v: datetime) -> str:
        return to_utc_aware(v).isoformat()
