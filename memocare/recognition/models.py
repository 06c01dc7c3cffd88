from sqlalchemy import Column, DateTime, Float, ForeignKey, Index, Integer, String, Text

from memocare.db.base import Base
from memocare.utils.timezone import utcnow


class ObjectRecognition(Base):
    """A user-tagged photo and the signature of what was detected in it"""
    __tablename__ = "object_recognitions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    photo_path = Column(String, nullable=True)  # reference supplied by the caller
    user_tag = Column(String, nullable=False)  # user's caption, e.g. "my reading glasses"
    detected_objects = Column(Text, nullable=False)  # JSON array of raw detections
    visual_features = Column(Text, nullable=True)  # serialized ObjectSignature
    notes = Column(Text, nullable=True)
    linked_contact_id = Column(Integer, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)


class ObjectMatch(Base):
    """Records each time a stored object is re-identified in a new photo"""
    __tablename__ = "object_matches"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    original_object_id = Column(Integer, ForeignKey("object_recognitions.id", ondelete="CASCADE"), nullable=False)
    new_photo_path = Column(String, nullable=True)
    confidence_score = Column(Float, nullable=False)  # 0-1
    matched_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index("ix_object_matches_original", "original_object_id"),
    )
