import json
import logging
from typing import List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from .engine import InvalidInput, parse_signature
from .models import ObjectMatch, ObjectRecognition
from .schemas import MatchResult, ObjectSignature, ObjectTagCreate, StoredSignature

logger = logging.getLogger(__name__)


def create_object_recognition(db: Session, data: ObjectTagCreate, signature: ObjectSignature) -> ObjectRecognition:
    record = ObjectRecognition(
        user_id=data.user_id,
        user_tag=data.user_tag,
        photo_path=data.photo_path,
        notes=data.notes,
        linked_contact_id=data.linked_contact_id,
        detected_objects=json.dumps([d.model_dump(by_alias=True) for d in data.detections]),
        visual_features=signature.to_blob(),
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def list_object_recognitions(db: Session, user_id: int, limit: int = 100) -> List[ObjectRecognition]:
    stmt = (
        select(ObjectRecognition)
        .where(ObjectRecognition.user_id == user_id)
        .order_by(ObjectRecognition.created_at.desc(), ObjectRecognition.id.desc())
        .limit(limit)
    )
    return list(db.execute(stmt).scalars())


def record_signature(record: ObjectRecognition) -> Optional[ObjectSignature]:
    """Decode a record's stored signature; None when missing or unreadable."""
    if not record.visual_features:
        return None
    try:
        return parse_signature(record.visual_features)
    except InvalidInput as e:
        logger.warning(f"⚠️ [Recognition] Unreadable signature on object {record.id}: {e}")
        return None


def load_stored_signatures(db: Session, user_id: int) -> List[StoredSignature]:
    """All of a user's tagged objects that carry a readable signature."""
    stmt = (
        select(ObjectRecognition)
        .where(ObjectRecognition.user_id == user_id)
        .order_by(ObjectRecognition.id.asc())
    )
    stored = []
    for record in db.execute(stmt).scalars():
        signature = record_signature(record)
        if signature is None:
            continue
        stored.append(StoredSignature(id=record.id, signature=signature, user_tag=record.user_tag))
    return stored


def create_object_matches(
    db: Session, user_id: int, matches: Sequence[MatchResult], new_photo_path: Optional[str] = None
) -> List[ObjectMatch]:
    rows = [
        ObjectMatch(
            user_id=user_id,
            original_object_id=m.id,
            new_photo_path=new_photo_path,
            confidence_score=m.score,
        )
        for m in matches
    ]
    if not rows:
        return rows
    db.add_all(rows)
    db.commit()
    return rows


def list_object_matches(db: Session, original_object_id: int) -> List[ObjectMatch]:
    stmt = (
        select(ObjectMatch)
        .where(ObjectMatch.original_object_id == original_object_id)
        .order_by(ObjectMatch.matched_at.desc(), ObjectMatch.id.desc())
    )
    return list(db.execute(stmt).scalars())
