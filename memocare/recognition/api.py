import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from memocare.api.deps import verify_api_key_dependency
from memocare.db.session import get_db
from .engine import create_object_signature, find_matches
from .models import ObjectRecognition
from .repository import (
    create_object_matches,
    create_object_recognition,
    list_object_matches,
    list_object_recognitions,
    load_stored_signatures,
    record_signature,
)
from .schemas import (
    IdentifyRequest,
    IdentifyResponse,
    ObjectMatchRead,
    ObjectRecognitionRead,
    ObjectTagCreate,
)

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(verify_api_key_dependency)])


def _to_read(record: ObjectRecognition) -> ObjectRecognitionRead:
    return ObjectRecognitionRead(
        id=record.id,
        user_id=record.user_id,
        user_tag=record.user_tag,
        photo_path=record.photo_path,
        notes=record.notes,
        linked_contact_id=record.linked_contact_id,
        signature=record_signature(record),
        created_at=record.created_at,
    )


@router.get("/", response_model=List[ObjectRecognitionRead])
def list_objects(
    user_id: int = Query(..., ge=1),
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    return [_to_read(r) for r in list_object_recognitions(db, user_id=user_id, limit=limit)]


@router.post("/", response_model=ObjectRecognitionRead, status_code=201)
def tag_object(payload: ObjectTagCreate, db: Session = Depends(get_db)):
    """Store a tagged photo's detections together with their signature."""
    signature = create_object_signature(payload.detections)
    record = create_object_recognition(db, payload, signature)
    logger.info(
        f"🏷️ [Recognition] User {payload.user_id} tagged object {record.id} "
        f"as {payload.user_tag!r} ({signature.object_count} confident detections)"
    )
    return _to_read(record)


@router.post("/identify", response_model=IdentifyResponse)
def identify_object(payload: IdentifyRequest, db: Session = Depends(get_db)):
    """Match a new photo's detections against the user's tagged objects."""
    signature = create_object_signature(payload.detections)
    stored = load_stored_signatures(db, payload.user_id)
    matches = find_matches(signature, stored)
    create_object_matches(db, payload.user_id, matches, new_photo_path=payload.photo_path)
    logger.info(
        f"🔍 [Recognition] User {payload.user_id}: {len(matches)} match(es) "
        f"among {len(stored)} tagged object(s)"
    )
    return IdentifyResponse(signature=signature, matches=matches)


@router.get("/{object_id}/matches", response_model=List[ObjectMatchRead])
def get_object_matches(object_id: int, db: Session = Depends(get_db)):
    if db.get(ObjectRecognition, object_id) is None:
        raise HTTPException(status_code=404, detail="Object not found")
    return list_object_matches(db, original_object_id=object_id)
