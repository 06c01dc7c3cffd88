from typing import Any, Iterable, List, Mapping, Union

from pydantic import ValidationError

from .schemas import DetectedObject, MatchResult, ObjectSignature, StoredSignature


CONFIDENCE_THRESHOLD = 0.5  # detections at or below this are ignored
DOMINANT_OBJECT_COUNT = 3
OVERLAP_WEIGHT = 0.7
COUNT_WEIGHT = 0.3
MATCH_FLOOR = 0.4  # matches at or below this are discarded
MAX_MATCHES = 3


class InvalidInput(ValueError):
    """Raised when a detection list or signature is malformed."""


SignatureLike = Union[ObjectSignature, Mapping[str, Any], str, bytes]


def parse_signature(value: SignatureLike) -> ObjectSignature:
    """Validate a signature given as a model, a mapping or a serialized blob."""
    if isinstance(value, ObjectSignature):
        return value
    try:
        if isinstance(value, (str, bytes)):
            return ObjectSignature.model_validate_json(value)
        if isinstance(value, Mapping):
            return ObjectSignature.model_validate(value)
    except ValidationError as e:
        raise InvalidInput(f"malformed signature: {e.error_count()} error(s)") from e
    raise InvalidInput(f"unsupported signature type: {type(value).__name__}")


def create_object_signature(detections: Iterable[Union[DetectedObject, Mapping[str, Any]]]) -> ObjectSignature:
    """Keep detections scoring above the confidence threshold and take the
    top three labels by score as the dominant objects.

    Sorting is stable, so equal scores keep detection order.
    """
    try:
        objects = [
            d if isinstance(d, DetectedObject) else DetectedObject.model_validate(d)
            for d in detections
        ]
    except (ValidationError, TypeError) as e:
        raise InvalidInput(f"malformed detections: {e}") from e

    confident = [o for o in objects if o.score > CONFIDENCE_THRESHOLD]
    ranked = sorted(confident, key=lambda o: o.score, reverse=True)
    return ObjectSignature(
        objects=ranked,
        dominant_objects=[o.label for o in ranked[:DOMINANT_OBJECT_COUNT]],
        object_count=len(ranked),
    )


def calculate_similarity(a: SignatureLike, b: SignatureLike) -> float:
    """Weighted mix of dominant-object overlap (Jaccard) and count similarity.

    Symmetric in its arguments; identical signatures with at least one
    dominant object score exactly 1.0.
    """
    sig_a = parse_signature(a)
    sig_b = parse_signature(b)

    labels_a = set(sig_a.dominant_objects)
    labels_b = set(sig_b.dominant_objects)
    union = labels_a | labels_b
    overlap = len(labels_a & labels_b) / len(union) if union else 0.0

    count_a, count_b = sig_a.object_count, sig_b.object_count
    count_similarity = 1 - abs(count_a - count_b) / max(count_a, count_b, 1)

    return OVERLAP_WEIGHT * overlap + COUNT_WEIGHT * count_similarity


def find_matches(
    new_signature: SignatureLike,
    stored: Iterable[Union[StoredSignature, Mapping[str, Any]]],
) -> List[MatchResult]:
    """Rank stored signatures against a new one.

    Returns at most three matches scoring above the floor, best first.
    """
    query = parse_signature(new_signature)
    candidates = []
    for item in stored:
        if not isinstance(item, StoredSignature):
            try:
                item = StoredSignature.model_validate(item)
            except ValidationError as e:
                raise InvalidInput(f"malformed stored signature: {e.error_count()} error(s)") from e
        candidates.append(
            MatchResult(
                id=item.id,
                user_tag=item.user_tag,
                score=calculate_similarity(query, item.signature),
            )
        )

    matches = [m for m in candidates if m.score > MATCH_FLOOR]
    matches.sort(key=lambda m: m.score, reverse=True)
    return matches[:MAX_MATCHES]

