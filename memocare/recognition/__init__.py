"""Object recognition package.

This module contains:
- SQLAlchemy models for tagged object photos and their later re-identifications
- Pydantic schemas for detections, signatures and match results
- A small, pure engine that builds signatures and ranks stored ones by similarity
- Repository helpers and the tag/identify endpoints

Detection itself happens upstream (the browser runs the model); this package
only consumes its ``{class, score, bbox}`` output.
"""

from .engine import (
    InvalidInput,
    calculate_similarity,
    create_object_signature,
    find_matches,
    parse_signature,
)
