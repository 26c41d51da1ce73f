"""
Intake of the vision model's outfit description.

The model is asked for ``{"outfitPieces": [...]}`` but nothing guarantees it
complies, so parsing here accepts a bare list, JSON wrapped in prose, missing
fields and wrong types, and never raises on bad content.
"""
import json
import logging
import re
from typing import Any, List, Mapping, Optional, Union

from .models import BoundingBoxPercent, PieceDescriptor

logger = logging.getLogger(__name__)

PIECES_KEY = "outfitPieces"
TEXT_FIELDS = ("type", "name", "color", "style", "details")

_JSON_BLOCK = re.compile(r"\{[\s\S]*\}")


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    return str(value)


def descriptor_from_mapping(data: Mapping[str, Any]) -> PieceDescriptor:
    """Build a PieceDescriptor, defaulting every field the model left out."""
    location = data.get("location")
    box: Optional[BoundingBoxPercent] = None
    if isinstance(location, Mapping):
        box = BoundingBoxPercent.from_mapping(location)
    elif location is not None:
        logger.warning(f"Ignoring non-object location: {location!r}")

    extra = {k: v for k, v in data.items() if k not in TEXT_FIELDS and k != "location"}
    return PieceDescriptor(
        type=_text(data.get("type")),
        name=_text(data.get("name")),
        color=_text(data.get("color")),
        style=_text(data.get("style")),
        details=_text(data.get("details")),
        location=box,
        extra=extra,
    )


def descriptors_from_payload(payload: Any) -> List[PieceDescriptor]:
    """
    Convert decoded JSON into descriptors.

    Accepts ``{"outfitPieces": [...]}`` or a bare list. Entries that are not
    objects are dropped; anything else unusable yields an empty list.
    """
    if isinstance(payload, Mapping):
        payload = payload.get(PIECES_KEY, [])
    if not isinstance(payload, list):
        logger.warning(f"Expected a list of pieces, got {type(payload).__name__}")
        return []

    pieces: List[PieceDescriptor] = []
    for idx, entry in enumerate(payload):
        if not isinstance(entry, Mapping):
            logger.warning(f"Dropping piece {idx}: not an object")
            continue
        pieces.append(descriptor_from_mapping(entry))
    return pieces


def parse_vision_response(content: Union[str, bytes, None]) -> List[PieceDescriptor]:
    """
    Parse the raw text returned by the vision model.

    Falls back to the first ``{...}`` block when the text is not pure JSON.
    """
    if not content:
        return []
    if isinstance(content, bytes):
        content = content.decode("utf-8", errors="replace")

    try:
        payload = json.loads(content)
    except json.JSONDecodeError:
        match = _JSON_BLOCK.search(content)
        if not match:
            logger.warning("Vision response contains no JSON object")
            return []
        try:
            payload = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to parse JSON from vision response: {e}")
            return []

    pieces = descriptors_from_payload(payload)
    logger.info(f"Parsed {len(pieces)} outfit pieces")
    return pieces

