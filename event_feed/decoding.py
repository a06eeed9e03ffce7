"""
Decode cascade for completion responses.

Turns the free-text response of the completion service into event objects
using increasingly lenient strategies. A stage runs only when the previous
one produced no valid records.
"""

import json
from typing import Any, Dict, List, Optional, Tuple

from .logger import get_logger
from .models import ExtractionStage
from .tolerant_json import (
    find_object_candidates,
    iter_array_candidates,
    loads_tolerant,
    strip_code_fences,
)

log = get_logger('decoding')


def has_title(obj: Any) -> bool:
    """True for a dict whose title is a non-blank value."""
    if not isinstance(obj, dict):
        return False
    title = obj.get('title')
    return title is not None and bool(str(title).strip())


def _valid_objects(data: Any) -> List[Dict[str, Any]]:
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        return []
    return [item for item in data if has_title(item)]


def decode_whole(text: str) -> List[Dict[str, Any]]:
    """Stage 1: the whole (fence-stripped) response is JSON."""
    try:
        data = json.loads(text)
    except (ValueError, RecursionError) as e:
        log.debug(f"Whole-response decode failed: {e}")
        return []
    return _valid_objects(data)


def decode_array_substring(text: str) -> List[Dict[str, Any]]:
    """Stage 2: the first parseable `[ { ... } ]` embedded in the text."""
    for candidate in iter_array_candidates(text):
        try:
            data = json.loads(candidate)
        except (ValueError, RecursionError) as e:
            log.debug(f"Array candidate rejected ({len(candidate)} chars): {e}")
            continue
        return _valid_objects(data)
    return []


def decode_objects(text: str) -> List[Dict[str, Any]]:
    """Stage 3: repair and parse each title-bearing object independently."""
    objects = []
    for candidate in find_object_candidates(text, key='title'):
        try:
            data = loads_tolerant(candidate)
        except ValueError as e:
            log.debug(f"Object candidate rejected: {e}")
            continue
        if has_title(data):
            objects.append(data)
    return objects


CASCADE = (
    (ExtractionStage.LLM_DIRECT, decode_whole),
    (ExtractionStage.LLM_REGEX_ARRAY, decode_array_substring),
    (ExtractionStage.LLM_OBJECT_REPAIR, decode_objects),
)


def decode_events(response_text: str) -> Tuple[List[Dict[str, Any]], Optional[ExtractionStage]]:
    """
    Run the cascade over a response.

    Returns:
        (objects, stage) where stage is the step that produced the objects,
        or ([], None) when every step came up empty.
    """
    cleaned = strip_code_fences(response_text)
    if not cleaned:
        return [], None

    for stage, decoder in CASCADE:
        objects = decoder(cleaned)
        if objects:
            log.debug(f"Decoded {len(objects)} objects via {stage.value}")
            return objects, stage

    log.warning("All decode stages failed for response")
    return [], None
