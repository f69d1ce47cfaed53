"""Extract literal text and numbers from a serialized canvas.

Canvases are Fabric.js-style JSON documents: a top-level ``objects`` list,
where groups nest further ``objects``.
"""

import json
import re
from collections.abc import Iterator
from typing import Any

from canvas_search.description.models import StructuralContent
from canvas_search.logging_config import get_logger

logger = get_logger(__name__)

TEXT_TYPES = frozenset({"text", "i-text", "itext", "textbox"})

# Objects the editor adds to every canvas; they carry no user content.
_WORKSPACE_NAMES = frozenset({"clip"})

_NUMBER = re.compile(r"[-+]?\d+(?:[.,]\d+)*\s?%?")


def _walk(objects: Any) -> Iterator[dict[str, Any]]:
    if not isinstance(objects, list):
        return
    for obj in objects:
        if not isinstance(obj, dict):
            continue
        yield obj
        yield from _walk(obj.get("objects"))


def _dedupe(values: list[str]) -> list[str]:
    return list(dict.fromkeys(values))


def extract_structural_content(canvas: str | dict[str, Any] | None) -> StructuralContent:
    """Collect texts, numeric values and object types from a canvas.

    Never raises: malformed input yields empty content, since structural
    content only adds to the visual description.
    """
    if canvas is None:
        return StructuralContent()

    if isinstance(canvas, str):
        try:
            canvas = json.loads(canvas)
        except ValueError as e:
            logger.warning(f"Canvas JSON could not be parsed: {e}")
            return StructuralContent()

    if not isinstance(canvas, dict):
        logger.warning("Canvas JSON is not an object")
        return StructuralContent()

    texts: list[str] = []
    numbers: list[str] = []
    object_types: list[str] = []

    for obj in _walk(canvas.get("objects")):
        if obj.get("name") in _WORKSPACE_NAMES:
            continue

        obj_type = str(obj.get("type", "")).strip().lower()
        if obj_type:
            object_types.append(obj_type)

        if obj_type in TEXT_TYPES:
            text = obj.get("text")
            if isinstance(text, str) and text.strip():
                texts.append(text.strip())
                numbers.extend(match.strip() for match in _NUMBER.findall(text))

    return StructuralContent(
        texts=_dedupe(texts),
        numbers=_dedupe(numbers),
        object_types=_dedupe(object_types),
    )
