"""Turn raw model output into typed results.

Models wrap JSON in code fences or surround it with prose. Every parser
here is total: on any failure it returns an empty value instead of raising,
so callers decide what "no usable output" means.
"""

import json
import math
import re
from typing import Any

from canvas_search.logging_config import get_logger

logger = get_logger(__name__)

_CODE_FENCE = re.compile(r"```[A-Za-z0-9_-]*\s*|\s*```")
_JSON_ARRAY = re.compile(r"\[.*\]", re.DOTALL)
_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


def strip_code_fences(text: str) -> str:
    """Remove ``` and ```json fence markers anywhere in the text."""
    return _CODE_FENCE.sub("", text).strip()


def extract_json(text: str) -> Any:
    """Parse the first JSON array or object found in a model response.

    Returns:
        The parsed value, or None when nothing parseable is found.
    """
    if not text or not text.strip():
        return None

    cleaned = strip_code_fences(text)
    try:
        return json.loads(cleaned)
    except ValueError:
        pass

    for pattern in (_JSON_ARRAY, _JSON_OBJECT):
        match = pattern.search(cleaned)
        if match is None:
            continue
        try:
            return json.loads(match.group(0))
        except ValueError:
            continue

    return None


def parse_description(text: str) -> str:
    """Extract the ``description`` field from a model response.

    Returns:
        The stripped description, or "" when absent or unparseable.
    """
    data = extract_json(text)
    if not isinstance(data, dict):
        return ""
    description = data.get("description")
    if not isinstance(description, str):
        return ""
    return description.strip()


def _to_score(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        score = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(score) or math.isinf(score):
        return None
    return score


def parse_ranked_results(text: str) -> list[tuple[str, float | None]]:
    """Parse a re-ranking response into ``(id, similarity)`` pairs.

    Accepts a bare JSON array or an object wrapping one under ``results``.
    Items without an id are skipped; a missing or non-numeric similarity
    is returned as None.

    Returns:
        Pairs in model order, or an empty list on any parse failure.
    """
    data = extract_json(text)
    if isinstance(data, dict):
        data = data.get("results")
    if not isinstance(data, list):
        logger.debug("Re-rank response is not a JSON array")
        return []

    ranked: list[tuple[str, float | None]] = []
    for item in data:
        if not isinstance(item, dict):
            continue
        project_id = item.get("id")
        if project_id is None or isinstance(project_id, (dict, list)):
            continue
        project_id = str(project_id).strip()
        if not project_id:
            continue
        ranked.append((project_id, _to_score(item.get("similarity"))))

    return ranked
