from __future__ import annotations

import json
from typing import Any, Dict

from .errors import MalformedResponseError


def extract_json_object(text: str) -> Dict[str, Any]:
    """
    Parse the JSON object spanning the first '{' to the last '}' of a model
    response, ignoring prose or markdown fences around it.
    """
    start = text.find("{") if text else -1
    end = text.rfind("}") if text else -1
    if start == -1 or end <= start:
        raise MalformedResponseError("No JSON object found in model response", text or "")
    snippet = text[start : end + 1]
    try:
        return json.loads(snippet)
    except json.JSONDecodeError as exc:
        raise MalformedResponseError(f"Model returned invalid JSON: {exc}", text) from exc
