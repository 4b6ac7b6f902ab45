import json
import re
from typing import Any

_FENCE_RE = re.compile(r"```(?:json|JSON)?\n?")


def strip_code_fences(text: str) -> str:
    """Remove markdown fences (```json ... ``` or ``` ... ```) around a model reply."""
    text = _FENCE_RE.sub("", text).strip()
    return text.rstrip("`").strip()


def parse_json_response(text: str) -> Any:
    """
    Parse JSON from an AI response.
    Handles markdown code fences and commentary around a JSON object.
    Raises ValueError if nothing parseable can be recovered.
    """
    text = strip_code_fences(text)

    try:
        return json.loads(text)
    except json.JSONDecodeError:
        # Fallback: extract the outermost {...} block from the string
        match = re.search(r"\{.*\}", text, re.DOTALL)
        if not match:
            raise ValueError(f"Could not parse AI response as JSON. Raw response:\n{text[:500]}")
        try:
            return json.loads(match.group())
        except json.JSONDecodeError as e:
            raise ValueError(f"Could not parse AI response as JSON: {e}") from e
