"""Defensive parsing of JSON embedded in generated text."""

import json
import re
from typing import Any

from hearth.core.errors import MalformedUpstreamResponse

_FENCE = re.compile(r"```(?:json)?\s*\n?|\n?```", re.IGNORECASE)


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences (```json ... ```) around a payload."""
    return _FENCE.sub("", text or "").strip()


def extract_json(text: str) -> Any:
    """Parse the first well-formed JSON object or array in ``text``.

    The whole cleaned text is tried first; failing that, each ``[`` or ``{``
    is tried as the start of a fragment, left to right.

    Raises:
        MalformedUpstreamResponse: If no JSON fragment can be decoded
    """
    cleaned = strip_code_fences(text)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        pass

    decoder = json.JSONDecoder()
    for match in re.finditer(r"[\[{]", cleaned):
        try:
            value, _ = decoder.raw_decode(cleaned, match.start())
        except json.JSONDecodeError:
            continue
        return value

    preview = cleaned[:200]
    raise MalformedUpstreamResponse(f"No JSON found in generated text: {preview!r}")
