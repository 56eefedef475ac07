"""LLM response parsing utilities.

Tool-call arguments normally arrive as dicts, but some backends hand them
over as JSON text (sometimes fenced or wrapped in prose). These helpers
normalize both into a dict.
"""

import json
import re

from config.exceptions import ToolCallError

# Precompiled regex for JSON extraction
_JSON_FENCE_RE = re.compile(r"```(?:json)?\s*\n?(.*?)\n?\s*```", re.DOTALL)

# Lenient decoder that allows control characters (raw newlines, tabs) inside
# JSON strings; LLMs frequently produce these instead of proper \n escapes.
_LENIENT_DECODER = json.JSONDecoder(strict=False)


def _try_loads(text: str):
    """Try parsing JSON, first strictly then leniently."""
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    try:
        return _LENIENT_DECODER.decode(text)
    except json.JSONDecodeError:
        pass
    raise json.JSONDecodeError("", text, 0)


def _ensure_dict(result) -> dict:
    """Ensure the parsed JSON result is a dict.

    If we get a list, use the first dict element; otherwise wrap it.
    """
    if isinstance(result, dict):
        return result
    if isinstance(result, list):
        for item in result:
            if isinstance(item, dict):
                return item
        return {"items": result}
    return {"value": result}


def parse_json_response(text: str) -> dict:
    """Extract and parse JSON from LLM response text.

    Handles cases where JSON is wrapped in markdown code fences,
    and tolerates unescaped newlines inside JSON string values.

    Always returns a dict; lists are normalized via _ensure_dict.
    """
    text = text.strip()

    try:
        return _ensure_dict(_try_loads(text))
    except json.JSONDecodeError:
        pass

    match = _JSON_FENCE_RE.search(text)
    if match:
        try:
            return _ensure_dict(_try_loads(match.group(1).strip()))
        except json.JSONDecodeError:
            pass

    for start_char, end_char in [("{", "}"), ("[", "]")]:
        start = text.find(start_char)
        end = text.rfind(end_char)
        if start != -1 and end != -1 and end > start:
            try:
                return _ensure_dict(_try_loads(text[start:end + 1]))
            except json.JSONDecodeError:
                continue

    raise ValueError(f"Failed to parse JSON from LLM response: {text[:200]}...")


def coerce_tool_arguments(tool_name: str, raw) -> dict:
    """Return tool-call arguments as a dict.

    Raises:
        ToolCallError: If ``raw`` is neither a dict nor parseable JSON text.
    """
    if raw is None:
        return {}
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, str):
        if not raw.strip():
            return {}
        try:
            return parse_json_response(raw)
        except ValueError as e:
            raise ToolCallError(tool_name, f"Unparseable arguments for '{tool_name}'") from e
    raise ToolCallError(tool_name)
