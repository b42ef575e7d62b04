"""Normalize provider responses into JSON values.

This is the only place that knows how model text can be wrapped (markdown
fences, leading prose, truncation); agents never parse responses themselves.
"""

from __future__ import annotations

import json
import re

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```")


def extract_json(text: str) -> dict | list:
    """Extract a JSON value from a model response.

    Tries in order:
    1. Direct json.loads on the full text
    2. The contents of the first fenced code block
    3. First '{' to last '}'
    4. First '[' to last ']'
    5. Repair of a truncated object (missing closing braces/brackets)

    Raises:
        ValueError: when no JSON value can be recovered.
    """
    text = (text or "").strip()

    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError):
        pass

    fenced = _FENCE_RE.search(text)
    stripped = fenced.group(1).strip() if fenced else _strip_open_fence(text)
    if stripped != text:
        try:
            return json.loads(stripped)
        except json.JSONDecodeError:
            pass
        result = _extract_between(stripped, "{", "}")
        if result is not None:
            return result

    result = _extract_between(text, "{", "}")
    if result is not None:
        return result

    result = _extract_between(text, "[", "]")
    if result is not None:
        return result

    result = _try_repair_truncated(stripped)
    if result is not None:
        return result

    raise ValueError(f"Could not extract JSON from text: {text[:200]}...")


def _strip_open_fence(text: str) -> str:
    """Remove an unterminated opening fence (```json without a closing ```)."""
    lines = text.split("\n")
    if lines and lines[0].strip().startswith("```"):
        lines = lines[1:]
    while lines and lines[-1].strip() in ("```", ""):
        lines = lines[:-1]
    return "\n".join(lines).strip()


def _extract_between(text: str, opener: str, closer: str) -> dict | list | None:
    start = text.find(opener)
    end = text.rfind(closer)
    if start != -1 and end != -1 and end > start:
        try:
            return json.loads(text[start : end + 1])
        except json.JSONDecodeError:
            pass
    return None


def _try_repair_truncated(text: str) -> dict | None:
    """Close open braces/brackets of an object cut off at max_tokens."""
    start = text.find("{")
    if start == -1:
        return None

    candidate = text[start:]
    open_braces = candidate.count("{") - candidate.count("}")
    open_brackets = candidate.count("[") - candidate.count("]")
    if open_braces <= 0 and open_brackets <= 0:
        return None

    repaired = candidate.rstrip().rstrip(",")
    repaired += "]" * max(0, open_brackets) + "}" * max(0, open_braces)
    try:
        return json.loads(repaired)
    except json.JSONDecodeError:
        pass

    # Cut back to the last complete string value and close from there
    last_quote = candidate.rfind('"')
    if last_quote > 0:
        truncated = candidate[: last_quote + 1]
        ob = truncated.count("{") - truncated.count("}")
        ol = truncated.count("[") - truncated.count("]")
        if ob > 0 or ol > 0:
            repaired = truncated.rstrip().rstrip(",")
            repaired += "]" * max(0, ol) + "}" * max(0, ob)
            try:
                return json.loads(repaired)
            except json.JSONDecodeError:
                pass

    return None
