"""
JSON Extraction from Free-Form AI Output

The model is asked for JSON but routinely wraps it in prose or markdown
fences, or trails off with commentary. We never trust the response shape.

Algorithm:
1. Scan for the first '{' or '[' and walk forward with a bracket stack,
   skipping over string literals, until the opening bracket is closed.
2. Try to parse that balanced substring.
3. If that fails (or nothing balanced was found), try the whole trimmed text.
4. If both fail, raise MalformedResponseError.

A greedy regex from the first '{' to the last '}' would swallow any
trailing braces in the commentary; the scan stops at the matching bracket.
"""

import json
from typing import Any, Optional


_CLOSERS = {"{": "}", "[": "]"}


class MalformedResponseError(Exception):
    """AI output could not be parsed into the expected structure."""

    def __init__(self, message: str, raw_text: Optional[str] = None):
        self.raw_text = raw_text
        super().__init__(message)


def find_balanced_json(text: str) -> Optional[str]:
    """
    Return the first balanced top-level {...} or [...] substring.

    Returns None if no opening bracket is found, if brackets are
    mismatched, or if the text ends before the structure closes.
    """
    start = None
    for i, ch in enumerate(text):
        if ch in _CLOSERS:
            start = i
            break
    if start is None:
        return None

    stack: list[str] = []
    in_string = False
    escaped = False

    for i in range(start, len(text)):
        ch = text[i]

        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch in _CLOSERS:
            stack.append(_CLOSERS[ch])
        elif ch in ("}", "]"):
            if not stack or stack.pop() != ch:
                return None
            if not stack:
                return text[start:i + 1]

    return None


def extract_json(text: Optional[str]) -> Any:
    """
    Parse the JSON payload embedded in an AI response.

    Raises:
        MalformedResponseError: If no parseable JSON could be found
    """
    if not text or not text.strip():
        raise MalformedResponseError("Empty response from AI", raw_text=text)

    candidate = find_balanced_json(text)
    if candidate is not None:
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            pass

    try:
        return json.loads(text.strip())
    except json.JSONDecodeError as e:
        raise MalformedResponseError(
            f"Invalid response format from AI: {e.msg}",
            raw_text=text,
        ) from e
