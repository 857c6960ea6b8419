import json
import re

_FENCE_RE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)


def find_balanced_span(text: str) -> str | None:
    """Return the first balanced ``{...}`` or ``[...]`` span in ``text``.

    Brackets inside JSON string literals are ignored.
    """
    closing = {"{": "}", "[": "]"}
    offset = 0
    while offset < len(text):
        start = -1
        stack: list[str] = []
        in_string = False
        escaped = False
        restart = None

        for i in range(offset, len(text)):
            ch = text[i]
            if start < 0:
                if ch in closing:
                    start = i
                    stack.append(closing[ch])
                continue

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
            elif ch in closing:
                stack.append(closing[ch])
            elif ch in "}]":
                if ch != stack[-1]:
                    # Mismatched bracket: rescan from just after this opener
                    restart = start + 1
                    break
                stack.pop()
                if not stack:
                    return text[start:i + 1]

        if restart is None:
            return None
        offset = restart
    return None


def parse_json_payload(text: str | None) -> dict | list | None:
    """Parse the JSON object or array embedded in a model reply.

    Tolerates markdown fences and surrounding prose. Returns None when
    nothing parseable is found.
    """
    if not text:
        return None

    stripped = _FENCE_RE.sub("", text).strip().rstrip("`").strip()
    try:
        obj = json.loads(stripped)
        if isinstance(obj, (dict, list)):
            return obj
    except (json.JSONDecodeError, ValueError):
        pass

    remaining = stripped
    while remaining:
        span = find_balanced_span(remaining)
        if span is None:
            return None
        try:
            return json.loads(span)
        except (json.JSONDecodeError, ValueError):
            remaining = remaining[remaining.index(span) + 1:]
    return None
