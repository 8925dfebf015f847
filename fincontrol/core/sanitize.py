"""Free-text sanitization applied before any text reaches storage."""

import re

_ANGLE_BRACKETS = re.compile(r"[<>]")
_JS_SCHEME = re.compile(r"javascript:", re.IGNORECASE)
_EVENT_HANDLER = re.compile(r"on\w+=", re.IGNORECASE)
# C0 controls except \t \n \r, plus DEL and C1.
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")


def sanitize_text(text: str | None) -> str | None:
    """Strip markup and control characters from user or model supplied text.

    Never rejects input; only rewrites it. ``None`` is returned unchanged.
    """
    if text is None:
        return None
    cleaned = _ANGLE_BRACKETS.sub("", str(text))
    cleaned = _JS_SCHEME.sub("", cleaned)
    cleaned = _EVENT_HANDLER.sub("", cleaned)
    cleaned = _CONTROL_CHARS.sub("", cleaned)
    return cleaned.strip()
