# =============================================================================
# File: log_sanitizer.py
# Date: 2026-10-19
# Copyright (c) 2024 Goutam Malakar. All rights reserved.
# =============================================================================

import re
from typing import Any, Sequence

_CONTROL_CHARS = re.compile(r"[\r\n\t\x00-\x1f\x7f-\x9f]")


def sanitize_for_log(value: Any, max_length: int = 200) -> str:
    """
    Make a caller-supplied value safe to interpolate into a log line.

    Args:
        value: Model name, task prefix or other user input
        max_length: Longest string emitted; longer values end in "..."

    Returns:
        str: Single-line string without control characters
    """
    if value is None:
        return "None"

    sanitized = _CONTROL_CHARS.sub("_", str(value))
    if len(sanitized) > max_length:
        sanitized = sanitized[: max_length - 3] + "..."
    return sanitized


def preview_texts(texts: Sequence[str], max_items: int = 3, max_length: int = 40) -> str:
    """Short one-line preview of an input batch for debug logs."""
    shown = [repr(sanitize_for_log(t, max_length)) for t in texts[:max_items]]
    if len(texts) > max_items:
        shown.append(f"... (+{len(texts) - max_items} more)")
    return "[" + ", ".join(shown) + "]"
