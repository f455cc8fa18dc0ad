"""Error message sanitization to prevent local path leakage."""

from __future__ import annotations

import os


def sanitize_error(message: str) -> str:
    """Replace the user's home directory in error messages."""
    if not message:
        return message

    sanitized = message
    home = os.environ.get("USERPROFILE") or os.environ.get("HOME") or ""
    if home and home != os.sep:
        sanitized = sanitized.replace(home, "~")

    return sanitized
