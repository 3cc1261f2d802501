"""Path utilities for cross-platform file operations."""

import re
import string
from pathlib import Path

REPORT_SUFFIX = ".layout.json"


def sanitize_for_filesystem(name: str, replacement: str = "_") -> str:
    """Sanitize a string to be safe for use as a filename."""
    if not name:
        return "unnamed"

    valid_chars = set(string.ascii_letters + string.digits + "_-.")
    sanitized = "".join(c if c in valid_chars else replacement for c in name)

    # Collapse runs of the replacement character
    if replacement:
        sanitized = re.sub(re.escape(replacement) + "+", replacement, sanitized)
        sanitized = sanitized.strip(replacement)

    if not sanitized or set(sanitized) <= {"."}:
        sanitized = "unnamed"

    # Leave room for the report suffix
    if len(sanitized) > 200:
        sanitized = sanitized[:200].rstrip(replacement)

    return sanitized


def create_report_filename(source_path: Path) -> str:
    """Report filename for a source file: ``<stem>.layout.json``."""
    return f"{sanitize_for_filesystem(source_path.stem)}{REPORT_SUFFIX}"
