"""Utility helpers."""

from .path_utils import create_report_filename, sanitize_for_filesystem

__all__ = ["create_report_filename", "sanitize_for_filesystem"]
