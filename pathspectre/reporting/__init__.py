"""Reporting module for pathspectre."""

from pathspectre.reporting.formatters import (
    Formatter,
    JSONFormatter,
    TextFormatter,
    format_result,
)

__all__ = [
    "Formatter",
    "TextFormatter",
    "JSONFormatter",
    "format_result",
]
