"""Fixture annotations and property-testing helpers.
``strategies`` needs the ``hypothesis`` package and is not imported here.
"""

from pathspectre.testing.annotations import (
    AnnotationError,
    ExpectedDecision,
    ExpectedStates,
    Mismatch,
    extract_comments,
    parse,
    verify,
)

__all__ = [
    "AnnotationError",
    "ExpectedDecision",
    "ExpectedStates",
    "Mismatch",
    "extract_comments",
    "parse",
    "verify",
]
