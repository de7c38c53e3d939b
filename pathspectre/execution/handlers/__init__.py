"""Transfer handlers.
This module imports all node handlers to ensure they are registered
with the global dispatcher when the module is loaded.
"""
from pathspectre.execution.handlers import (
    assignment,
    branches,
    flow,
)
__all__ = [
    "assignment",
    "branches",
    "flow",
]
