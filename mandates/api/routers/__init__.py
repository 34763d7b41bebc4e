"""API routers for the decision register."""

from . import decisions
from . import revocations
from . import health

__all__ = [
    "decisions",
    "revocations",
    "health",
]
