"""FastAPI dependencies."""

from __future__ import annotations

from aparajita.core.config import settings
from aparajita.services.engine import SafetyEngine, create_engine

_engine: SafetyEngine | None = None


def get_engine() -> SafetyEngine:
    """Return the process-wide safety engine, building it on first use."""
    global _engine
    if _engine is None:
        _engine = create_engine(settings)
    return _engine
