"""
Adaptive content engine.

- content: deterministic question compilation from templates
- session: per-session no-repeat question serving
- adaptive: in-session and cross-session difficulty decisions
"""

__version__ = "1.0.0"

from adaptive_engine.engine import AdaptiveContentEngine, build_engine
from adaptive_engine.errors import AdaptiveEngineError, DistractorExhaustionError, TemplateError

__all__ = [
    "AdaptiveContentEngine",
    "AdaptiveEngineError",
    "DistractorExhaustionError",
    "TemplateError",
    "build_engine",
]
