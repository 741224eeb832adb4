"""
Adaptive difficulty.

In-session: InSessionAdaptiveManager reacts to each answer on an atom.
Cross-session: DifficultySuggester picks the next session's starting level.
Per atom: AtomDifficultyAdvisor picks easy/medium/hard for the next atom.
"""

from adaptive_engine.adaptive.atom_difficulty_advisor import (
    AtomDifficultyAdvisor,
    ObjectiveProgress,
)
from adaptive_engine.adaptive.difficulty_suggester import DifficultySuggester
from adaptive_engine.adaptive.in_session_manager import InSessionAdaptiveManager
from adaptive_engine.adaptive.models import (
    AdaptationDecision,
    AdjustmentDirection,
    AtomContent,
    AtomInteractionMetrics,
    AtomPerformanceRecord,
    ContentModifications,
    DifficultyAdjustment,
    DifficultyLevel,
    EncouragementStrategy,
    HistoricalPerformanceMetrics,
    LearningAtom,
    RealtimeAdjustment,
    SessionContext,
)

__all__ = [
    # Managers
    "AtomDifficultyAdvisor",
    "DifficultySuggester",
    "InSessionAdaptiveManager",
    # Models
    "AdaptationDecision",
    "AdjustmentDirection",
    "AtomContent",
    "AtomInteractionMetrics",
    "AtomPerformanceRecord",
    "ContentModifications",
    "DifficultyAdjustment",
    "DifficultyLevel",
    "EncouragementStrategy",
    "HistoricalPerformanceMetrics",
    "LearningAtom",
    "ObjectiveProgress",
    "RealtimeAdjustment",
    "SessionContext",
]
