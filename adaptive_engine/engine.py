"""
Adaptive Content Engine facade.

Wires the components into the learning loop:

    next_atom -> record_answer (repeat) -> adapt_atom -> finish_atom
    ... later ... suggest_starting_difficulty(history)

Each component can still be used on its own; the facade only owns the
construction order and the atom id scheme (``{session_id}/{question_id}``,
so the same question served to two sessions gets two atom sessions).
"""
from __future__ import annotations

from typing import Optional

from loguru import logger

from adaptive_engine.adaptive.atom_difficulty_advisor import AtomDifficultyAdvisor
from adaptive_engine.adaptive.difficulty_suggester import DifficultySuggester
from adaptive_engine.adaptive.in_session_manager import InSessionAdaptiveManager
from adaptive_engine.adaptive.models import (
    AtomInteractionMetrics,
    AtomPerformanceRecord,
    DifficultyAdjustment,
    DifficultyLevel,
    HistoricalPerformanceMetrics,
    LearningAtom,
    SessionContext,
)
from adaptive_engine.config import Settings, get_settings
from adaptive_engine.content.compiler import QuestionCompiler
from adaptive_engine.content.question_pool import QuestionPool
from adaptive_engine.content.template_loader import build_template_registry
from adaptive_engine.session.exposure_tracker import NoQuestionAvailable, SessionExposureTracker
from adaptive_engine.state.keyed_store import KeyedStateStore


class AdaptiveContentEngine:
    """One object per process (or per test) holding all engine state."""

    def __init__(
        self,
        pool: QuestionPool,
        tracker: SessionExposureTracker,
        manager: InSessionAdaptiveManager,
        suggester: Optional[DifficultySuggester] = None,
        advisor: Optional[AtomDifficultyAdvisor] = None,
        settings: Optional[Settings] = None,
    ):
        self.pool = pool
        self.tracker = tracker
        self.manager = manager
        self.suggester = suggester or DifficultySuggester()
        self.advisor = advisor or AtomDifficultyAdvisor()
        self.settings = settings or get_settings()

    # ========================================
    # Learning Loop
    # ========================================

    def next_atom(
        self,
        subject: str,
        skill_area: str,
        session_id: str,
        difficulty_level: int,
        atom_difficulty: DifficultyLevel = DifficultyLevel.MEDIUM,
    ) -> LearningAtom | NoQuestionAvailable:
        """Serve the next unseen question as an atom and open its atom session."""
        question = self.tracker.next_question(subject, skill_area, session_id, difficulty_level)
        if isinstance(question, NoQuestionAvailable):
            return question

        atom = LearningAtom.from_question(
            question, difficulty=atom_difficulty, atom_id=f"{session_id}/{question.id}"
        )
        self.manager.start_atom_session(atom.id)
        return atom

    def record_answer(
        self,
        atom_id: str,
        is_correct: bool,
        response_time_seconds: float,
        hints_used: int = 0,
    ) -> Optional[AtomInteractionMetrics]:
        return self.manager.record_atom_interaction(
            atom_id, is_correct, response_time_seconds, hints_used
        )

    def adapt_atom(self, atom: LearningAtom) -> Optional[LearningAtom]:
        """
        Return an adapted variant if the live metrics call for one.

        ``atom`` may be the served atom or a variant of it: decisions always
        read the root atom's metrics (the variant's ``source_atom_id``),
        and no variant is issued twice in a row for the same difficulty.
        """
        source_atom_id = atom.content.data.get("source_atom_id", atom.id)
        decision = self.manager.should_adapt_difficulty(source_atom_id)
        if not decision.should_adapt or decision.new_difficulty is None:
            return None

        metrics = self.manager.get_session_summary(source_atom_id)
        already_issued = metrics is not None and metrics.adapted_difficulty == decision.new_difficulty
        if already_issued or atom.variant_id == f"adaptive-{decision.new_difficulty.value}":
            logger.debug(f"Atom {source_atom_id} already adapted to {decision.new_difficulty.value}")
            return None
        return self.manager.generate_adaptive_variant(
            atom, decision.new_difficulty, decision.content_modifications
        )

    def finish_atom(self, atom_id: str) -> Optional[AtomPerformanceRecord]:
        return self.manager.end_atom_session(atom_id)

    def end_session(self, subject: str, skill_area: str, session_id: str) -> bool:
        return self.tracker.end_session(subject, skill_area, session_id)

    # ========================================
    # Cross-Session
    # ========================================

    def suggest_starting_difficulty(
        self,
        current_difficulty: int,
        metrics: HistoricalPerformanceMetrics,
        context: Optional[SessionContext] = None,
    ) -> DifficultyAdjustment:
        return self.suggester.suggest(current_difficulty, metrics, context)

    # ========================================
    # Housekeeping
    # ========================================

    def sweep_idle(self) -> int:
        """Evict abandoned atom and exposure records. No-op when disabled."""
        max_idle = self.settings.idle_eviction_seconds
        if max_idle <= 0:
            return 0
        evicted = len(self.manager.evict_idle_sessions(max_idle))
        evicted += len(self.tracker.evict_idle_sessions(max_idle))
        return evicted


def build_engine(settings: Optional[Settings] = None) -> AdaptiveContentEngine:
    """Build and precompile a complete engine from settings."""
    settings = settings or get_settings()

    registry = build_template_registry(settings)
    compiler = QuestionCompiler(
        distractor_count=settings.distractor_count,
        max_backfill_offset=settings.max_backfill_offset,
    )
    pool = QuestionPool(
        registry,
        compiler,
        batch_size=settings.precompile_batch_size,
        wildcard_skill_area=settings.wildcard_skill_area,
    )
    pool.precompile()

    tracker = SessionExposureTracker(
        pool, store=KeyedStateStore(name="exposure", stripes=settings.lock_stripes)
    )
    manager = InSessionAdaptiveManager(
        store=KeyedStateStore(name="atom", stripes=settings.lock_stripes),
        settings=settings,
    )
    return AdaptiveContentEngine(pool, tracker, manager, settings=settings)
