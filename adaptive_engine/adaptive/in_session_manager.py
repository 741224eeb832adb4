"""
In-Session Adaptive Difficulty Manager.

Tracks one learning atom at a time per ``atom_id`` and decides, from
streaks, timing and hint usage, whether the atom should be made easier
(scaffolding) or harder (extension challenge) while the learner is
still working on it.

Lifecycle per atom:
1. start_atom_session      -> zeroed metrics (no-op if already started)
2. record_atom_interaction -> once per answer
3. should_adapt_difficulty -> after each answer
4. generate_adaptive_variant on a positive decision
5. end_atom_session        -> AtomPerformanceRecord, record deleted

Struggle is checked before mastery: a learner showing both signals is
routed to support.
"""
from __future__ import annotations

import copy
from datetime import datetime, timezone
from typing import Callable, Optional

from loguru import logger

from adaptive_engine.adaptive.models import (
    AdaptationDecision,
    AtomContent,
    AtomInteractionMetrics,
    AtomPerformanceRecord,
    ContentModifications,
    DifficultyLevel,
    LearningAtom,
)
from adaptive_engine.config import Settings, get_settings
from adaptive_engine.state.keyed_store import KeyedStateStore

# =============================================================================
# Thresholds
# =============================================================================

SLOW_RESPONSE_SECONDS = 60
QUICK_RESPONSE_SECONDS = 10
EXCESSIVE_HINTS = 2
STRUGGLE_STREAK = 2  # consecutive incorrect answers
MASTERY_STREAK = 3  # consecutive correct answers
MIN_ATTEMPTS_TO_ADAPT = 2
INDICATORS_TO_ADAPT = 2

# Indicator tags
SLOW_RESPONSE = "slow_response"
EXCESSIVE_HINTS_USED = "excessive_hints"
CONSECUTIVE_INCORRECT = "multiple_consecutive_incorrect"
QUICK_CORRECT_RESPONSE = "quick_correct_response"
CONSECUTIVE_CORRECT = "multiple_consecutive_correct"

# =============================================================================
# Modification Copy
# =============================================================================

EASY_MODIFICATIONS = ContentModifications(
    simplified_instructions="Let's take this one step at a time.",
    additional_hints=[
        "Read the question again slowly and underline the numbers",
        "Think about what the question is really asking",
        "Split the problem into smaller pieces",
    ],
    scaffolding=[
        "Step 1: Write down what you already know",
        "Step 2: Decide what you need to find out",
        "Step 3: Pick the operation that connects them",
    ],
)

HARD_MODIFICATIONS = ContentModifications(
    advanced_challenges=[
        "Solve it again using a different method",
        "Explain in your own words why your method works",
        "What changes if one of the numbers doubles?",
    ],
)

EASY_REASON = "Learner is showing signs of struggle; adding step-by-step support"
HARD_REASON = "Learner is showing mastery; adding an extension challenge"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _copy_modifications(template: ContentModifications) -> ContentModifications:
    return ContentModifications(
        simplified_instructions=template.simplified_instructions,
        additional_hints=list(template.additional_hints),
        scaffolding=list(template.scaffolding),
        advanced_challenges=list(template.advanced_challenges),
    )


def _append_capped(indicators: list[str], tag: str, cap: int) -> None:
    indicators.append(tag)
    overflow = len(indicators) - cap
    if overflow > 0:
        del indicators[:overflow]


class InSessionAdaptiveManager:
    """
    Per-atom adaptive difficulty state machine.

    State lives in an injected KeyedStateStore so separate managers (and
    separate tests) never share records.
    """

    def __init__(
        self,
        store: Optional[KeyedStateStore[str, AtomInteractionMetrics]] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.settings = settings or get_settings()
        self.store = store if store is not None else KeyedStateStore(
            name="atom", stripes=self.settings.lock_stripes
        )
        self._clock = clock or _utc_now

    # ========================================
    # Session Lifecycle
    # ========================================

    def start_atom_session(self, atom_id: str) -> bool:
        """
        Create zeroed metrics for ``atom_id``.

        Returns:
            True if a new session was created, False if one already existed
            (accumulated metrics are kept).
        """
        with self.store.locked(atom_id):
            _, created = self.store.get_or_create(
                atom_id, lambda: AtomInteractionMetrics(atom_id=atom_id, started_at=self._clock())
            )

        if created:
            logger.debug(f"Started atom session {atom_id}")
        else:
            logger.info(f"Atom session {atom_id} already active; keeping existing metrics")
        return created

    def record_atom_interaction(
        self,
        atom_id: str,
        is_correct: bool,
        response_time_seconds: float,
        hints_used: int = 0,
    ) -> Optional[AtomInteractionMetrics]:
        """
        Record one answer.

        Args:
            atom_id: Atom being answered
            is_correct: Whether the answer was correct
            response_time_seconds: Time taken for this answer
            hints_used: Hints requested for this answer

        Returns:
            Snapshot of the updated metrics, or None if no session exists
        """
        if response_time_seconds < 0:
            raise ValueError(f"response_time_seconds must be >= 0, got {response_time_seconds}")
        if hints_used < 0:
            raise ValueError(f"hints_used must be >= 0, got {hints_used}")

        cap = self.settings.max_indicators_per_atom

        with self.store.locked(atom_id):
            metrics = self.store.get(atom_id)
            if metrics is None:
                logger.warning(f"No active session for atom {atom_id}; interaction ignored")
                return None

            metrics.total_attempts += 1
            metrics.total_response_time += response_time_seconds
            metrics.average_response_time = metrics.total_response_time / metrics.total_attempts
            metrics.hints_requested += hints_used

            if is_correct:
                metrics.consecutive_correct += 1
                metrics.consecutive_incorrect = 0

                if response_time_seconds < QUICK_RESPONSE_SECONDS and hints_used == 0:
                    _append_capped(metrics.mastery_indicators, QUICK_CORRECT_RESPONSE, cap)
                if metrics.consecutive_correct >= MASTERY_STREAK:
                    _append_capped(metrics.mastery_indicators, CONSECUTIVE_CORRECT, cap)
            else:
                metrics.consecutive_incorrect += 1
                metrics.consecutive_correct = 0

                if response_time_seconds > SLOW_RESPONSE_SECONDS:
                    _append_capped(metrics.struggling_indicators, SLOW_RESPONSE, cap)
                if hints_used > EXCESSIVE_HINTS:
                    _append_capped(metrics.struggling_indicators, EXCESSIVE_HINTS_USED, cap)
                if metrics.consecutive_incorrect >= STRUGGLE_STREAK:
                    _append_capped(metrics.struggling_indicators, CONSECUTIVE_INCORRECT, cap)

            self.store.touch(atom_id)
            snapshot = metrics.snapshot()

        logger.debug(
            f"Atom {atom_id}: attempt {snapshot.total_attempts} "
            f"{'correct' if is_correct else 'incorrect'} in {response_time_seconds:.1f}s"
        )
        return snapshot

    def end_atom_session(self, atom_id: str) -> Optional[AtomPerformanceRecord]:
        """
        Reduce the live metrics to a performance record and delete them.

        ``success`` is ``consecutive_correct > 0 or total_attempts > 0``: any
        attempted atom counts as successful. Kept as-is for parity with
        stored history; see DESIGN.md.
        """
        with self.store.locked(atom_id):
            metrics = self.store.pop(atom_id)

        if metrics is None:
            logger.warning(f"No active session for atom {atom_id}; nothing to end")
            return None

        record = AtomPerformanceRecord(
            atom_id=atom_id,
            attempts=metrics.total_attempts,
            time_taken_seconds=metrics.total_response_time,
            hints_used=metrics.hints_requested,
            success=metrics.consecutive_correct > 0 or metrics.total_attempts > 0,
            first_attempt_success=metrics.total_attempts == 1 and metrics.consecutive_correct == 1,
            timestamp=self._clock().isoformat(),
        )
        logger.debug(f"Ended atom session {atom_id}: {record.attempts} attempt(s)")
        return record

    # ========================================
    # Adaptation
    # ========================================

    def should_adapt_difficulty(self, atom_id: str) -> AdaptationDecision:
        with self.store.locked(atom_id):
            metrics = self.store.get(atom_id)
            metrics = metrics.snapshot() if metrics is not None else None

        if metrics is None or metrics.total_attempts < MIN_ATTEMPTS_TO_ADAPT:
            return AdaptationDecision(should_adapt=False)

        if (
            len(metrics.struggling_indicators) >= INDICATORS_TO_ADAPT
            or metrics.consecutive_incorrect >= STRUGGLE_STREAK
        ):
            return AdaptationDecision(
                should_adapt=True,
                new_difficulty=DifficultyLevel.EASY,
                reason=EASY_REASON,
                content_modifications=_copy_modifications(EASY_MODIFICATIONS),
            )

        if (
            len(metrics.mastery_indicators) >= INDICATORS_TO_ADAPT
            or metrics.consecutive_correct >= MASTERY_STREAK
        ):
            return AdaptationDecision(
                should_adapt=True,
                new_difficulty=DifficultyLevel.HARD,
                reason=HARD_REASON,
                content_modifications=_copy_modifications(HARD_MODIFICATIONS),
            )

        return AdaptationDecision(should_adapt=False)

    def generate_adaptive_variant(
        self,
        original_atom: LearningAtom,
        target_difficulty: DifficultyLevel,
        modifications: ContentModifications,
    ) -> LearningAtom:
        """
        Build a new atom at ``target_difficulty``. The original is not touched.

        Adapting a variant again keeps ``source_atom_id`` on the root atom,
        whose live metrics record the difficulty last issued.

        Easy variants get the simplified instructions in front of the
        description; hard variants get a bonus-challenge line appended.
        """
        target_difficulty = DifficultyLevel(target_difficulty)
        now = self._clock()
        description = original_atom.content.description
        source_atom_id = original_atom.content.data.get("source_atom_id", original_atom.id)

        if target_difficulty == DifficultyLevel.EASY and modifications.simplified_instructions:
            description = f"{modifications.simplified_instructions}\n\n{description}"
        elif target_difficulty == DifficultyLevel.HARD and modifications.advanced_challenges:
            description = f"{description}\n\nBonus Challenge: {modifications.advanced_challenges[0]}"

        data = copy.deepcopy(original_atom.content.data)
        data.update(
            {
                "adaptive_modifications": modifications.to_dict(),
                "source_atom_id": source_atom_id,
                "original_difficulty": original_atom.difficulty.value,
                "adaptation_reason": (
                    f"Real-time adaptation to {target_difficulty.value} based on current performance"
                ),
                "adaptation_timestamp": now.isoformat(),
            }
        )

        variant = LearningAtom(
            id=f"{source_atom_id}-adapted-{target_difficulty.value}-{int(now.timestamp() * 1000)}",
            subject=original_atom.subject,
            difficulty=target_difficulty,
            content=AtomContent(description=description, data=data),
            variant_id=f"adaptive-{target_difficulty.value}",
        )

        with self.store.locked(source_atom_id):
            metrics = self.store.get(source_atom_id)
            if metrics is not None:
                metrics.adapted_difficulty = target_difficulty

        logger.info(
            f"Adapted atom {original_atom.id}: {original_atom.difficulty.value} -> {target_difficulty.value}"
        )
        return variant

    # ========================================
    # Inspection / Housekeeping
    # ========================================

    def get_session_summary(self, atom_id: str) -> Optional[AtomInteractionMetrics]:
        """Copy of the live metrics, or None."""
        with self.store.locked(atom_id):
            metrics = self.store.get(atom_id)
            return metrics.snapshot() if metrics is not None else None

    @property
    def active_atoms(self) -> list[str]:
        return self.store.keys()

    def evict_idle_sessions(self, max_idle_seconds: float) -> list[str]:
        """Drop atom sessions abandoned without end_atom_session."""
        return self.store.evict_idle(max_idle_seconds)

    def reset(self) -> None:
        count = self.store.clear()
        logger.info(f"Reset in-session manager ({count} active atom session(s) dropped)")
