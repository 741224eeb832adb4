"""
Session Exposure Tracker.

Hands out precompiled questions per (subject, skill_area, session_id)
without repeats. Selection policy: the first unseen question in pool
order (templates in registration order, then seed). Pick-and-record
happens under the session key's lock, so two concurrent callers on the
same key never receive the same question id.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NamedTuple

from loguru import logger

from adaptive_engine.content.models import CompiledQuestion
from adaptive_engine.content.question_pool import QuestionPool
from adaptive_engine.state.keyed_store import KeyedStateStore


class SessionKey(NamedTuple):
    subject: str
    skill_area: str
    session_id: str


@dataclass(frozen=True)
class NoQuestionAvailable:
    """
    Returned (never raised) when a session has seen every matching question.

    Falsy, so callers can write ``if not result:`` and then decide whether
    to widen the difficulty filter or allow reuse.
    """

    key: SessionKey
    difficulty_level: int
    candidates: int  # matching questions in the pool, all already served

    def __bool__(self) -> bool:
        return False


class SessionExposureTracker:
    """Serves questions from a QuestionPool with per-session no-repeat guarantees."""

    def __init__(
        self,
        pool: QuestionPool,
        store: KeyedStateStore[SessionKey, set[str]] | None = None,
    ):
        self.pool = pool
        self.store = store if store is not None else KeyedStateStore(name="exposure")

    def next_question(
        self,
        subject: str,
        skill_area: str,
        session_id: str,
        difficulty_level: int,
    ) -> CompiledQuestion | NoQuestionAvailable:
        key = SessionKey(subject, skill_area, session_id)

        with self.store.locked(key):
            served, created = self.store.get_or_create(key, set)
            if created:
                logger.debug(f"Opened exposure set for {key}")

            candidates = 0
            for question in self.pool.questions_for(subject, skill_area, difficulty_level):
                candidates += 1
                if question.id in served:
                    continue
                served.add(question.id)
                self.store.touch(key)
                return question

            self.store.touch(key)

        logger.info(
            f"No unseen question for session {session_id} "
            f"({subject}/{skill_area}, level <= {difficulty_level}, {candidates} candidates)"
        )
        return NoQuestionAvailable(key=key, difficulty_level=difficulty_level, candidates=candidates)

    def served_ids(self, subject: str, skill_area: str, session_id: str) -> frozenset[str]:
        key = SessionKey(subject, skill_area, session_id)
        with self.store.locked(key):
            return frozenset(self.store.get(key) or ())

    def end_session(self, subject: str, skill_area: str, session_id: str) -> bool:
        """Discard a session's exposure set. Returns False if it never existed."""
        key = SessionKey(subject, skill_area, session_id)
        with self.store.locked(key):
            served = self.store.pop(key)
        if served is None:
            logger.debug(f"end_session for unknown session {key}")
            return False
        logger.debug(f"Closed exposure set for {key} after {len(served)} question(s)")
        return True

    @property
    def active_sessions(self) -> int:
        return len(self.store)

    def evict_idle_sessions(self, max_idle_seconds: float) -> list[SessionKey]:
        return self.store.evict_idle(max_idle_seconds)

    def statistics(self) -> dict[str, Any]:
        stats = self.pool.statistics().to_dict()
        stats["active_sessions"] = self.active_sessions
        return stats
