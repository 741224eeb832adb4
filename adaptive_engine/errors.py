"""
Exception taxonomy for the adaptive content engine.

Philosophy:
- Content-authoring bugs fail fast and loudly
- Running out of questions is a normal outcome, not an exception
  (see ``adaptive_engine.session.NoQuestionAvailable``)
- Missing atom sessions are logged and turn into no-ops
"""


class AdaptiveEngineError(Exception):
    """Base class for every error raised by the engine."""
    pass


class TemplateError(AdaptiveEngineError):
    """A template has a malformed formula, slot reference or definition."""
    pass


class DistractorExhaustionError(AdaptiveEngineError):
    """Not enough distinct wrong answers could be produced for a question."""

    def __init__(self, template_id: str, seed: int, wanted: int, produced: int):
        self.template_id = template_id
        self.seed = seed
        self.wanted = wanted
        self.produced = produced
        super().__init__(
            f"Template '{template_id}' (seed {seed}) produced {produced} of "
            f"{wanted} distinct distractors"
        )
