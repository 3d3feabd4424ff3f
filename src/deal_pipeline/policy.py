"""
Stage policy for the deal pipeline.

Pure lookups with no side effects: the canonical stage order, the default
win probability for each stage, and which transitions are allowed.

Two deliberately different behaviors live here:
- default_probability() is lenient and falls back to 25 for any stage it
  does not know, so it never raises.
- parse_stage() and parse_pipeline_stage() are strict and raise InvalidStageError;
  every write path in the engine goes through one of them.
"""

from typing import Any

from .errors import InvalidStageError
from .models.deal import DealStage

# Canonical pipeline order (board columns and funnel rows follow it)
PIPELINE_STAGES: list[DealStage] = [
    DealStage.LEAD,
    DealStage.QUALIFIED,
    DealStage.PROPOSAL,
    DealStage.CLOSED_WON,
]

# Every stage a deal may hold, including the API-only Closed Lost
KNOWN_STAGES: list[DealStage] = [*PIPELINE_STAGES, DealStage.CLOSED_LOST]

CLOSED_STAGES: frozenset[DealStage] = frozenset(
    {DealStage.CLOSED_WON, DealStage.CLOSED_LOST}
)

DEFAULT_PROBABILITIES: dict[DealStage, int] = {
    DealStage.LEAD: 25,
    DealStage.QUALIFIED: 50,
    DealStage.PROPOSAL: 75,
    DealStage.CLOSED_WON: 100,
}

FALLBACK_PROBABILITY = 25


def _lookup(stage: Any) -> DealStage | None:
    if isinstance(stage, DealStage):
        return stage
    try:
        return DealStage(stage)
    except (ValueError, TypeError):
        return None


def default_probability(stage: Any) -> int:
    """
    Default win probability for a stage.

    Args:
        stage: DealStage or its string value; anything else is accepted

    Returns:
        Percent 0-100. Unknown stages (and Closed Lost) get FALLBACK_PROBABILITY.
    """
    known = _lookup(stage)
    if known is None:
        return FALLBACK_PROBABILITY
    return DEFAULT_PROBABILITIES.get(known, FALLBACK_PROBABILITY)


def is_valid_stage(stage: Any) -> bool:
    """True iff stage is one of the four canonical pipeline stages."""
    return _lookup(stage) in PIPELINE_STAGES


def parse_stage(stage: Any) -> DealStage:
    """
    Resolve a stage value for a write.

    Raises:
        InvalidStageError: If stage is not a known stage
    """
    known = _lookup(stage)
    if known is None:
        raise InvalidStageError(
            f"Invalid stage: {stage!r}",
            context={'stage': stage, 'allowed': [s.value for s in KNOWN_STAGES]},
        )
    return known


def parse_pipeline_stage(stage: Any) -> DealStage:
    """
    Resolve a stage value for a board move or a new deal.

    Only the four canonical stages are accepted; Closed Lost is reachable
    through update_deal alone.

    Raises:
        InvalidStageError: If stage is not a canonical pipeline stage
    """
    known = _lookup(stage)
    if known not in PIPELINE_STAGES:
        raise InvalidStageError(
            f"Invalid pipeline stage: {stage!r}",
            context={'stage': stage, 'allowed': [s.value for s in PIPELINE_STAGES]},
        )
    return known


def allowed_transitions(stage: Any) -> list[DealStage]:
    """
    Stages a deal may move to from stage.

    Transitions are unrestricted: any stage may move to any other, backward
    moves included, and closed stages are not terminal.
    """
    current = parse_stage(stage)
    return [s for s in KNOWN_STAGES if s != current]
