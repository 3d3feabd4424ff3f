"""
Pipeline analytics: funnel projection and headline summary.

Both functions are pure. They read a deal snapshot, never mutate it, and
return freshly built results, so calling them twice on the same snapshot
yields equal output.
"""

import math
from collections.abc import Iterable
from datetime import datetime

from .models.analytics import FunnelStage, PipelineSummary
from .models.deal import Deal, DealStage
from .policy import CLOSED_STAGES, PIPELINE_STAGES


def compute_funnel(deals: Iterable[Deal]) -> list[FunnelStage]:
    """
    Per-stage count and total value in canonical pipeline order.

    Always returns one entry per pipeline stage (Lead, Qualified, Proposal,
    Closed Won) regardless of input order. Closed Lost deals are not part of
    the funnel.
    """
    counts = {stage: 0 for stage in PIPELINE_STAGES}
    totals = {stage: 0.0 for stage in PIPELINE_STAGES}
    for deal in deals:
        if deal.stage in counts:
            counts[deal.stage] += 1
            totals[deal.stage] += deal.value

    return [
        FunnelStage(stage=stage, count=counts[stage], total_value=totals[stage])
        for stage in PIPELINE_STAGES
    ]


def _same_month(close_date: datetime | None, now: datetime) -> bool:
    if close_date is None:
        return False
    if close_date.tzinfo is not None and now.tzinfo is not None:
        close_date = close_date.astimezone(now.tzinfo)
    return close_date.year == now.year and close_date.month == now.month


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compute_summary(deals: Iterable[Deal], now: datetime) -> PipelineSummary:
    """
    Headline metrics for a deal snapshot.

    Args:
        deals: Deal snapshot
        now: Reference instant; its calendar month defines "this month"

    Returns:
        PipelineSummary. win_rate is 0 when no deal is Closed Won or Closed Lost.
    """
    open_value = 0.0
    open_count = 0
    monthly_count = 0
    monthly_value = 0.0
    won = 0
    lost = 0

    for deal in deals:
        if deal.stage not in CLOSED_STAGES:
            open_value += deal.value
            open_count += 1
            continue

        if deal.stage == DealStage.CLOSED_WON:
            won += 1
            if _same_month(deal.expected_close_date, now):
                monthly_count += 1
                monthly_value += deal.value
        else:
            lost += 1

    closed = won + lost
    win_rate = _round_half_up(100 * won / closed) if closed else 0

    return PipelineSummary(
        total_pipeline_value=open_value,
        active_deals_count=open_count,
        monthly_closed_deals_count=monthly_count,
        monthly_closed_deals_value=monthly_value,
        win_rate=win_rate,
    )
