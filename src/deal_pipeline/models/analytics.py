"""
Result models for pipeline analytics.

FunnelStage and PipelineSummary are the outputs of the pure analytics
functions; PipelineReport bundles both with the snapshot they came from.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from .deal import DealStage


class FunnelStage(BaseModel):
    """Per-stage aggregate used by the funnel visualization."""

    stage: DealStage = Field(..., description='Pipeline stage')
    count: int = Field(default=0, ge=0, description='Deals currently in the stage')
    total_value: float = Field(default=0.0, ge=0, description='Sum of deal values (USD)')


class PipelineSummary(BaseModel):
    """Headline pipeline metrics."""

    total_pipeline_value: float = Field(
        default=0.0, description='Sum of values of open deals'
    )
    active_deals_count: int = Field(default=0, description='Number of open deals')
    monthly_closed_deals_count: int = Field(
        default=0, description='Closed Won deals expected to close this calendar month'
    )
    monthly_closed_deals_value: float = Field(
        default=0.0, description='Value of Closed Won deals expected to close this month'
    )
    win_rate: int = Field(
        default=0, ge=0, le=100, description='Percent of closed deals that were won'
    )


class PipelineReport(BaseModel):
    """Funnel and summary computed from one store snapshot."""

    generated_at: datetime
    deal_count: int
    funnel: list[FunnelStage]
    summary: PipelineSummary
