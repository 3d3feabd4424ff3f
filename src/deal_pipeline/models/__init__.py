"""
Data models for the Deal Pipeline engine.

Provides the Deal record with its create/patch inputs, the stage enum, and
the analytics result types.
"""

from .deal import Deal, DealCreate, DealPatch, DealStage
from .analytics import FunnelStage, PipelineReport, PipelineSummary

__all__ = [
    # Deal records
    'Deal',
    'DealCreate',
    'DealPatch',
    'DealStage',
    # Analytics results
    'FunnelStage',
    'PipelineSummary',
    'PipelineReport',
]
