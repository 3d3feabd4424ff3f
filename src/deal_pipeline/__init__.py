"""
Deal Pipeline Engine

Stage policy, stage-aware deal mutations, and pipeline analytics (funnel,
pipeline value, win rate, monthly closings) over an injected deal store.
"""

__version__ = '0.1.0'

from .config import Config, config
from .errors import (
    DealPipelineError,
    ValidationError,
    InvalidStageError,
    DealNotFoundError,
    StoreError,
    wrap_store_error,
)
from .logging import (
    configure_logging,
    get_logger,
    logging_context,
    PipelineTimer,
)
from .models import (
    Deal,
    DealCreate,
    DealPatch,
    DealStage,
    FunnelStage,
    PipelineSummary,
    PipelineReport,
)
from .policy import (
    PIPELINE_STAGES,
    CLOSED_STAGES,
    default_probability,
    is_valid_stage,
    parse_stage,
    parse_pipeline_stage,
    allowed_transitions,
)
from .repository import DealStore, InMemoryDealStore
from .analytics import compute_funnel, compute_summary
from .engine import PipelineEngine

__all__ = [
    # Version
    '__version__',
    # Config
    'Config',
    'config',
    # Engine
    'PipelineEngine',
    # Store
    'DealStore',
    'InMemoryDealStore',
    # Analytics
    'compute_funnel',
    'compute_summary',
    # Stage policy
    'PIPELINE_STAGES',
    'CLOSED_STAGES',
    'default_probability',
    'is_valid_stage',
    'parse_stage',
    'parse_pipeline_stage',
    'allowed_transitions',
    # Models
    'Deal',
    'DealCreate',
    'DealPatch',
    'DealStage',
    'FunnelStage',
    'PipelineSummary',
    'PipelineReport',
    # Logging
    'configure_logging',
    'get_logger',
    'logging_context',
    'PipelineTimer',
    # Errors
    'DealPipelineError',
    'ValidationError',
    'InvalidStageError',
    'DealNotFoundError',
    'StoreError',
    'wrap_store_error',
]
