"""
Pytest configuration and shared fixtures.

Key fixtures:
- now: Fixed reference instant (2026-03-15 12:00 UTC)
- clock: Callable returning `now`, injected into the engine
- store: Empty InMemoryDealStore with no synthetic latency
- engine: PipelineEngine over `store` using `clock`
- make_deal: Factory for Deal records with sensible defaults
"""

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add src to path for imports
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from dotenv import load_dotenv

env_file = Path(__file__).parent.parent / '.env'
if env_file.exists():
    load_dotenv(env_file)

from deal_pipeline.engine import PipelineEngine
from deal_pipeline.models.deal import Deal, DealStage
from deal_pipeline.policy import default_probability
from deal_pipeline.repository import InMemoryDealStore


NOW = datetime(2026, 3, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    """Fixed reference instant for deterministic timestamps."""
    return NOW


@pytest.fixture
def clock(now):
    """Clock returning the fixed reference instant."""
    return lambda: now


@pytest.fixture
def store() -> InMemoryDealStore:
    """Empty in-memory store without synthetic latency."""
    return InMemoryDealStore(latency_ms=(0, 0))


@pytest.fixture
def engine(store, clock) -> PipelineEngine:
    """Pipeline engine over the in-memory store with a fixed clock."""
    return PipelineEngine(store, clock=clock, close_window_days=30)


@pytest.fixture
def make_deal():
    """Factory building Deal records; probability follows the stage by default."""

    def _make(
        deal_id: int = 1,
        value: float = 1000.0,
        stage: DealStage = DealStage.LEAD,
        expected_close_date: datetime | None = None,
        **overrides,
    ) -> Deal:
        fields = {
            'id': deal_id,
            'name': f'Deal {deal_id}',
            'company': 'Acme Corp',
            'contact_id': 1,
            'contact_name': 'Jane Smith',
            'value': value,
            'stage': stage,
            'probability': default_probability(stage),
            'expected_close_date': expected_close_date,
            'created_at': NOW,
            'last_activity': NOW,
        }
        fields.update(overrides)
        return Deal(**fields)

    return _make
