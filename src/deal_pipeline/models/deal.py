"""
Deal, DealCreate, and DealPatch models for the Deal Pipeline engine.

Deal is the record held by the deal store. DealCreate is the input accepted
when a deal is first added to the pipeline; DealPatch enumerates every field
an update may touch, and only fields explicitly set on a patch are applied.

Key design decisions:
- id is an integer assigned by the store, immutable thereafter (not patchable)
- value is always USD; there is no currency field
- contact_name is a denormalized snapshot and is never re-synced
- Naive datetimes are interpreted as UTC
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator


class DealStage(str, Enum):
    """Deal stage. Any stage may move to any other; none is terminal."""

    LEAD = 'Lead'
    QUALIFIED = 'Qualified'
    PROPOSAL = 'Proposal'
    CLOSED_WON = 'Closed Won'
    # Only reachable through direct update/move calls; the board never offers it
    CLOSED_LOST = 'Closed Lost'


def _as_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _strip(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


class Deal(BaseModel):
    """A sales opportunity tracked through the pipeline."""

    id: int = Field(..., description='Store-assigned identifier')
    name: str = Field(..., description='Descriptive deal name')
    company: str = Field(..., description='Company the deal is with')
    contact_id: int | None = Field(default=None, description='Referenced contact id')
    contact_name: str = Field(
        default='', description='Contact name captured when the deal was written'
    )
    value: float = Field(..., ge=0, description='Deal value in USD')
    stage: DealStage = Field(default=DealStage.LEAD, description='Current pipeline stage')
    probability: int = Field(..., ge=0, le=100, description='Win probability percent')
    expected_close_date: datetime | None = Field(
        default=None, description='Projected close date'
    )
    created_at: datetime = Field(..., description='When the deal was created')
    last_activity: datetime = Field(..., description='Last modification timestamp')
    notes: str = Field(default='', description='Free text notes')

    @field_validator('expected_close_date', 'created_at', 'last_activity')
    @classmethod
    def normalize_datetimes(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)

    @property
    def is_open(self) -> bool:
        """True while the deal has not exited the pipeline."""
        return self.stage not in (DealStage.CLOSED_WON, DealStage.CLOSED_LOST)

    def to_record(self) -> dict[str, Any]:
        """JSON-ready dict: stage as its display value, datetimes as ISO 8601."""
        return self.model_dump(mode='json')


class DealCreate(BaseModel):
    """Input for adding a deal to the pipeline."""

    name: str = Field(..., min_length=1, description='Descriptive deal name')
    company: str = Field(..., min_length=1, description='Company the deal is with')
    value: float = Field(..., gt=0, description='Deal value in USD')
    contact_id: int = Field(..., description='Referenced contact id')
    contact_name: str = Field(default='', description='Contact name snapshot')
    stage: DealStage = Field(default=DealStage.LEAD, description='Initial stage')
    expected_close_date: datetime | None = Field(
        default=None, description='Projected close date (defaults to a window after now)'
    )
    notes: str = Field(default='', description='Free text notes')

    @field_validator('name', 'company', 'contact_name', 'notes', mode='before')
    @classmethod
    def strip_text(cls, value: Any) -> Any:
        return _strip(value)

    @field_validator('expected_close_date')
    @classmethod
    def normalize_close_date(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)

    @field_validator('stage', mode='before')
    @classmethod
    def default_blank_stage(cls, value: Any) -> Any:
        # Blank or missing stage starts the deal at Lead
        if value is None or value == '':
            return DealStage.LEAD
        return value

    @field_validator('stage')
    @classmethod
    def reject_closed_lost(cls, value: DealStage) -> DealStage:
        if value == DealStage.CLOSED_LOST:
            raise ValueError('new deals must start in a pipeline stage')
        return value


class DealPatch(BaseModel):
    """
    Field-by-field update for an existing deal.

    Only fields explicitly set are applied:
    - name, company, notes: replaced (stripped)
    - value: replaced, must be >= 0
    - contact_id, contact_name: replaced independently
    - expected_close_date: replaced
    - stage: replaced; resets probability to the stage default when the stage
      changes and probability is not set on the same patch
    - probability: stored verbatim
    """

    name: str | None = Field(default=None, min_length=1)
    company: str | None = Field(default=None, min_length=1)
    contact_id: int | None = None
    contact_name: str | None = None
    value: float | None = Field(default=None, ge=0)
    stage: DealStage | None = None
    probability: int | None = Field(default=None, ge=0, le=100)
    expected_close_date: datetime | None = None
    notes: str | None = None

    model_config = {'extra': 'forbid'}

    @field_validator('name', 'company', 'contact_name', 'notes', mode='before')
    @classmethod
    def strip_text(cls, value: Any) -> Any:
        return _strip(value)

    @field_validator('expected_close_date')
    @classmethod
    def normalize_close_date(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)

    def changes(self) -> dict[str, Any]:
        """Fields explicitly set on this patch."""
        return {name: getattr(self, name) for name in self.model_fields_set}
