"""
Tests for Deal, DealCreate and DealPatch models.
"""

from datetime import datetime, timezone

import pydantic
import pytest

from deal_pipeline.models.deal import Deal, DealCreate, DealPatch, DealStage


class TestDealStage:
    """Test the stage enum."""

    def test_values_match_display_names(self):
        assert DealStage('Closed Won') is DealStage.CLOSED_WON
        assert DealStage.CLOSED_LOST.value == 'Closed Lost'
        assert DealStage.LEAD == 'Lead'


class TestDeal:
    """Test the Deal record."""

    def test_naive_datetimes_become_utc(self, make_deal):
        deal = make_deal(created_at=datetime(2026, 1, 1, 9, 0))

        assert deal.created_at.tzinfo == timezone.utc

    def test_is_open(self, make_deal):
        assert make_deal(stage=DealStage.PROPOSAL).is_open
        assert not make_deal(stage=DealStage.CLOSED_WON).is_open
        assert not make_deal(stage=DealStage.CLOSED_LOST).is_open

    def test_to_record_is_json_ready(self, make_deal, now):
        record = make_deal(stage=DealStage.CLOSED_WON, expected_close_date=now).to_record()

        assert record['stage'] == 'Closed Won'
        assert record['probability'] == 100
        assert record['expected_close_date'].startswith('2026-03-15T12:00:00')

    def test_rejects_out_of_range_probability(self, make_deal):
        with pytest.raises(pydantic.ValidationError):
            make_deal(probability=150)


class TestDealCreate:
    """Test create input normalization."""

    def test_strips_text(self):
        data = DealCreate(name='  Renewal ', company=' Globex ', value=10, contact_id=4)

        assert data.name == 'Renewal'
        assert data.company == 'Globex'
        assert data.stage == DealStage.LEAD

    def test_closed_lost_start_rejected(self):
        with pytest.raises(pydantic.ValidationError) as exc_info:
            DealCreate(name='A', company='B', value=1, contact_id=1, stage='Closed Lost')

        assert exc_info.value.errors()[0]['loc'] == ('stage',)

    def test_none_stage_defaults_to_lead(self):
        data = DealCreate(name='A', company='B', value=1, contact_id=1, stage=None)

        assert data.stage == DealStage.LEAD


class TestDealPatch:
    """Test patch field tracking."""

    def test_changes_only_set_fields(self):
        patch = DealPatch(stage='Proposal', notes=' call back ')

        assert patch.changes() == {'stage': DealStage.PROPOSAL, 'notes': 'call back'}

    def test_empty_patch(self):
        assert DealPatch().changes() == {}

    def test_explicit_none_is_tracked(self):
        assert DealPatch(expected_close_date=None).changes() == {'expected_close_date': None}

    def test_unknown_field_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            DealPatch(currency='EUR')
