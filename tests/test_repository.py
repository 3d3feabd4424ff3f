"""
Tests for the in-memory deal store.

Run with: pytest tests/test_repository.py -v
"""

import pytest

from deal_pipeline.models.deal import DealStage
from deal_pipeline.repository import DealStore, InMemoryDealStore


class TestInMemoryDealStore:
    """Test CRUD behavior of InMemoryDealStore."""

    def test_satisfies_protocol(self, store):
        """The in-memory store implements the DealStore protocol."""
        assert isinstance(store, DealStore)

    @pytest.mark.asyncio
    async def test_create_assigns_next_id(self, store, make_deal):
        """Ids are max(existing) + 1; the incoming id is ignored."""
        first = await store.create(make_deal(deal_id=99))
        second = await store.create(make_deal(deal_id=99))

        assert first.id == 1
        assert second.id == 2

    @pytest.mark.asyncio
    async def test_ids_continue_after_seed(self, make_deal):
        """Seeded records determine the next id."""
        store = InMemoryDealStore([make_deal(deal_id=5), make_deal(deal_id=3)], latency_ms=(0, 0))

        created = await store.create(make_deal())

        assert created.id == 6
        assert len(store) == 3

    @pytest.mark.asyncio
    async def test_list_newest_first(self, store, make_deal):
        """Newly created deals are listed first."""
        await store.create(make_deal(name='Older'))
        await store.create(make_deal(name='Newer'))

        names = [deal.name for deal in await store.list()]

        assert names == ['Newer', 'Older']

    @pytest.mark.asyncio
    async def test_list_by_stage(self, store, make_deal):
        """list(stage) filters to deals in that stage."""
        await store.create(make_deal(stage=DealStage.LEAD))
        await store.create(make_deal(stage=DealStage.PROPOSAL))
        await store.create(make_deal(stage=DealStage.LEAD))

        leads = await store.list(DealStage.LEAD)

        assert len(leads) == 2
        assert all(deal.stage == DealStage.LEAD for deal in leads)

    @pytest.mark.asyncio
    async def test_returns_copies(self, store, make_deal):
        """Mutating a returned record does not change stored state."""
        created = await store.create(make_deal(value=500.0))
        created.value = 1.0

        fetched = await store.get(created.id)
        fetched.name = 'Changed'
        listed = await store.list()

        assert fetched.value == 500.0
        assert listed[0].name == 'Deal 1'

    @pytest.mark.asyncio
    async def test_seed_is_copied(self, make_deal):
        """Seed records are copied on construction."""
        seed = make_deal(value=10.0)
        store = InMemoryDealStore([seed], latency_ms=(0, 0))
        seed.value = 20.0

        assert (await store.get(1)).value == 10.0

    @pytest.mark.asyncio
    async def test_missing_ids(self, store, make_deal):
        """Missing ids yield None / False instead of raising."""
        assert await store.get(404) is None
        assert await store.update(make_deal(deal_id=404)) is None
        assert await store.delete(404) is False

    @pytest.mark.asyncio
    async def test_update_replaces_record(self, store, make_deal):
        """update() replaces the stored record with the same id."""
        created = await store.create(make_deal())
        changed = created.model_copy(update={'notes': 'Follow up Monday'})

        updated = await store.update(changed)

        assert updated.notes == 'Follow up Monday'
        assert (await store.get(created.id)).notes == 'Follow up Monday'

    @pytest.mark.asyncio
    async def test_delete_removes_record(self, store, make_deal):
        """delete() removes the record; a second delete reports False."""
        created = await store.create(make_deal())

        assert await store.delete(created.id) is True
        assert await store.get(created.id) is None
        assert await store.delete(created.id) is False

    @pytest.mark.asyncio
    async def test_synthetic_latency_resolves(self, make_deal):
        """A store with latency still completes every call."""
        store = InMemoryDealStore(latency_ms=(1, 2))

        created = await store.create(make_deal())

        assert (await store.get(created.id)) is not None
