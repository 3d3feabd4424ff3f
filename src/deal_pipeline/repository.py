"""
Deal store interface and in-memory implementation.

The engine depends only on the DealStore protocol, so an in-memory store and
a persistent backend are interchangeable.

Key design decisions:
- get()/update() return None and delete() returns False for missing ids; the
  engine turns those into DealNotFoundError
- Every read and write returns a deep copy, never a shared reference
- New ids are max(existing ids) + 1, starting at 1
- list() returns newest deals first
- Optional synthetic latency is bounded and always resolves
"""

import asyncio
import random
from collections.abc import Iterable
from typing import Protocol, runtime_checkable

import structlog

from .config import config
from .models.deal import Deal, DealStage

logger = structlog.get_logger(__name__)


@runtime_checkable
class DealStore(Protocol):
    """CRUD by id over Deal records, returning value copies."""

    async def get(self, deal_id: int) -> Deal | None: ...

    async def list(self, stage: DealStage | None = None) -> list[Deal]: ...

    async def create(self, deal: Deal) -> Deal: ...

    async def update(self, deal: Deal) -> Deal | None: ...

    async def delete(self, deal_id: int) -> bool: ...


class InMemoryDealStore:
    """
    Deal store held in process memory.

    The id on a Deal passed to create() is ignored and replaced by the next
    free id. State lives only for the lifetime of the instance.
    """

    def __init__(
        self,
        deals: Iterable[Deal] = (),
        latency_ms: tuple[int, int] | None = None,
    ):
        """
        Args:
            deals: Seed records, in newest-first order
            latency_ms: (min, max) synthetic delay per call; defaults to config
        """
        self._deals: list[Deal] = [deal.model_copy(deep=True) for deal in deals]
        if latency_ms is None:
            latency_ms = (config.STORE_LATENCY_MIN_MS, config.STORE_LATENCY_MAX_MS)
        self._latency_min_ms, self._latency_max_ms = latency_ms

    async def _delay(self) -> None:
        if self._latency_max_ms <= 0:
            return
        delay_ms = random.uniform(self._latency_min_ms, self._latency_max_ms)
        await asyncio.sleep(delay_ms / 1000)

    def _index_of(self, deal_id: int) -> int | None:
        for index, deal in enumerate(self._deals):
            if deal.id == deal_id:
                return index
        return None

    def _next_id(self) -> int:
        return max((deal.id for deal in self._deals), default=0) + 1

    async def get(self, deal_id: int) -> Deal | None:
        await self._delay()
        index = self._index_of(deal_id)
        if index is None:
            return None
        return self._deals[index].model_copy(deep=True)

    async def list(self, stage: DealStage | None = None) -> list[Deal]:
        await self._delay()
        return [
            deal.model_copy(deep=True)
            for deal in self._deals
            if stage is None or deal.stage == stage
        ]

    async def create(self, deal: Deal) -> Deal:
        await self._delay()
        stored = deal.model_copy(update={'id': self._next_id()}, deep=True)
        self._deals.insert(0, stored)
        logger.debug('store_deal_created', deal_id=stored.id, total=len(self._deals))
        return stored.model_copy(deep=True)

    async def update(self, deal: Deal) -> Deal | None:
        await self._delay()
        index = self._index_of(deal.id)
        if index is None:
            return None
        stored = deal.model_copy(deep=True)
        self._deals[index] = stored
        return stored.model_copy(deep=True)

    async def delete(self, deal_id: int) -> bool:
        await self._delay()
        index = self._index_of(deal_id)
        if index is None:
            return False
        del self._deals[index]
        logger.debug('store_deal_deleted', deal_id=deal_id, total=len(self._deals))
        return True

    def __len__(self) -> int:
        return len(self._deals)
