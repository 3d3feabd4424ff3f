"""
Deal pipeline engine.

Applies the stage policy to deal writes and produces analytics on demand:
- create_deal(): derive stage, probability, timestamps and default close date
- update_deal(): merge a DealPatch field-by-field, resetting probability on
  stage changes unless the patch sets it explicitly
- delete_deal(): permanent removal; a second delete raises DealNotFoundError
- move_stage(): canonical stage validation, then update_deal({stage})
- build_report(): funnel + summary over the current store snapshot

Time is injected: every time-dependent operation takes an optional `now`,
falling back to the engine's clock. Writes to the same deal id are
serialized with a per-id asyncio.Lock.
"""

import asyncio
from collections.abc import Callable, Mapping
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncIterator

import pydantic
import structlog

from .analytics import compute_funnel, compute_summary
from .config import config
from .errors import (
    DealNotFoundError,
    DealPipelineError,
    InvalidStageError,
    ValidationError,
    wrap_store_error,
)
from .logging import PipelineTimer, logging_context
from .models.analytics import PipelineReport
from .models.deal import Deal, DealCreate, DealPatch, DealStage
from .policy import default_probability, parse_pipeline_stage, parse_stage
from .repository import DealStore

logger = structlog.get_logger(__name__)


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(tz=timezone.utc)


def _to_pipeline_error(exc: pydantic.ValidationError, context: dict[str, Any]) -> ValidationError:
    """Map a pydantic validation failure to ValidationError or InvalidStageError."""
    errors = exc.errors(include_url=False)
    fields = ['.'.join(str(part) for part in err['loc']) for err in errors]
    ctx = {**context, 'fields': fields, 'errors': [err['msg'] for err in errors]}
    if any(err['loc'][:1] == ('stage',) for err in errors):
        return InvalidStageError(f"Invalid stage: {fields}", context=ctx)
    return ValidationError(f"Invalid deal fields: {', '.join(fields)}", context=ctx)


class PipelineEngine:
    """
    Stage-aware create/update/delete/move operations over a DealStore.

    The engine never mutates a deal snapshot in place: each write builds a
    new Deal and hands it to the store, and analytics are computed from
    fresh copies.
    """

    def __init__(
        self,
        store: DealStore,
        clock: Callable[[], datetime] | None = None,
        close_window_days: int | None = None,
    ):
        """
        Args:
            store: Deal store the engine reads from and writes to
            clock: Source of "now" when an operation is not given one
            close_window_days: Days after creation used as the default
                expected close date (defaults to config.CLOSE_WINDOW_DAYS)
        """
        self.store = store
        self._clock = clock or utc_now
        days = close_window_days if close_window_days is not None else config.CLOSE_WINDOW_DAYS
        self._close_window = timedelta(days=days)
        self._locks: dict[int, asyncio.Lock] = {}

    # =========================================================================
    # Helpers
    # =========================================================================

    def _now(self, now: datetime | None) -> datetime:
        return now if now is not None else self._clock()

    @asynccontextmanager
    async def _deal_lock(self, deal_id: int) -> AsyncIterator[None]:
        lock = self._locks.setdefault(deal_id, asyncio.Lock())
        try:
            async with lock:
                yield
        except DealNotFoundError:
            # Missing ids keep no lock
            self._locks.pop(deal_id, None)
            raise

    async def _store_call(self, operation: str, *args: Any) -> Any:
        """Invoke a store method, wrapping unexpected failures in StoreError."""
        try:
            return await getattr(self.store, operation)(*args)
        except DealPipelineError:
            raise
        except Exception as exc:
            logger.error('deal_pipeline.store_failed', operation=operation, error=str(exc))
            raise wrap_store_error(exc, context={'operation': operation}) from exc

    async def _require(self, deal_id: int) -> Deal:
        deal = await self._store_call('get', deal_id)
        if deal is None:
            raise DealNotFoundError(deal_id)
        return deal

    # =========================================================================
    # Reads
    # =========================================================================

    async def get_deal(self, deal_id: int) -> Deal:
        """
        Fetch a deal by id.

        Raises:
            DealNotFoundError: If no deal has this id
        """
        return await self._require(deal_id)

    async def list_deals(self, stage: DealStage | str | None = None) -> list[Deal]:
        """
        List deals, newest first, optionally restricted to one stage.

        Raises:
            InvalidStageError: If stage is given but unknown
        """
        target = parse_stage(stage) if stage is not None else None
        return await self._store_call('list', target)

    # =========================================================================
    # Writes
    # =========================================================================

    async def create_deal(
        self,
        data: DealCreate | Mapping[str, Any],
        now: datetime | None = None,
    ) -> Deal:
        """
        Add a deal to the pipeline.

        Stage defaults to Lead; probability is always the stage default.
        created_at and last_activity are set to now, and a missing
        expected_close_date is set to now plus the close window.

        Args:
            data: DealCreate or a mapping of its fields
            now: Creation time (defaults to the engine clock)

        Returns:
            Stored Deal carrying its store-assigned id

        Raises:
            ValidationError: If required fields are missing or invalid
            InvalidStageError: If the initial stage is unknown or Closed Lost
            StoreError: If the store fails
        """
        if not isinstance(data, DealCreate):
            try:
                data = DealCreate.model_validate(dict(data))
            except pydantic.ValidationError as exc:
                error = _to_pipeline_error(exc, {'operation': 'create_deal'})
                logger.warning('deal_pipeline.create_rejected', error=error.message)
                raise error from exc

        timestamp = self._now(now)
        stage = data.stage or DealStage.LEAD
        deal = Deal(
            id=0,
            name=data.name,
            company=data.company,
            contact_id=data.contact_id,
            contact_name=data.contact_name,
            value=data.value,
            stage=stage,
            probability=default_probability(stage),
            expected_close_date=data.expected_close_date or timestamp + self._close_window,
            created_at=timestamp,
            last_activity=timestamp,
            notes=data.notes,
        )

        created = await self._store_call('create', deal)
        logger.info(
            'deal_pipeline.deal_created',
            deal_id=created.id,
            stage=created.stage.value,
            value=created.value,
        )
        return created

    async def update_deal(
        self,
        deal_id: int,
        patch: DealPatch | Mapping[str, Any],
        now: datetime | None = None,
    ) -> Deal:
        """
        Apply a patch to an existing deal.

        Fields not set on the patch are left unchanged. last_activity is
        always set to now. When the stage changes and the patch does not set
        probability, probability is reset to the new stage's default; an
        explicit probability is stored verbatim.

        Args:
            deal_id: Deal to update
            patch: DealPatch or a mapping of its fields
            now: Modification time (defaults to the engine clock)

        Returns:
            Updated Deal

        Raises:
            DealNotFoundError: If no deal has this id
            InvalidStageError: If the patch sets an unknown stage
            ValidationError: If any other patched field is invalid
            StoreError: If the store fails
        """
        context = {'operation': 'update_deal', 'deal_id': deal_id}
        if not isinstance(patch, DealPatch):
            try:
                patch = DealPatch.model_validate(dict(patch))
            except pydantic.ValidationError as exc:
                raise _to_pipeline_error(exc, context) from exc

        changes = patch.changes()
        timestamp = self._now(now)

        with logging_context(deal_id=deal_id):
            async with self._deal_lock(deal_id):
                existing = await self._require(deal_id)

                new_stage = changes.get('stage', existing.stage)
                stage_changed = 'stage' in changes and new_stage != existing.stage
                if stage_changed and 'probability' not in changes:
                    changes['probability'] = default_probability(new_stage)

                merged = {**existing.model_dump(), **changes, 'id': existing.id}
                merged['last_activity'] = timestamp
                try:
                    updated = Deal.model_validate(merged)
                except pydantic.ValidationError as exc:
                    error = _to_pipeline_error(exc, context)
                    logger.warning('deal_pipeline.update_rejected', error=error.message)
                    raise error from exc

                stored = await self._store_call('update', updated)
                if stored is None:
                    # Deleted between read and write
                    raise DealNotFoundError(deal_id)

            log = logger.bind(changed_fields=sorted(changes))
            if stage_changed:
                log.info(
                    'deal_pipeline.stage_changed',
                    from_stage=existing.stage.value,
                    to_stage=stored.stage.value,
                    probability=stored.probability,
                )
            else:
                log.info('deal_pipeline.deal_updated')
        return stored

    async def delete_deal(self, deal_id: int) -> None:
        """
        Permanently remove a deal. There is no undo.

        Raises:
            DealNotFoundError: If no deal has this id, including on a
                second delete of the same id
            StoreError: If the store fails
        """
        async with self._deal_lock(deal_id):
            removed = await self._store_call('delete', deal_id)
            if not removed:
                raise DealNotFoundError(deal_id, context={'operation': 'delete_deal'})
        self._locks.pop(deal_id, None)
        logger.info('deal_pipeline.deal_deleted', deal_id=deal_id)

    async def move_stage(
        self,
        deal_id: int,
        new_stage: DealStage | str,
        now: datetime | None = None,
    ) -> Deal:
        """
        Move a deal to another pipeline column.

        Unknown stages and Closed Lost are rejected before the deal is
        touched. Moving to the current stage changes nothing except
        last_activity.

        Raises:
            InvalidStageError: If new_stage is not a canonical pipeline stage
            DealNotFoundError: If no deal has this id
        """
        target = parse_pipeline_stage(new_stage)
        return await self.update_deal(deal_id, DealPatch(stage=target), now=now)

    # =========================================================================
    # Analytics
    # =========================================================================

    async def build_report(self, now: datetime | None = None) -> PipelineReport:
        """
        Compute the funnel and summary from the current store snapshot.

        Args:
            now: Reference instant for the monthly figures

        Returns:
            PipelineReport
        """
        timestamp = self._now(now)
        timer = PipelineTimer()

        with timer.stage('snapshot'):
            deals = await self._store_call('list', None)
        with timer.stage('funnel'):
            funnel = compute_funnel(deals)
        with timer.stage('summary'):
            summary = compute_summary(deals, timestamp)

        logger.info(
            'deal_pipeline.report_built',
            deal_count=len(deals),
            win_rate=summary.win_rate,
            **timer.summary(),
        )
        return PipelineReport(
            generated_at=timestamp,
            deal_count=len(deals),
            funnel=funnel,
            summary=summary,
        )
