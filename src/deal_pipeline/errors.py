"""
Custom exceptions for the Deal Pipeline engine.

Provides:
- Typed exception hierarchy for each failure mode the engine surfaces
- Error context preservation for debugging
- Wrapping of unexpected store failures
"""

from typing import Any


class DealPipelineError(Exception):
    """Base exception for all deal pipeline errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            return f"{self.message} | context={self.context}"
        return self.message


class ValidationError(DealPipelineError):
    """A required field is missing or a field value is invalid."""

    pass


class InvalidStageError(ValidationError):
    """Stage value is outside the known stage table."""

    pass


class DealNotFoundError(DealPipelineError):
    """Operation referenced a deal id that is not in the store."""

    def __init__(self, deal_id: int, context: dict[str, Any] | None = None):
        ctx = {'deal_id': deal_id}
        ctx.update(context or {})
        super().__init__(f"Deal not found: {deal_id}", context=ctx)
        self.deal_id = deal_id


class StoreError(DealPipelineError):
    """Deal store failed for a reason other than a missing record."""

    pass


def wrap_store_error(exc: Exception, context: dict[str, Any] | None = None) -> StoreError:
    """
    Wrap an arbitrary store exception in our typed error hierarchy.

    Args:
        exc: The original exception
        context: Additional context for debugging

    Returns:
        StoreError carrying the original message and type
    """
    ctx = dict(context or {})
    ctx['original_error'] = str(exc)
    ctx['error_type'] = type(exc).__name__
    return StoreError(f"Deal store error: {exc}", context=ctx)
