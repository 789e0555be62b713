from __future__ import annotations

from contextlib import contextmanager, nullcontext
from dataclasses import dataclass

from core.exceptions import LifecycleError, OperationInProgress


@dataclass
class OperationContext:
    """State of one decision or review flow, owned by the caller.

    Pass the same instance to a coordinator call to get a submitting flag and
    the last failure without any module level state; separate instances never
    interfere with each other.
    """
    target_id: str
    outcome: str | None = None
    submitting: bool = False
    error: LifecycleError | None = None

    @contextmanager
    def submit(self):
        if self.submitting:
            raise OperationInProgress(target_id=self.target_id)
        self.submitting = True
        self.error = None
        try:
            yield self
        except LifecycleError as exc:
            self.error = exc
            raise
        finally:
            self.submitting = False


def in_flight(context):
    """``context.submit()`` when a context was passed, otherwise a no-op."""
    if context is None:
        return nullcontext()
    return context.submit()
