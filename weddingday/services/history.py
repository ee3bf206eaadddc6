"""Linear undo/redo history over batches of patch ops.

The stacks hold forward ops only. Undoing a batch means the caller removes
that many trailing ops from its draft; redoing re-appends them.
"""

from collections.abc import Sequence
from dataclasses import dataclass, replace

from weddingday.config import get_settings
from weddingday.schemas.patch import PatchOp

OpBatch = tuple[PatchOp, ...]


@dataclass(frozen=True)
class HistoryState:
    past: tuple[OpBatch, ...] = ()
    future: tuple[OpBatch, ...] = ()  # future[0] is the next batch to redo
    max_depth: int = 50


def create_history(max_depth: int | None = None) -> HistoryState:
    if max_depth is None:
        max_depth = get_settings().history_max_depth
    return HistoryState(max_depth=max_depth)


def record_action(history: HistoryState, ops: Sequence[PatchOp]) -> HistoryState:
    """Push one user action, evicting the oldest beyond max depth; clears redo."""
    past = history.past + (tuple(ops),)
    if len(past) > history.max_depth:
        past = past[len(past) - history.max_depth :]
    return replace(history, past=past, future=())


def undo(history: HistoryState) -> tuple[HistoryState, OpBatch | None]:
    if not history.past:
        return history, None
    batch = history.past[-1]
    return replace(history, past=history.past[:-1], future=(batch,) + history.future), batch


def redo(history: HistoryState) -> tuple[HistoryState, OpBatch | None]:
    if not history.future:
        return history, None
    batch = history.future[0]
    return replace(history, past=history.past + (batch,), future=history.future[1:]), batch


def can_undo(history: HistoryState) -> bool:
    return bool(history.past)


def can_redo(history: HistoryState) -> bool:
    return bool(history.future)


def clear_history(history: HistoryState) -> HistoryState:
    return replace(history, past=(), future=())
