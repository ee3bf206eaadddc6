"""Tests for the undo/redo history stack."""

from weddingday.schemas.patch import DeleteEventOp
from weddingday.services.history import (
    can_redo,
    can_undo,
    clear_history,
    create_history,
    record_action,
    redo,
    undo,
)


def batch(*event_ids: str) -> list[DeleteEventOp]:
    return [DeleteEventOp(event_id=event_id) for event_id in event_ids]


class TestHistory:
    def test_empty_history(self):
        history = create_history()

        assert not can_undo(history)
        assert not can_redo(history)
        assert history.max_depth == 50

    def test_undo_on_empty_returns_none(self):
        history = create_history()

        new_history, ops = undo(history)

        assert ops is None
        assert new_history == history

    def test_redo_on_empty_returns_none(self):
        assert redo(create_history())[1] is None

    def test_undo_then_redo_restores_batch(self):
        history = record_action(create_history(), batch("a"))
        history = record_action(history, batch("b", "c"))

        history, undone = undo(history)
        assert undone == tuple(batch("b", "c"))
        assert can_redo(history)

        history, redone = redo(history)
        assert redone == undone
        assert history.past[-1] == undone
        assert not can_redo(history)

    def test_redo_order_after_multiple_undos(self):
        history = record_action(create_history(), batch("a"))
        history = record_action(history, batch("b"))
        history, _ = undo(history)
        history, _ = undo(history)

        history, first = redo(history)

        assert first == tuple(batch("a"))

    def test_new_action_clears_redo(self):
        history = record_action(create_history(), batch("a"))
        history, _ = undo(history)

        history = record_action(history, batch("b"))

        assert not can_redo(history)
        assert history.past == (tuple(batch("b")),)

    def test_oldest_batches_are_evicted(self):
        history = create_history(max_depth=3)
        for event_id in "abcde":
            history = record_action(history, batch(event_id))

        assert len(history.past) == 3
        assert history.past[0] == tuple(batch("c"))

    def test_clear_history(self):
        history = record_action(create_history(), batch("a"))
        history, _ = undo(history)
        history = record_action(history, batch("b"))

        cleared = clear_history(history)

        assert not can_undo(cleared)
        assert not can_redo(cleared)
        assert cleared.max_depth == history.max_depth
