"""Client-side timeline editing session.

A TimelineSession composes the draft reducer, the history stack and a
timeline transport into the load, edit, undo/redo, publish and discard
workflow. It is single-threaded by contract: while a publish is awaiting the
server, further publishes and edits are refused with PublishInProgressError
so no local edit can be reordered against the publish's response.
"""

import logging
import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from weddingday.exceptions import (
    InvalidTimeRangeError,
    MissingRequiredFieldError,
    PublishInProgressError,
    VersionConflictError,
)
from weddingday.schemas.patch import (
    CreateEventOp,
    CreateLaneOp,
    DeleteEventOp,
    DeleteLaneOp,
    PatchOp,
    UpdateEventLaneOp,
    UpdateEventOwnerOp,
    UpdateEventTimeOp,
    UpdateEventTitleOp,
    UpdateLaneOp,
)
from weddingday.schemas.timeline import (
    EventStatus,
    LaneType,
    OwnerRef,
    TimelineEvent,
    TimelineLane,
    TimelineSnapshot,
)
from weddingday.services.draft import (
    DraftState,
    add_patch_ops,
    apply_patch_ops,
    clear_draft,
    create_draft,
    reset_draft,
    truncate_draft,
)
from weddingday.services.history import (
    HistoryState,
    can_redo,
    can_undo,
    clear_history,
    create_history,
    record_action,
    redo,
    undo,
)
from weddingday.services.snapping import process_event_times
from weddingday.services.time_window import TimelineWindow

logger = logging.getLogger(__name__)


class TimelineTransport(Protocol):
    async def fetch_timeline(self, wedding_id: str) -> TimelineSnapshot: ...

    async def publish(
        self, wedding_id: str, base_version: int, patch_ops: Sequence[PatchOp]
    ) -> TimelineSnapshot: ...


@dataclass(frozen=True)
class PublishOutcome:
    success: bool
    snapshot: TimelineSnapshot | None = None
    conflict: bool = False
    current_version: int | None = None


class TimelineSession:
    def __init__(
        self,
        transport: TimelineTransport,
        wedding_id: str,
        history_max_depth: int | None = None,
    ):
        self.transport = transport
        self.wedding_id = wedding_id
        self.snapshot: TimelineSnapshot | None = None
        self.draft: DraftState = create_draft(0)
        self.history: HistoryState = create_history(history_max_depth)
        self.selected_event_id: str | None = None
        self.last_conflict: VersionConflictError | None = None
        self._publishing = False

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def is_loaded(self) -> bool:
        return self.snapshot is not None

    @property
    def is_publishing(self) -> bool:
        return self._publishing

    @property
    def is_dirty(self) -> bool:
        return self.draft.is_dirty

    @property
    def base_version(self) -> int:
        return self.draft.base_version

    @property
    def can_undo(self) -> bool:
        return can_undo(self.history)

    @property
    def can_redo(self) -> bool:
        return can_redo(self.history)

    @property
    def window(self) -> TimelineWindow:
        snapshot = self._require_snapshot()
        return TimelineWindow(snapshot.window_start_utc, snapshot.window_end_utc)

    def preview(self) -> tuple[list[TimelineEvent], list[TimelineLane]]:
        """Canonical snapshot with the draft's pending ops applied."""
        snapshot = self._require_snapshot()
        return apply_patch_ops(snapshot.events, snapshot.lanes, self.draft.patch_ops)

    @property
    def display_events(self) -> list[TimelineEvent]:
        return self.preview()[0]

    @property
    def display_lanes(self) -> list[TimelineLane]:
        return self.preview()[1]

    def _require_snapshot(self) -> TimelineSnapshot:
        if self.snapshot is None:
            raise RuntimeError("Timeline is not loaded; call load() first")
        return self.snapshot

    def _guard_edit(self) -> None:
        self._require_snapshot()
        if self._publishing:
            raise PublishInProgressError("Cannot edit while a publish is in progress")

    # -------------------------------------------------------------------------
    # Load / publish / discard
    # -------------------------------------------------------------------------

    async def load(self) -> TimelineSnapshot:
        if self._publishing:
            raise PublishInProgressError("Cannot reload while a publish is in progress")
        snapshot = await self.transport.fetch_timeline(self.wedding_id)
        self._adopt(snapshot)
        self.last_conflict = None
        return snapshot

    def _adopt(self, snapshot: TimelineSnapshot) -> None:
        self.snapshot = snapshot
        self.draft = reset_draft(snapshot.version)
        self.history = clear_history(self.history)

    async def publish(self) -> PublishOutcome:
        """Send the draft to the server.

        On success the draft and history start fresh at the new version. On
        a version conflict the draft and history are left untouched and the
        outcome carries the server's current snapshot. Any other failure is
        raised with the draft intact.
        """
        self._require_snapshot()
        if self._publishing:
            raise PublishInProgressError()
        if not self.draft.is_dirty:
            return PublishOutcome(success=True, snapshot=self.snapshot, current_version=self.base_version)

        self._publishing = True
        try:
            snapshot = await self.transport.publish(
                self.wedding_id, self.draft.base_version, self.draft.patch_ops
            )
        except VersionConflictError as e:
            self.last_conflict = e
            logger.info(
                f"Publish for wedding {self.wedding_id} conflicted: "
                f"base v{self.draft.base_version}, server v{e.current_version}"
            )
            return PublishOutcome(
                success=False, snapshot=e.snapshot, conflict=True, current_version=e.current_version
            )
        finally:
            self._publishing = False

        self.last_conflict = None
        self._adopt(snapshot)
        return PublishOutcome(success=True, snapshot=snapshot, current_version=snapshot.version)

    def discard(self) -> None:
        """Drop all pending ops and history; the base version is kept."""
        self._guard_edit()
        self.draft = clear_draft(self.draft)
        self.history = clear_history(self.history)

    def adopt_server_snapshot(self) -> DraftState:
        """After a conflict, re-base the pending ops onto the server's snapshot.

        The ops are kept as they are; the next publish re-validates them
        against the newer version.
        """
        self._guard_edit()
        if self.last_conflict is None or self.last_conflict.snapshot is None:
            raise RuntimeError("No conflicting server snapshot to adopt")
        self.snapshot = self.last_conflict.snapshot
        self.draft = DraftState(base_version=self.snapshot.version, patch_ops=self.draft.patch_ops)
        self.last_conflict = None
        return self.draft

    # -------------------------------------------------------------------------
    # Undo / redo
    # -------------------------------------------------------------------------

    def apply_action(self, ops: Sequence[PatchOp]) -> None:
        """Append one user action's ops to the draft as a single history batch."""
        self._guard_edit()
        if not ops:
            return
        self.draft = add_patch_ops(self.draft, ops)
        self.history = record_action(self.history, ops)

    def undo(self) -> bool:
        self._guard_edit()
        self.history, batch = undo(self.history)
        if batch is None:
            return False
        self.draft = truncate_draft(self.draft, len(batch))
        return True

    def redo(self) -> bool:
        self._guard_edit()
        self.history, batch = redo(self.history)
        if batch is None:
            return False
        self.draft = add_patch_ops(self.draft, batch)
        return True

    # -------------------------------------------------------------------------
    # Edits
    # -------------------------------------------------------------------------

    def _process_times(
        self, start_utc: datetime, end_utc: datetime, event_id: str | None = None
    ) -> tuple[datetime, datetime]:
        result = process_event_times(start_utc, end_utc, self.window)
        if not result.valid:
            raise InvalidTimeRangeError(result.error, event_id=event_id)
        return result.start_utc, result.end_utc

    def add_event(
        self,
        title: str,
        start_utc: datetime,
        end_utc: datetime,
        lane_id: str,
        *,
        event_id: str | None = None,
        owner: OwnerRef | None = None,
        category: LaneType | None = None,
        status: EventStatus = EventStatus.TENTATIVE,
        notes: str | None = None,
        location_label: str | None = None,
    ) -> TimelineEvent:
        self._guard_edit()
        if not title.strip():
            raise MissingRequiredFieldError("title")
        event_id = event_id or str(uuid.uuid4())
        start, end = self._process_times(start_utc, end_utc, event_id)
        if category is None:
            lane = next((lane for lane in self.display_lanes if lane.id == lane_id), None)
            category = lane.lane_type if lane else None
        event = TimelineEvent(
            id=event_id,
            wedding_id=self.wedding_id,
            title=title.strip(),
            start_utc=start,
            end_utc=end,
            lane_id=lane_id,
            category=category,
            assigned_owner=owner,
            status=status,
            notes=notes,
            location_label=location_label,
        )
        self.apply_action([CreateEventOp(event=event)])
        return event

    def update_event_time(self, event_id: str, start_utc: datetime, end_utc: datetime) -> None:
        self._guard_edit()
        start, end = self._process_times(start_utc, end_utc, event_id)
        self.apply_action([UpdateEventTimeOp(event_id=event_id, start_utc=start, end_utc=end)])

    def update_event_lane(self, event_id: str, lane_id: str) -> None:
        self.apply_action([UpdateEventLaneOp(event_id=event_id, lane_id=lane_id)])

    def update_event_title(self, event_id: str, title: str) -> None:
        self._guard_edit()
        if not title.strip():
            raise MissingRequiredFieldError("title")
        self.apply_action([UpdateEventTitleOp(event_id=event_id, title=title.strip())])

    def update_event_owner(self, event_id: str, owner: OwnerRef) -> None:
        self.apply_action([UpdateEventOwnerOp(event_id=event_id, owner=owner)])

    def delete_event(self, event_id: str) -> None:
        self.apply_action([DeleteEventOp(event_id=event_id)])
        if self.selected_event_id == event_id:
            self.selected_event_id = None

    def add_lane(
        self,
        name: str,
        lane_type: LaneType = LaneType.MISC,
        *,
        lane_id: str | None = None,
        owner: OwnerRef | None = None,
        sort_order: int | None = None,
    ) -> TimelineLane:
        self._guard_edit()
        if not name.strip():
            raise MissingRequiredFieldError("name")
        if sort_order is None:
            sort_order = max((lane.sort_order for lane in self.display_lanes), default=-1) + 1
        lane = TimelineLane(
            id=lane_id or str(uuid.uuid4()),
            wedding_id=self.wedding_id,
            name=name.strip(),
            lane_type=lane_type,
            owner=owner,
            sort_order=sort_order,
        )
        self.apply_action([CreateLaneOp(lane=lane)])
        return lane

    def update_lane(
        self,
        lane_id: str,
        *,
        name: str | None = None,
        owner: OwnerRef | None = None,
        sort_order: int | None = None,
    ) -> None:
        self._guard_edit()
        if name is not None:
            if not name.strip():
                raise MissingRequiredFieldError("name")
            name = name.strip()
        self.apply_action(
            [UpdateLaneOp(lane_id=lane_id, name=name, owner=owner, sort_order=sort_order)]
        )

    def delete_lane(self, lane_id: str) -> None:
        self.apply_action([DeleteLaneOp(lane_id=lane_id)])

    def select_event(self, event_id: str | None) -> None:
        self.selected_event_id = event_id
