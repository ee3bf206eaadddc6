"""Bridge between timeline state and a visual timeline widget.

Data only flows one way at a time. ``build_timeline_feed`` turns domain
events, lanes and bands into widget groups and items (a pure function), and
the widget reports user intents (move, select) back through
``TimelineWidgetBridge``, which turns them into session edits. The widget
never shares mutable structures with the session.

Widgets set themselves up and tear down asynchronously, so the bridge guards
every call with a lifecycle state machine:
``idle -> initializing -> ready -> destroying -> idle``.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING, Protocol

from weddingday.schemas.patch import UpdateEventLaneOp, UpdateEventTimeOp
from weddingday.schemas.timeline import BackgroundBand, TimelineEvent, TimelineLane
from weddingday.services.snapping import snap_to_minute
from weddingday.services.venue_time import to_venue_local

if TYPE_CHECKING:
    from weddingday.client.session import TimelineSession

logger = logging.getLogger(__name__)

BAND_ITEM_PREFIX = "band-"


@dataclass(frozen=True)
class TimelineGroup:
    id: str
    content: str
    class_name: str
    order: int


@dataclass(frozen=True)
class TimelineItem:
    id: str
    content: str
    start: datetime  # Venue-local, timezone aware
    end: datetime
    group: str | None = None
    class_name: str = "event-item"
    type: str = "range"
    editable: bool = False


@dataclass(frozen=True)
class TimelineFeed:
    groups: list[TimelineGroup] = field(default_factory=list)
    items: list[TimelineItem] = field(default_factory=list)
    window_start: datetime | None = None
    window_end: datetime | None = None
    selected_item_id: str | None = None


def build_timeline_feed(
    events: Sequence[TimelineEvent],
    lanes: Sequence[TimelineLane],
    bands: Sequence[BackgroundBand],
    window_start_utc: datetime,
    window_end_utc: datetime,
    venue_timezone: str,
    *,
    selected_event_id: str | None = None,
    read_only: bool = False,
) -> TimelineFeed:
    """Map domain state to widget groups and items in venue-local time.

    Lanes become groups ordered by sort order. Events whose lane is not in
    ``lanes`` are left out, which is how a draft lane deletion hides its
    events before the server cascades it.
    """
    ordered_lanes = sorted(lanes, key=lambda lane: (lane.sort_order, lane.id))
    groups = [
        TimelineGroup(
            id=lane.id,
            content=lane.name,
            class_name=f"lane-{lane.lane_type.value}",
            order=lane.sort_order,
        )
        for lane in ordered_lanes
    ]
    lane_ids = {lane.id for lane in ordered_lanes}

    items = [
        TimelineItem(
            id=event.id,
            content=event.title,
            start=to_venue_local(event.start_utc, venue_timezone),
            end=to_venue_local(event.end_utc, venue_timezone),
            group=event.lane_id,
            editable=not read_only and not event.locked,
        )
        for event in events
        if event.lane_id in lane_ids
    ]
    items.extend(
        TimelineItem(
            id=f"{BAND_ITEM_PREFIX}{band.id}",
            content=band.label,
            start=to_venue_local(band.start_utc, venue_timezone),
            end=to_venue_local(band.end_utc, venue_timezone),
            class_name=f"background-band band-{band.band_type.value}",
            type="background",
        )
        for band in bands
    )

    return TimelineFeed(
        groups=groups,
        items=items,
        window_start=to_venue_local(window_start_utc, venue_timezone),
        window_end=to_venue_local(window_end_utc, venue_timezone),
        selected_item_id=selected_event_id,
    )


def feed_from_session(session: "TimelineSession", read_only: bool = False) -> TimelineFeed:
    snapshot = session.snapshot
    if snapshot is None:
        return TimelineFeed()
    events, lanes = session.preview()
    return build_timeline_feed(
        events,
        lanes,
        snapshot.bands,
        snapshot.window_start_utc,
        snapshot.window_end_utc,
        snapshot.venue_timezone,
        selected_event_id=session.selected_event_id,
        read_only=read_only,
    )


class TimelineWidget(Protocol):
    async def create(self, feed: TimelineFeed) -> None: ...

    def update(self, feed: TimelineFeed) -> None: ...

    def set_selection(self, item_id: str | None) -> None: ...

    async def destroy(self) -> None: ...


class WidgetLifecycle(str, Enum):
    IDLE = "idle"
    INITIALIZING = "initializing"
    READY = "ready"
    DESTROYING = "destroying"


class TimelineWidgetBridge:
    """Feeds a widget from a session and turns widget intents into edits."""

    def __init__(self, session: "TimelineSession", widget: TimelineWidget, read_only: bool = False):
        self.session = session
        self.widget = widget
        self.read_only = read_only
        self.state = WidgetLifecycle.IDLE
        self._unmount_requested = False

    @property
    def is_ready(self) -> bool:
        return self.state is WidgetLifecycle.READY

    def feed(self) -> TimelineFeed:
        return feed_from_session(self.session, self.read_only)

    async def mount(self) -> bool:
        """Create the widget. Returns False if it was not left ready."""
        if self.state is not WidgetLifecycle.IDLE:
            return False
        self.state = WidgetLifecycle.INITIALIZING
        self._unmount_requested = False
        try:
            await self.widget.create(self.feed())
        except Exception:
            logger.exception("Failed to initialize timeline widget")
            self.state = WidgetLifecycle.IDLE
            raise

        if self._unmount_requested:
            # Unmounted while still initializing
            await self._teardown()
            return False
        self.state = WidgetLifecycle.READY
        return True

    async def unmount(self) -> None:
        if self.state in (WidgetLifecycle.IDLE, WidgetLifecycle.DESTROYING):
            return
        if self.state is WidgetLifecycle.INITIALIZING:
            self._unmount_requested = True
            return
        await self._teardown()

    async def _teardown(self) -> None:
        self.state = WidgetLifecycle.DESTROYING
        try:
            await self.widget.destroy()
        finally:
            self.state = WidgetLifecycle.IDLE
            self._unmount_requested = False

    def refresh(self) -> bool:
        """Push the session's current preview and selection to the widget."""
        if not self.is_ready:
            return False
        self.widget.update(self.feed())
        self.widget.set_selection(self.session.selected_event_id)
        return True

    def handle_move(self, item_id: str, start: datetime, end: datetime, group_id: str | None) -> bool:
        """Apply a drag of an event item. Returns False if the move is rejected.

        Out-of-window and shorter-than-a-minute moves are rejected rather
        than clamped, so the widget snaps the item back.
        """
        if not self.is_ready or self.read_only or item_id.startswith(BAND_ITEM_PREFIX):
            return False

        snapped_start = snap_to_minute(start)
        snapped_end = snap_to_minute(end)
        window = self.session.window
        if snapped_start < window.start_utc or snapped_end > window.end_utc:
            return False
        if snapped_end - snapped_start < timedelta(minutes=1):
            return False

        event = next((e for e in self.session.display_events if e.id == item_id), None)
        if event is None or event.locked:
            return False

        ops = []
        if group_id and group_id != event.lane_id:
            ops.append(UpdateEventLaneOp(event_id=item_id, lane_id=group_id))
        ops.append(UpdateEventTimeOp(event_id=item_id, start_utc=snapped_start, end_utc=snapped_end))
        self.session.apply_action(ops)
        self.refresh()
        return True

    def handle_select(self, item_id: str | None) -> None:
        if not self.is_ready:
            return
        if item_id is None or item_id.startswith(BAND_ITEM_PREFIX):
            self.session.select_event(None)
        else:
            self.session.select_event(item_id)
