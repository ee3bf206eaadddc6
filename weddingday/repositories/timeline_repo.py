from collections.abc import Sequence
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from weddingday.models.membership import WeddingMembership
from weddingday.models.revision import TimelineRevision
from weddingday.models.timeline import (
    BackgroundBandRecord,
    TimelineEventRecord,
    TimelineLaneRecord,
)
from weddingday.models.wedding import Wedding
from weddingday.schemas.timeline import (
    BackgroundBand,
    OwnerRef,
    TimelineEvent,
    TimelineLane,
)
from weddingday.services.reconciliation import CanonicalState


def _owner_from_columns(owner_id: str | None, owner_type: str | None, display_name: str | None) -> OwnerRef | None:
    if owner_id is None:
        return None
    return OwnerRef(id=owner_id, type=owner_type or "couple", display_name=display_name or "")


def _owner_columns(owner: OwnerRef | None) -> dict[str, Any]:
    if owner is None:
        return {"owner_id": None, "owner_type": None, "owner_display_name": None}
    return {
        "owner_id": owner.id,
        "owner_type": owner.type.value,
        "owner_display_name": owner.display_name,
    }


def lane_to_schema(record: TimelineLaneRecord) -> TimelineLane:
    return TimelineLane(
        id=record.id,
        wedding_id=record.wedding_id,
        name=record.name,
        lane_type=record.lane_type,
        owner=_owner_from_columns(record.owner_id, record.owner_type, record.owner_display_name),
        sort_order=record.sort_order,
    )


def event_to_schema(record: TimelineEventRecord) -> TimelineEvent:
    # SQLite hands back naive datetimes; UtcDateTime re-attaches UTC
    return TimelineEvent(
        id=record.id,
        wedding_id=record.wedding_id,
        title=record.title,
        start_utc=record.start_utc,
        end_utc=record.end_utc,
        lane_id=record.lane_id,
        category=record.category,
        assigned_owner=_owner_from_columns(
            record.owner_id, record.owner_type, record.owner_display_name
        ),
        status=record.status,
        locked=record.locked,
        notes=record.notes,
        location_label=record.location_label,
        location_lat=record.location_lat,
        location_lng=record.location_lng,
    )


def band_to_schema(record: BackgroundBandRecord) -> BackgroundBand:
    return BackgroundBand(
        id=record.id,
        wedding_id=record.wedding_id,
        band_type=record.band_type,
        start_utc=record.start_utc,
        end_utc=record.end_utc,
        label=record.label,
    )


def _lane_columns(lane: TimelineLane) -> dict[str, Any]:
    return {
        "name": lane.name,
        "lane_type": lane.lane_type.value,
        "sort_order": lane.sort_order,
        **_owner_columns(lane.owner),
    }


def _event_columns(event: TimelineEvent) -> dict[str, Any]:
    return {
        "lane_id": event.lane_id,
        "title": event.title,
        "start_utc": event.start_utc,
        "end_utc": event.end_utc,
        "category": event.category.value if event.category else "misc",
        "status": event.status.value,
        "locked": event.locked,
        "notes": event.notes,
        "location_label": event.location_label,
        "location_lat": event.location_lat,
        "location_lng": event.location_lng,
        **_owner_columns(event.assigned_owner),
    }


class TimelineRepository:
    """Reads and writes a wedding's timeline rows.

    The repository never commits; the caller owns the transaction.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    # -------------------------------------------------------------------------
    # Weddings
    # -------------------------------------------------------------------------

    async def get_wedding(self, wedding_id: str) -> Wedding | None:
        result = await self.db.execute(
            select(Wedding)
            .where(Wedding.id == wedding_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_wedding_for_update(self, wedding_id: str) -> Wedding | None:
        """Load the wedding row with a row lock (ignored by SQLite)."""
        result = await self.db.execute(
            select(Wedding)
            .where(Wedding.id == wedding_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def create_wedding(
        self, wedding_id: str, name: str, wedding_date: str, venue_timezone: str
    ) -> Wedding:
        wedding = Wedding(
            id=wedding_id,
            name=name,
            wedding_date=wedding_date,
            venue_timezone=venue_timezone,
            timeline_version=0,
        )
        self.db.add(wedding)
        await self.db.flush()
        return wedding

    async def bump_version(self, wedding_id: str, expected_version: int) -> bool:
        """Compare-and-increment the timeline version.

        Returns False when another writer already moved the version on.
        """
        result = await self.db.execute(
            update(Wedding)
            .where(Wedding.id == wedding_id, Wedding.timeline_version == expected_version)
            .values(timeline_version=expected_version + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    # -------------------------------------------------------------------------
    # Timeline rows
    # -------------------------------------------------------------------------

    async def list_lanes(self, wedding_id: str) -> list[TimelineLane]:
        result = await self.db.execute(
            select(TimelineLaneRecord)
            .where(TimelineLaneRecord.wedding_id == wedding_id)
            .order_by(TimelineLaneRecord.sort_order, TimelineLaneRecord.id)
            .execution_options(populate_existing=True)
        )
        return [lane_to_schema(record) for record in result.scalars().all()]

    async def list_events(self, wedding_id: str) -> list[TimelineEvent]:
        result = await self.db.execute(
            select(TimelineEventRecord)
            .where(TimelineEventRecord.wedding_id == wedding_id)
            .order_by(TimelineEventRecord.start_utc, TimelineEventRecord.id)
            .execution_options(populate_existing=True)
        )
        return [event_to_schema(record) for record in result.scalars().all()]

    async def list_bands(self, wedding_id: str) -> list[BackgroundBand]:
        result = await self.db.execute(
            select(BackgroundBandRecord)
            .where(BackgroundBandRecord.wedding_id == wedding_id)
            .order_by(BackgroundBandRecord.start_utc, BackgroundBandRecord.id)
            .execution_options(populate_existing=True)
        )
        return [band_to_schema(record) for record in result.scalars().all()]

    async def load_state(self, wedding_id: str) -> CanonicalState:
        return CanonicalState.from_snapshot(
            wedding_id,
            await self.list_lanes(wedding_id),
            await self.list_events(wedding_id),
        )

    async def save_state(self, before: CanonicalState, after: CanonicalState) -> None:
        """Persist the difference between two states of the same wedding.

        Deletes are flushed before inserts so a batch that removes a lane and
        re-creates rows never trips the unit of work's insert-first ordering.
        """
        wedding_id = after.wedding_id

        removed_events = before.events.keys() - after.events.keys()
        removed_lanes = before.lanes.keys() - after.lanes.keys()
        if removed_events:
            await self.db.execute(
                delete(TimelineEventRecord).where(
                    TimelineEventRecord.wedding_id == wedding_id,
                    TimelineEventRecord.id.in_(sorted(removed_events)),
                )
            )
        if removed_lanes:
            await self.db.execute(
                delete(TimelineLaneRecord).where(
                    TimelineLaneRecord.wedding_id == wedding_id,
                    TimelineLaneRecord.id.in_(sorted(removed_lanes)),
                )
            )

        for lane_id, lane in after.lanes.items():
            previous = before.lanes.get(lane_id)
            if previous is None:
                self.db.add(TimelineLaneRecord(id=lane_id, wedding_id=wedding_id, **_lane_columns(lane)))
            elif previous != lane:
                await self.db.execute(
                    update(TimelineLaneRecord)
                    .where(TimelineLaneRecord.wedding_id == wedding_id, TimelineLaneRecord.id == lane_id)
                    .values(**_lane_columns(lane))
                    .execution_options(synchronize_session=False)
                )
        await self.db.flush()

        for event_id, event in after.events.items():
            previous = before.events.get(event_id)
            if previous is None:
                self.db.add(TimelineEventRecord(id=event_id, wedding_id=wedding_id, **_event_columns(event)))
            elif previous != event:
                await self.db.execute(
                    update(TimelineEventRecord)
                    .where(TimelineEventRecord.wedding_id == wedding_id, TimelineEventRecord.id == event_id)
                    .values(**_event_columns(event))
                    .execution_options(synchronize_session=False)
                )
        await self.db.flush()

    async def replace_bands(self, wedding_id: str, bands: Sequence[BackgroundBand]) -> None:
        await self.db.execute(
            delete(BackgroundBandRecord).where(BackgroundBandRecord.wedding_id == wedding_id)
        )
        await self.db.flush()
        for band in bands:
            self.db.add(
                BackgroundBandRecord(
                    id=band.id,
                    wedding_id=wedding_id,
                    band_type=band.band_type.value,
                    start_utc=band.start_utc,
                    end_utc=band.end_utc,
                    label=band.label,
                )
            )
        await self.db.flush()

    # -------------------------------------------------------------------------
    # Revisions
    # -------------------------------------------------------------------------

    async def record_revision(
        self,
        wedding_id: str,
        base_version: int,
        version: int,
        patch_ops: list[dict[str, Any]],
        user_id: str | None,
    ) -> TimelineRevision:
        revision = TimelineRevision(
            wedding_id=wedding_id,
            base_version=base_version,
            version=version,
            patch_ops=patch_ops,
            user_id=user_id,
        )
        self.db.add(revision)
        await self.db.flush()
        return revision

    async def list_revisions(self, wedding_id: str, since_version: int = 0) -> list[TimelineRevision]:
        result = await self.db.execute(
            select(TimelineRevision)
            .where(
                TimelineRevision.wedding_id == wedding_id,
                TimelineRevision.version > since_version,
            )
            .order_by(TimelineRevision.version)
        )
        return list(result.scalars().all())

    # -------------------------------------------------------------------------
    # Memberships
    # -------------------------------------------------------------------------

    async def get_membership(self, wedding_id: str, user_id: str) -> WeddingMembership | None:
        result = await self.db.execute(
            select(WeddingMembership).where(
                WeddingMembership.wedding_id == wedding_id,
                WeddingMembership.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def upsert_membership(
        self, wedding_id: str, user_id: str, display_name: str, timeline_role: str
    ) -> WeddingMembership:
        membership = await self.get_membership(wedding_id, user_id)
        if membership is None:
            membership = WeddingMembership(wedding_id=wedding_id, user_id=user_id)
            self.db.add(membership)
        membership.display_name = display_name
        membership.timeline_role = timeline_role
        await self.db.flush()
        return membership
