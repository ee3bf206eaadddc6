"""Authoritative timeline state: versioned reads and all-or-nothing publishes.

Each wedding's timeline is a small state machine keyed by its
``timeline_version``. A publish names the version its draft was forked from;
if that is not the current version the publish is rejected with the current
snapshot attached, otherwise every op is applied strictly and the version
moves on by exactly one.

Publishes for one wedding are serialized twice: by an in-process
``asyncio.Lock`` per wedding, and in the database by a row lock plus a
conditional version update, so two processes can never both succeed from the
same base version.
"""

import asyncio
import logging
from collections.abc import Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from weddingday.exceptions import (
    InvalidTimeRangeError,
    StorageError,
    VersionConflictError,
    WeddingDayError,
    WeddingNotFoundError,
)
from weddingday.models.wedding import Wedding
from weddingday.repositories.timeline_repo import TimelineRepository
from weddingday.schemas.patch import PatchOp, dump_patch_ops
from weddingday.schemas.timeline import BackgroundBand, TimelineSnapshot
from weddingday.schemas.wedding import TimelineRevisionItem, TimelineRevisionList
from weddingday.services.reconciliation import CanonicalState, apply_canonical_ops
from weddingday.services.time_window import TimelineWindow, compute_timeline_window

logger = logging.getLogger(__name__)


class WeddingLockRegistry:
    """One asyncio.Lock per wedding id, created on first use.

    Locks are never dropped, so the registry is bounded by the number of
    weddings this process has published to.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}

    def lock_for(self, wedding_id: str) -> asyncio.Lock:
        lock = self._locks.get(wedding_id)
        if lock is None:
            lock = self._locks.setdefault(wedding_id, asyncio.Lock())
        return lock


def window_for(wedding: Wedding) -> TimelineWindow:
    return compute_timeline_window(wedding.wedding_date, wedding.venue_timezone)


def build_snapshot(
    wedding: Wedding,
    version: int,
    window: TimelineWindow,
    state: CanonicalState,
    bands: Sequence[BackgroundBand],
) -> TimelineSnapshot:
    return TimelineSnapshot(
        version=version,
        venue_timezone=wedding.venue_timezone,
        wedding_date=wedding.wedding_date,
        window_start_utc=window.start_utc,
        window_end_utc=window.end_utc,
        lanes=state.sorted_lanes(),
        events=state.sorted_events(),
        bands=list(bands),
    )


class TimelineService:
    """Reads and publishes wedding timelines.

    Every call runs in its own session from ``session_factory`` so that the
    per-wedding lock is held until the transaction has committed.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        locks: WeddingLockRegistry | None = None,
    ):
        self.session_factory = session_factory
        self.locks = locks or WeddingLockRegistry()

    async def _read_snapshot(self, repo: TimelineRepository, wedding: Wedding) -> TimelineSnapshot:
        window = window_for(wedding)
        state = await repo.load_state(wedding.id)
        bands = await repo.list_bands(wedding.id)
        return build_snapshot(wedding, wedding.timeline_version, window, state, bands)

    async def get_timeline(self, wedding_id: str) -> TimelineSnapshot:
        """Return the canonical snapshot. Side-effect free."""
        async with self.session_factory() as db:
            repo = TimelineRepository(db)
            wedding = await repo.get_wedding(wedding_id)
            if wedding is None:
                raise WeddingNotFoundError(wedding_id)
            return await self._read_snapshot(repo, wedding)

    async def publish(
        self,
        wedding_id: str,
        base_version: int,
        patch_ops: Sequence[PatchOp],
        actor_id: str | None = None,
    ) -> TimelineSnapshot:
        """Apply a draft's ops if it was forked from the current version.

        Returns:
            The new canonical snapshot at ``base_version + 1``

        Raises:
            VersionConflictError: ``base_version`` is stale; carries the
                current snapshot. Nothing is written.
            WeddingDayError: An op failed validation; ``location.opIndex``
                names it. Nothing is written.
            StorageError: The database failed; nothing is written.
        """
        async with self.locks.lock_for(wedding_id):
            async with self.session_factory() as db:
                repo = TimelineRepository(db)
                try:
                    snapshot = await self._publish_locked(
                        repo, wedding_id, base_version, patch_ops, actor_id
                    )
                    await db.commit()
                except WeddingDayError:
                    await db.rollback()
                    raise
                except SQLAlchemyError as e:
                    await db.rollback()
                    logger.exception(f"Publish failed for wedding {wedding_id}: {e}")
                    raise StorageError("Could not save timeline changes") from e

        logger.info(
            f"Published {len(patch_ops)} op(s) to wedding {wedding_id}: "
            f"v{base_version} -> v{snapshot.version} by {actor_id or 'unknown'}"
        )
        return snapshot

    async def _publish_locked(
        self,
        repo: TimelineRepository,
        wedding_id: str,
        base_version: int,
        patch_ops: Sequence[PatchOp],
        actor_id: str | None,
    ) -> TimelineSnapshot:
        wedding = await repo.get_wedding_for_update(wedding_id)
        if wedding is None:
            raise WeddingNotFoundError(wedding_id)

        current_version = wedding.timeline_version
        if base_version != current_version:
            logger.info(
                f"Version conflict on wedding {wedding_id}: "
                f"base v{base_version}, current v{current_version}"
            )
            raise VersionConflictError(
                base_version, current_version, await self._read_snapshot(repo, wedding)
            )

        window = window_for(wedding)
        before = await repo.load_state(wedding_id)
        try:
            after = apply_canonical_ops(before, patch_ops, window)
        except WeddingDayError as e:
            op_index = e.location.op_index if e.location else None
            logger.warning(
                f"Rejected publish to wedding {wedding_id} at op {op_index}: [{e.code}] {e.message}"
            )
            raise

        if not await repo.bump_version(wedding_id, current_version):
            # Another process committed between our read and our write
            await repo.db.rollback()
            wedding = await repo.get_wedding(wedding_id)
            latest = wedding.timeline_version if wedding else current_version
            logger.info(f"Version moved during publish on wedding {wedding_id}: now v{latest}")
            snapshot = await self._read_snapshot(repo, wedding) if wedding else None
            raise VersionConflictError(base_version, latest, snapshot)

        await repo.save_state(before, after)
        new_version = current_version + 1
        await repo.record_revision(
            wedding_id, base_version, new_version, dump_patch_ops(patch_ops), actor_id
        )
        bands = await repo.list_bands(wedding_id)
        return build_snapshot(wedding, new_version, window, after, bands)

    async def replace_bands(
        self, wedding_id: str, bands: Sequence[BackgroundBand]
    ) -> TimelineSnapshot:
        """Swap all background bands. Bands are decoration; the version is unchanged."""
        for band in bands:
            if band.end_utc <= band.start_utc:
                raise InvalidTimeRangeError("Band end must be after start", field="bands")

        async with self.locks.lock_for(wedding_id):
            async with self.session_factory() as db:
                repo = TimelineRepository(db)
                try:
                    wedding = await repo.get_wedding_for_update(wedding_id)
                    if wedding is None:
                        raise WeddingNotFoundError(wedding_id)
                    await repo.replace_bands(wedding_id, bands)
                    snapshot = await self._read_snapshot(repo, wedding)
                    await db.commit()
                except WeddingDayError:
                    await db.rollback()
                    raise
                except SQLAlchemyError as e:
                    await db.rollback()
                    logger.exception(f"Band update failed for wedding {wedding_id}: {e}")
                    raise StorageError("Could not save background bands") from e

        logger.info(f"Replaced background bands for wedding {wedding_id}: {len(bands)} band(s)")
        return snapshot

    async def list_revisions(self, wedding_id: str, since_version: int = 0) -> TimelineRevisionList:
        async with self.session_factory() as db:
            repo = TimelineRepository(db)
            wedding = await repo.get_wedding(wedding_id)
            if wedding is None:
                raise WeddingNotFoundError(wedding_id)
            revisions = await repo.list_revisions(wedding_id, since_version)
            return TimelineRevisionList(
                current_version=wedding.timeline_version,
                revisions=[
                    TimelineRevisionItem(
                        id=revision.id,
                        base_version=revision.base_version,
                        version=revision.version,
                        patch_ops=revision.patch_ops,
                        user_id=revision.user_id,
                        created_at=revision.created_at,
                    )
                    for revision in revisions
                ],
            )


# Singleton lock registry shared by every TimelineService in this process
wedding_locks = WeddingLockRegistry()
