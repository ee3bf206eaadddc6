"""
Pytest fixtures for timeline tests.

Database-backed tests run against a throwaway SQLite file (aiosqlite) per
test, seeded with one wedding on 2026-10-17 in America/New_York:

- lane-photo (photo, sort 0): evt-first-look 3:00 PM - 3:30 PM
- lane-ceremony (ceremony, sort 1): evt-ceremony 4:00 PM - 4:45 PM

Members: a couple admin, a planner admin and a vendor collaborator.
"""

from datetime import UTC, datetime

import httpx
import pytest

from weddingday.api.deps import get_timeline_service
from weddingday.main import app
from weddingday.models.database import create_engine_for, create_session_maker, get_db, init_db
from weddingday.repositories.timeline_repo import TimelineRepository
from weddingday.schemas.timeline import (
    LaneType,
    OwnerRef,
    OwnerType,
    TimelineEvent,
    TimelineLane,
)
from weddingday.services.reconciliation import CanonicalState
from weddingday.services.time_window import compute_timeline_window
from weddingday.services.timeline_service import TimelineService, WeddingLockRegistry

WEDDING_ID = "wedding-1"
WEDDING_DATE = "2026-10-17"
VENUE_TZ = "America/New_York"

COUPLE_USER = "user-couple-1"
PLANNER_USER = "user-planner-1"
VENDOR_USER = "user-vendor-1"
STRANGER_USER = "user-stranger"


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=UTC)


@pytest.fixture
def window():
    """Day-of window for the seeded wedding: 07:00Z Oct 17 to 07:00Z Oct 18."""
    return compute_timeline_window(WEDDING_DATE, VENUE_TZ)


@pytest.fixture
def photo_lane() -> TimelineLane:
    return TimelineLane(
        id="lane-photo",
        wedding_id=WEDDING_ID,
        name="Photography",
        lane_type=LaneType.PHOTO,
        owner=OwnerRef(id="vendor-photo", type=OwnerType.VENDOR, display_name="Lens & Light"),
        sort_order=0,
    )


@pytest.fixture
def ceremony_lane() -> TimelineLane:
    return TimelineLane(
        id="lane-ceremony",
        wedding_id=WEDDING_ID,
        name="Ceremony",
        lane_type=LaneType.CEREMONY,
        sort_order=1,
    )


@pytest.fixture
def first_look() -> TimelineEvent:
    return TimelineEvent(
        id="evt-first-look",
        wedding_id=WEDDING_ID,
        title="First look",
        start_utc=utc(2026, 10, 17, 19, 0),
        end_utc=utc(2026, 10, 17, 19, 30),
        lane_id="lane-photo",
        category=LaneType.PHOTO,
    )


@pytest.fixture
def ceremony() -> TimelineEvent:
    return TimelineEvent(
        id="evt-ceremony",
        wedding_id=WEDDING_ID,
        title="Ceremony",
        start_utc=utc(2026, 10, 17, 20, 0),
        end_utc=utc(2026, 10, 17, 20, 45),
        lane_id="lane-ceremony",
        category=LaneType.CEREMONY,
    )


@pytest.fixture
def base_state(photo_lane, ceremony_lane, first_look, ceremony) -> CanonicalState:
    return CanonicalState.from_snapshot(
        WEDDING_ID, [photo_lane, ceremony_lane], [first_look, ceremony]
    )


@pytest.fixture
async def engine(tmp_path):
    engine = create_engine_for(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return create_session_maker(engine)


@pytest.fixture
async def seeded(session_maker, base_state):
    """Insert the sample wedding at timeline version 0."""
    async with session_maker() as db:
        repo = TimelineRepository(db)
        await repo.create_wedding(WEDDING_ID, "Sarah & John", WEDDING_DATE, VENUE_TZ)
        await repo.upsert_membership(WEDDING_ID, COUPLE_USER, "Sarah & John", "COUPLE_TIMELINE_ADMIN")
        await repo.upsert_membership(WEDDING_ID, PLANNER_USER, "Pat Planner", "PLANNER_TIMELINE_ADMIN")
        await repo.upsert_membership(WEDDING_ID, VENDOR_USER, "Lens & Light", "VENDOR_TIMELINE_COLLAB")
        await repo.save_state(CanonicalState(WEDDING_ID), base_state)
        await db.commit()
    return base_state


@pytest.fixture
def service(session_maker):
    return TimelineService(session_maker, WeddingLockRegistry())


@pytest.fixture
async def api_client(session_maker, service, seeded):
    """HTTP client wired to the app with the test database."""

    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_timeline_service] = lambda: service
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"X-User-Id": COUPLE_USER},
    ) as client:
        yield client
    app.dependency_overrides.clear()
